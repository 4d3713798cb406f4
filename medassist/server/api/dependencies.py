"""
Dependency injection for API routes.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..service_container import ServiceContainer


# Set during app startup; tests swap in a mock container
_container_instance: Optional["ServiceContainer"] = None


def set_container(container: Optional["ServiceContainer"]):
    """Register the service container routes should use (None clears it)."""
    global _container_instance
    _container_instance = container


def get_container() -> "ServiceContainer":
    """
    Get the registered service container.

    Raises:
        RuntimeError: If no container has been registered
    """
    if _container_instance is None:
        raise RuntimeError("Service container not initialized")
    return _container_instance
