"""
HTTP server for MedAssist.
"""

from .main import create_app
from .service_container import (
    ServiceConfig,
    ServiceContainer,
    ServiceInitializationError,
)

__all__ = [
    "create_app",
    "ServiceConfig",
    "ServiceContainer",
    "ServiceInitializationError",
]
