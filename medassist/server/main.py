"""
Main FastAPI application creation and configuration.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..config import get_settings
from ..config.settings import configure_logging
from ..utils.logging import log_event
from .api.dependencies import get_container, set_container
from .api.router import get_api_router
from .middleware import PermissiveCORSMiddleware
from .service_container import ServiceConfig, ServiceContainer


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    configure_logging(level=settings.log_level)

    # Missing credentials raise ConfigurationError here and abort startup
    container = ServiceContainer(ServiceConfig.from_settings(settings))
    await container.initialize()
    set_container(container)
    try:
        yield
    finally:
        set_container(None)
        await container.cleanup()


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="MedAssist API",
        description="Medical question answering with retrieval-augmented generation",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(PermissiveCORSMiddleware)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        try:
            container = get_container()
        except RuntimeError:
            return {
                "status": "starting",
                "version": __version__,
                "database": False,
                "pipeline": False,
            }

        database_ok = await container.check_database()
        pipeline_ok = container.rag_pipeline is not None
        status = "healthy" if database_ok and pipeline_ok else "degraded"

        log_event("health_check", {"status": status})

        return {
            "status": status,
            "version": __version__,
            "database": database_ok,
            "pipeline": pipeline_ok,
        }

    app.include_router(get_api_router())

    return app


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "medassist.server.main:create_app",
        host=settings.host,
        port=settings.port,
        factory=True,
    )


if __name__ == "__main__":
    run()
