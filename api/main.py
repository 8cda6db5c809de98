"""
API Application Entry Point

Defines the FastAPI application with middleware, route configuration
and lifecycle management.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.config import get_api_settings
from api.routes import pipeline
from api.services.pipeline_service import get_pipeline_service
from api.utils.error_handlers import add_exception_handlers
from src.config.settings import EnvironmentType
from src.utils.logging_utils import configure_safe_logging

configure_safe_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE")
)
logger = logging.getLogger("api")


def create_application() -> FastAPI:
    """
    Create and configure FastAPI application instance.

    Returns:
        Configured FastAPI application
    """
    settings = get_api_settings()

    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        docs_url="/docs" if settings.ENVIRONMENT != EnvironmentType.PRODUCTION else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != EnvironmentType.PRODUCTION else None,
        debug=settings.DEBUG
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=settings.CORS_METHODS,
        allow_headers=["*"],
    )

    add_exception_handlers(app)

    app.include_router(pipeline.router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("API service starting up")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release pooled database connections if the service was built."""
        if get_pipeline_service.cache_info().currsize:
            get_pipeline_service().database.dispose()
        logger.info("API service shutting down")

    @app.get("/health", tags=["Monitoring"])
    async def health_check():
        """API health check endpoint."""
        return {"status": "healthy"}

    logger.info(f"Application initialized in {settings.ENVIRONMENT.value} environment")
    return app


app = create_application()
