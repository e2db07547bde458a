"""FastAPI application factory for the analytics collector."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autodemo.collector.dependencies import get_settings
from autodemo.collector.routes import router
from autodemo.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure the collector application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    logging_config = settings.observability.logging
    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        redact_pii=logging_config.redact_pii,
    )

    app = FastAPI(
        title="autodemo collector",
        description="Receives guided-tour analytics batches",
        version="0.1.0",
    )

    # Recorders run in browsers on other origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET"],
        allow_headers=["*"],
    )

    app.include_router(router, tags=["Analytics"])

    logger.info("collector_app_created", debug=settings.debug)

    return app


# Create the app instance for uvicorn
app = create_app()
