"""
Main FastAPI application for the conversation bot (webhook mode).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .routes import webhook
from .services import get_services, initialize_services
from config.settings import configure_logging, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Conversation bot starting up...")
    initialize_services()
    logger.info("Conversation bot ready")
    yield
    logger.info("Conversation bot shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Conversation Bot Webhook",
        description="Turns Telegram messages into LLM conversations with structured results.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(webhook.router, tags=["Webhook"])

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "service": "Conversation Bot",
            "version": "1.0.0",
            "status": "operational",
        }

    # Health check
    @app.get("/health")
    async def health():
        services = get_services()
        return {
            "status": "healthy" if services.is_ready else "degraded",
            "services": services.health(),
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
