import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from alert_feed.api.alerts import feed_fetcher, router as alerts_router
from alert_feed.core.config import get_settings
from alert_feed.core.database import alert_db

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from settings."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown."""
    # Startup
    await alert_db.connect()
    await feed_fetcher.start()
    logger.info("Alert feed service started")
    yield
    # Shutdown
    await feed_fetcher.close()
    await alert_db.disconnect()
    logger.info("Alert feed service stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging()
    
    app = FastAPI(
        title=settings.APP_NAME,
        description="Keyword alert feed API",
        version="0.1.0",
        lifespan=lifespan,
    )
    
    # Include routers
    app.include_router(alerts_router, prefix="/api/v1")
    
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}
    
    return app


app = create_app()
