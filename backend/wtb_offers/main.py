"""
FastAPI application entry point.

WHAT: Main application setup and wiring
WHY: Initialize all components and routes
HOW: Create FastAPI app, register middleware, routers, handlers
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from .core.config import settings
from .core.database import init_db, close_db
from .utils.logger import setup_logging, get_logger
from .middleware.error_handler import register_exception_handlers
from .middleware.request_logging import RequestLoggingMiddleware
from .api.v1.router import api_router

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    WHAT: Startup and shutdown logic
    WHY: Refuse to run half-configured, close HTTP clients cleanly
    HOW: Async context manager for FastAPI lifespan
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    missing = settings.missing_required()
    if missing:
        logger.critical(f"Missing required settings: {', '.join(missing)}")
        raise RuntimeError(f"Missing required settings: {', '.join(missing)}")

    if settings.STORE_BACKEND == "sql":
        init_db()
    logger.info(f"Application startup complete (store={settings.STORE_BACKEND})")

    yield

    # Shutdown
    logger.info("Shutting down application")
    from .chat.discord_client import get_discord_client
    from .services.deal_messenger import get_deal_messenger
    from .stores.factory import get_store

    await get_deal_messenger().close()
    await get_discord_client().close()
    store = get_store()
    if hasattr(store, "close"):
        store.close()
    close_db()
    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(RequestLoggingMiddleware)

# Register exception handlers
register_exception_handlers(app)

# Include API router
app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "wtb_offers.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG
    )
