"""
Status and health check endpoints.

WHAT: Health monitoring for the record store
WHY: Quick diagnostics for ops and the hosting platform's health checks
HOW: FastAPI endpoint calling the store's ping in the threadpool
"""

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool

from ....core.config import settings
from ....stores.factory import get_store
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Overall application health check.

    Returns:
        JSON with overall status, version and store status
    """
    try:
        store_status = await run_in_threadpool(get_store().ping)
        store = {
            "available": store_status.available,
            "backend": store_status.backend,
            "error": store_status.error,
        }
    except Exception as e:
        logger.error(f"Health check store ping failed: {e}")
        store = {"available": False, "backend": settings.STORE_BACKEND, "error": str(e)}

    return {
        "status": "healthy" if store["available"] else "degraded",
        "version": settings.APP_VERSION,
        "app_name": settings.APP_NAME,
        "components": {
            "store": store,
            "discord": {"deals_channels": len(settings.get_deals_channel_ids())},
        },
    }
