"""
Global error handling middleware.

WHAT: Translate exceptions to appropriate HTTP responses
WHY: Consistent error responses with proper status codes
HOW: FastAPI exception handlers for custom exceptions
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime

from ..chat.types import DiscordUnavailableError, DiscordResponseError
from ..stores.types import StoreUnavailableError, StoreResponseError
from ..utils.exceptions import (
    BusinessException,
    ChannelSetupException,
    DealNotFoundException,
    OfferPersistenceError,
    WebhookDeliveryException,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _error_body(error: str, message: str, detail=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": detail,
        "timestamp": datetime.now().isoformat()
    }


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    """
    Handle StoreUnavailableError.

    WHAT: Record store not reachable
    WHY: Airtable down, rate limited, or database locked
    HOW: Return 503 service unavailable
    """
    logger.error(f"Store unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("STORE_UNAVAILABLE", str(exc), "Record store is not reachable")
    )


async def store_response_error_handler(request: Request, exc: StoreResponseError):
    """
    Handle StoreResponseError.

    WHAT: Record store rejected the request
    WHY: Wrong table/field names or an invalid formula
    HOW: Return 502 bad gateway
    """
    logger.error(f"Store response error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body("STORE_BAD_GATEWAY", str(exc), "Record store returned an invalid response")
    )


async def discord_unavailable_handler(request: Request, exc: DiscordUnavailableError):
    """
    Handle DiscordUnavailableError.

    WHAT: Discord API not reachable or rate limited
    HOW: Return 503 service unavailable
    """
    logger.error(f"Discord unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("DISCORD_UNAVAILABLE", str(exc), "Discord API is not reachable")
    )


async def discord_response_error_handler(request: Request, exc: DiscordResponseError):
    """Handle DiscordResponseError with 502 bad gateway."""
    logger.error(f"Discord response error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body("DISCORD_BAD_GATEWAY", str(exc), "Discord API rejected the request")
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI RequestValidationError.

    WHAT: Request validation failed
    WHY: Invalid request payload
    HOW: Return 400 with field errors
    """
    logger.warning(f"Validation error: {exc.errors()}")

    # Clean up error details to be JSON serializable
    cleaned_errors = []
    for error in exc.errors():
        cleaned_error = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": error.get("input")
        }
        if "ctx" in error:
            cleaned_error["ctx"] = {
                k: str(v) if isinstance(v, Exception) else v
                for k, v in error["ctx"].items()
            }
        cleaned_errors.append(cleaned_error)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", cleaned_errors)
    )


async def business_exception_handler(request: Request, exc: BusinessException):
    """
    Handle generic BusinessException.

    WHAT: Custom domain exception
    WHY: Domain-specific error
    HOW: Return appropriate status code based on exception type
    """
    status_code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, DealNotFoundException):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, OfferPersistenceError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, ChannelSetupException):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    elif isinstance(exc, WebhookDeliveryException):
        status_code = status.HTTP_502_BAD_GATEWAY

    if status_code >= 500:
        logger.error(f"Business exception: {exc.code} - {exc.message}")
    else:
        logger.warning(f"Business exception: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details)
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # Upstream service exceptions
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(StoreResponseError, store_response_error_handler)
    app.add_exception_handler(DiscordUnavailableError, discord_unavailable_handler)
    app.add_exception_handler(DiscordResponseError, discord_response_error_handler)

    # API exceptions
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)

    logger.info("Exception handlers registered")
