"""
Custom business exceptions for the offer bridge.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error handling across endpoints and the interaction handler
HOW: Custom exception classes with error codes and messages
"""

from typing import Optional, List, Dict, Any


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class DealNotFoundException(BusinessException):
    """Raised when a deal/order record does not exist."""

    def __init__(self, deal_id: str):
        super().__init__(
            message=f"Deal not found: {deal_id}",
            code="DEAL_NOT_FOUND",
            details={"deal_id": deal_id}
        )


class OfferPersistenceError(BusinessException):
    """
    Raised when a validated offer could not be written to the store.

    Distinct from a validation rejection: the seller should retry with the
    same values rather than enter different ones.
    """

    def __init__(self, deal_id: Optional[str], seller_code: str, reason: str):
        super().__init__(
            message=f"Offer could not be saved: {reason}",
            code="OFFER_NOT_SAVED",
            details={"deal_id": deal_id, "seller_code": seller_code}
        )


class ChannelSetupException(BusinessException):
    """Raised when a Discord channel or category cannot be used."""

    def __init__(self, channel_id: str, reason: str):
        super().__init__(
            message=f"Channel {channel_id} unusable: {reason}",
            code="CHANNEL_SETUP_FAILED",
            details={"channel_id": channel_id}
        )


class WebhookDeliveryException(BusinessException):
    """Raised when the deal-processing webhook rejects or misses a payload."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Webhook delivery failed: {reason}",
            code="WEBHOOK_DELIVERY_FAILED",
            details={"url": url}
        )


class ValidationException(BusinessException):
    """Raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field_errors": field_errors} if field_errors else None
        )
