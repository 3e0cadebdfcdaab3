"""
Record store factory with singleton pattern.

WHAT: Factory to get the configured record store
WHY: Centralize backend selection and share one HTTP client / engine
HOW: Read STORE_BACKEND from config, cache singleton, log selection
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import OfferStore

# Singleton instance
_store_instance: "OfferStore | None" = None


def get_store() -> "OfferStore":
    """
    Get the configured record store singleton.

    Returns:
        OfferStore instance based on settings.STORE_BACKEND

    Raises:
        ValueError: If the backend name is unknown
    """
    global _store_instance

    if _store_instance is None:
        # Import here to avoid circular dependencies
        from ..core.config import settings
        from ..utils.logger import get_logger

        logger = get_logger(__name__)
        backend = settings.STORE_BACKEND

        if backend == "airtable":
            from .airtable import AirtableStore
            _store_instance = AirtableStore()
        elif backend == "sql":
            from .sql import SqlStore
            _store_instance = SqlStore()
        else:
            raise ValueError(f"Unknown store backend: {backend}")

        logger.info(f"Record store initialized: {backend}")

    return _store_instance


def reset_store() -> None:
    """Reset the store singleton (useful for testing)."""
    global _store_instance
    _store_instance = None
