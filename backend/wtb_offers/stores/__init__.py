"""Record store layer."""

from .types import (
    BidRecord,
    DealRecord,
    SellerRecord,
    NewBid,
    StoreStatus,
    StoreError,
    StoreUnavailableError,
    StoreResponseError,
)
from .base import OfferStore
from .factory import get_store, reset_store

__all__ = [
    "BidRecord",
    "DealRecord",
    "SellerRecord",
    "NewBid",
    "StoreStatus",
    "StoreError",
    "StoreUnavailableError",
    "StoreResponseError",
    "OfferStore",
    "get_store",
    "reset_store",
]
