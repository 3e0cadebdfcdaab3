"""
Record store types, dataclasses, and exceptions.

WHAT: Standard record shapes returned by every store backend
WHY: The engine reads bids/deals/sellers without knowing the backend
HOW: Dataclasses for records/status, custom exceptions for failures
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from ..models.offer import TaxType


@dataclass
class BidRecord:
    """A stored seller offer, fields as the store holds them."""
    record_id: str
    price: Any  # number or text; parsed by the engine
    tax_type: Optional[str]
    linked_deal_ids: list[str] = field(default_factory=list)
    normalized: Optional[float] = None


@dataclass
class DealRecord:
    """A deal/order with its messaging state."""
    deal_id: str
    fallback_ceiling: Any = None
    message_ids: list[str] = field(default_factory=list)
    buttons_disabled: bool = False


@dataclass
class SellerRecord:
    """An entry of the seller directory."""
    record_id: str
    seller_code: str
    discord_user_id: Optional[str] = None


@dataclass
class NewBid:
    """Fields of an offer that passed validation."""
    price: float
    tax_type: TaxType
    normalized: float
    offer_date: date
    seller_record_id: str
    seller_discord_id: Optional[str] = None
    deal_id: Optional[str] = None


@dataclass
class StoreStatus:
    """Health status of a record store."""
    available: bool
    backend: str
    error: Optional[str] = None


class StoreError(Exception):
    """Base class for record store failures."""
    pass


class StoreUnavailableError(StoreError):
    """Store is not reachable, timed out, or refused the connection."""
    pass


class StoreResponseError(StoreError):
    """Store answered with an error or an unreadable payload."""
    pass


def tax_type_label(value: Any) -> Optional[str]:
    """
    Read a tax type cell that may be a plain string or a {"name": ...} option.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        name = value.get("name")
        return name if isinstance(name, str) else None
    return None


def links_include(links: Any, record_id: str) -> bool:
    """Check a linked-record cell (ids or {"id": ...} objects) for record_id."""
    if not isinstance(links, list):
        return False
    for link in links:
        if isinstance(link, str) and link == record_id:
            return True
        if isinstance(link, dict) and link.get("id") == record_id:
            return True
    return False


def link_ids(links: Any) -> list[str]:
    """Flatten a linked-record cell into plain ids."""
    if not isinstance(links, list):
        return []
    ids = []
    for link in links:
        if isinstance(link, str):
            ids.append(link)
        elif isinstance(link, dict) and isinstance(link.get("id"), str):
            ids.append(link["id"])
    return ids
