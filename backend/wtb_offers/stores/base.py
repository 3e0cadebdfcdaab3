"""
Record store protocol definition.

WHAT: Abstract interface for the bid/deal/seller store
WHY: Decouple the offer engine from Airtable or SQL specifics
HOW: Protocol with synchronous methods; failures raise StoreError subclasses
"""

from typing import Protocol

from .types import BidRecord, DealRecord, NewBid, SellerRecord, StoreStatus


class OfferStore(Protocol):
    """Protocol defining the interface all record stores must implement."""

    def ping(self) -> StoreStatus:
        """Check store health and availability."""
        ...

    def find_bids_by_deal(self, deal_id: str) -> list[BidRecord]:
        """All offers linked to deal_id, in store order."""
        ...

    def find_deal(self, deal_id: str) -> DealRecord | None:
        """A deal by id, or None if it does not exist."""
        ...

    def find_deal_by_message(self, message_id: str) -> DealRecord | None:
        """The deal whose posted offer messages include message_id."""
        ...

    def find_seller_by_code(self, seller_code: str) -> SellerRecord | None:
        """A seller by code (e.g. SE-00001), or None."""
        ...

    def create_bid(self, bid: NewBid) -> BidRecord:
        """Persist a validated offer."""
        ...

    def update_deal_messaging(
        self,
        deal_id: str,
        *,
        buttons_disabled: bool,
        message_ids: list[str] | None = None
    ) -> None:
        """Record posted message ids and whether their buttons are disabled."""
        ...
