"""
SQL record store.

WHAT: Bid/deal/seller store on the SQLAlchemy models in core.models
WHY: Alternative to Airtable for local runs and self-hosted deployments
HOW: Short-lived sessions per call; SQLAlchemyError becomes StoreUnavailableError
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .types import (
    BidRecord,
    DealRecord,
    NewBid,
    SellerRecord,
    StoreStatus,
    StoreResponseError,
    StoreUnavailableError,
)
from ..core.database import get_db, ping_database, SessionLocal
from ..core.models import Order, Seller, SellerOffer
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _deal_from_order(order: Order) -> DealRecord:
    message_ids = [mid.strip() for mid in (order.offer_message_ids or "").split(",") if mid.strip()]
    return DealRecord(
        deal_id=order.order_id,
        fallback_ceiling=order.max_buying_price,
        message_ids=message_ids,
        buttons_disabled=bool(order.buttons_disabled),
    )


class SqlStore:
    """SQLAlchemy-backed implementation of OfferStore."""

    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def ping(self) -> StoreStatus:
        status = ping_database(self.session_factory.kw.get("bind"))
        return StoreStatus(available=status["available"], backend="sql", error=status["error"])

    def find_bids_by_deal(self, deal_id: str) -> list[BidRecord]:
        try:
            with get_db(self.session_factory) as db:
                rows = db.execute(
                    select(SellerOffer)
                    .where(SellerOffer.order_id == deal_id)
                    .order_by(SellerOffer.id)
                ).scalars().all()
                return [
                    BidRecord(
                        record_id=str(row.id),
                        price=row.seller_offer,
                        tax_type=row.vat_type.value if row.vat_type else None,
                        linked_deal_ids=[row.order_id],
                        normalized=row.normalized_cost,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            logger.error(f"Offer query failed for deal {deal_id}: {e}")
            raise StoreUnavailableError(str(e)) from e

    def find_deal(self, deal_id: str) -> DealRecord | None:
        try:
            with get_db(self.session_factory) as db:
                order = db.get(Order, deal_id)
                return _deal_from_order(order) if order else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    def find_deal_by_message(self, message_id: str) -> DealRecord | None:
        try:
            with get_db(self.session_factory) as db:
                candidates = db.execute(
                    select(Order).where(Order.offer_message_ids.contains(message_id))
                ).scalars().all()
                # contains() is a substring match; confirm the exact id
                for order in candidates:
                    deal = _deal_from_order(order)
                    if message_id in deal.message_ids:
                        return deal
                return None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    def find_seller_by_code(self, seller_code: str) -> SellerRecord | None:
        try:
            with get_db(self.session_factory) as db:
                seller = db.execute(
                    select(Seller).where(Seller.seller_code == seller_code)
                ).scalar_one_or_none()
                if not seller:
                    return None
                return SellerRecord(
                    record_id=str(seller.id),
                    seller_code=seller.seller_code,
                    discord_user_id=seller.discord_user_id,
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e

    def create_bid(self, bid: NewBid) -> BidRecord:
        try:
            seller_id = int(bid.seller_record_id)
        except ValueError as e:
            raise StoreResponseError(f"Invalid seller record id: {bid.seller_record_id}") from e

        try:
            with get_db(self.session_factory) as db:
                row = SellerOffer(
                    order_id=bid.deal_id,
                    seller_id=seller_id,
                    seller_offer=bid.price,
                    vat_type=bid.tax_type,
                    normalized_cost=bid.normalized,
                    offer_date=bid.offer_date,
                    seller_discord_id=bid.seller_discord_id,
                )
                db.add(row)
                db.flush()
                record_id = str(row.id)
        except IntegrityError as e:
            # Unknown deal or seller, or a constraint the engine should have caught
            logger.error(f"Offer rejected by database for deal {bid.deal_id}: {e.orig}")
            raise StoreResponseError(str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(f"Offer insert failed for deal {bid.deal_id}: {e}")
            raise StoreUnavailableError(str(e)) from e

        logger.info(f"Created offer {record_id} for deal {bid.deal_id}")
        return BidRecord(
            record_id=record_id,
            price=bid.price,
            tax_type=bid.tax_type.value,
            linked_deal_ids=[bid.deal_id] if bid.deal_id else [],
            normalized=bid.normalized,
        )

    def update_deal_messaging(
        self,
        deal_id: str,
        *,
        buttons_disabled: bool,
        message_ids: list[str] | None = None
    ) -> None:
        try:
            with get_db(self.session_factory) as db:
                order = db.get(Order, deal_id)
                if not order:
                    raise StoreResponseError(f"Order not found: {deal_id}")
                order.buttons_disabled = buttons_disabled
                if message_ids is not None:
                    order.offer_message_ids = ",".join(message_ids)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(str(e)) from e
