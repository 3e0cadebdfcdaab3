"""
Offer submission service.

WHAT: submit_bid - validate a seller offer and persist it when admissible
WHY: Single entry point shared by the Discord modal and the HTTP API
HOW: Input checks -> deal check -> undercut check -> seller lookup -> create, serialized per deal
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
import re
import threading
from typing import Any, Callable

from ..core.config import settings
from ..models.offer import EngineConfig, SubmitOutcome, SubmitResult, TaxType
from ..stores.base import OfferStore
from ..stores.types import DealRecord, NewBid, StoreError, StoreResponseError
from ..utils.exceptions import OfferPersistenceError
from ..utils.logger import get_logger
from .best_offer import BestOfferResolver
from .display import format_money
from .normalizer import normalize
from .undercut import UndercutValidator
from .value_parser import normalize_tax_type, parse_numeric

logger = get_logger(__name__)

_SELLER_DIGITS = re.compile(r"[0-9]+")
_TAX_TYPE_CHOICES = ", ".join(t.value for t in TaxType)


@dataclass
class _DealLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


def _rejected(outcome: SubmitOutcome, reason: str, **kwargs) -> SubmitResult:
    return SubmitResult(accepted=False, outcome=outcome, reason=reason, **kwargs)


class OfferService:
    """
    Validates and records seller offers.

    Holds no offer state of its own; every call re-reads the store. The
    per-deal lock only serializes submissions inside this process.
    """

    def __init__(
        self,
        store: OfferStore,
        config: EngineConfig | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.resolver = BestOfferResolver(store, self.config)
        self.validator = UndercutValidator(self.resolver, self.config)
        self._today = today
        self._deal_locks: dict[str, _DealLock] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def _deal_lock(self, deal_id: str):
        """Hold the deal's lock; the entry is dropped once no thread uses it."""
        with self._registry_lock:
            entry = self._deal_locks.get(deal_id)
            if entry is None:
                entry = self._deal_locks[deal_id] = _DealLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._registry_lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._deal_locks[deal_id]

    def submit_bid(
        self,
        deal_id: str | None,
        seller_code: Any,
        raw_price_text: Any,
        tax_type_text: Any,
        discord_user_id: str | None = None,
    ) -> SubmitResult:
        """
        Validate and persist a seller offer.

        Business rejections come back as a SubmitResult with accepted=False.
        A deal_id of None (deal not found for the message) skips the
        undercut check and stores the offer unlinked.

        Args:
            deal_id: Deal/order record id, or None
            seller_code: Seller number as typed (digits only, e.g. "00001")
            raw_price_text: Offer price as typed ("99,50" is fine)
            tax_type_text: Margin, VAT0 or VAT21
            discord_user_id: Discord user submitting the offer, if any

        Returns:
            SubmitResult

        Raises:
            OfferPersistenceError: Offer passed validation but could not be saved
        """
        digits = seller_code.strip() if isinstance(seller_code, str) else ""
        if not _SELLER_DIGITS.fullmatch(digits):
            return _rejected(SubmitOutcome.INVALID_SELLER_CODE, "Seller ID must be digits only.")
        full_code = f"{self.config.seller_code_prefix}{digits}"

        tax_label = tax_type_text.strip() if isinstance(tax_type_text, str) else tax_type_text
        tax_type = normalize_tax_type(tax_label)
        if tax_type is None:
            return _rejected(
                SubmitOutcome.INVALID_TAX_TYPE,
                f"VAT Type must be one of: {_TAX_TYPE_CHOICES}.",
                seller_code=full_code,
            )

        price = parse_numeric(raw_price_text)
        if price is None or price <= 0:
            return _rejected(SubmitOutcome.INVALID_PRICE, "Invalid offer price.", seller_code=full_code)

        if deal_id is None:
            logger.warning(f"Offer from {full_code} has no deal; skipping undercut check")
            return self._check_seller_and_create(None, full_code, price, tax_type, discord_user_id, None)

        with self._deal_lock(deal_id):
            deal, deal_read = self._read_deal(deal_id)
            if deal_read and deal is None:
                return _rejected(
                    SubmitOutcome.DEAL_NOT_FOUND,
                    "This deal is no longer available.",
                    seller_code=full_code, price=price, tax_type=tax_type,
                )
            if deal is not None and deal.buttons_disabled:
                return _rejected(
                    SubmitOutcome.DEAL_CLOSED,
                    "Offers for this deal are closed.",
                    seller_code=full_code, price=price, tax_type=tax_type,
                )

            decision = self.validator.validate(price, tax_type, deal_id, deal=deal)
            if not decision.accepted:
                if decision.max_allowed.raw <= 0:
                    reason = "Offer too high.\nThis deal can no longer be undercut."
                else:
                    reason = (
                        f"Offer too high.\n"
                        f"Current lowest: {decision.current_best_display}\n"
                        f"Your max allowed: {decision.max_allowed_display}"
                    )
                return _rejected(
                    SubmitOutcome.UNDERCUT_REQUIRED, reason,
                    seller_code=full_code, price=price, tax_type=tax_type,
                    normalized_value=decision.proposed_normalized, decision=decision,
                )

            return self._check_seller_and_create(
                deal_id, full_code, price, tax_type, discord_user_id, decision
            )

    def _read_deal(self, deal_id: str) -> tuple[DealRecord | None, bool]:
        """Deal record and whether the read succeeded; an unreadable deal counts as open."""
        try:
            return self.store.find_deal(deal_id), True
        except StoreError as e:
            logger.warning(f"Could not read deal {deal_id}, assuming open: {e}")
            return None, False

    def _check_seller_and_create(self, deal_id, full_code, price, tax_type, discord_user_id, decision):
        try:
            seller = self.store.find_seller_by_code(full_code)
        except StoreError as e:
            logger.error(f"Seller lookup failed for {full_code}: {e}")
            return _rejected(
                SubmitOutcome.SELLER_LOOKUP_FAILED,
                "Seller directory is unavailable, please try again.",
                seller_code=full_code, price=price, tax_type=tax_type,
            )

        if seller is None:
            return _rejected(
                SubmitOutcome.UNKNOWN_SELLER, f"Seller {full_code} not found.",
                seller_code=full_code, price=price, tax_type=tax_type,
            )

        normalized = normalize(price, tax_type, self.config.vat_multiplier)

        new_bid = NewBid(
            price=price,
            tax_type=tax_type,
            normalized=normalized,
            offer_date=self._today(),
            seller_record_id=seller.record_id,
            seller_discord_id=discord_user_id,
            deal_id=deal_id,
        )
        try:
            record = self.store.create_bid(new_bid)
        except StoreResponseError as e:
            # Store refused the record (e.g. deal removed after the read); retrying cannot help
            logger.error(f"Store refused offer from {full_code} on deal {deal_id}: {e}")
            return _rejected(
                SubmitOutcome.OFFER_REFUSED,
                "This offer could not be recorded for this deal.",
                seller_code=full_code, price=price, tax_type=tax_type,
            )
        except StoreError as e:
            logger.error(f"Saving offer from {full_code} on deal {deal_id} failed: {e}")
            raise OfferPersistenceError(deal_id, full_code, str(e)) from e

        logger.info(f"Offer accepted: {full_code} {price} {tax_type.value} on deal {deal_id}")
        return SubmitResult(
            accepted=True,
            outcome=SubmitOutcome.ACCEPTED,
            reason=(
                f"Offer submitted.\nSeller: {full_code}\n"
                f"Offer: {format_money(price, self.config.currency_symbol)} ({tax_type.value})"
            ),
            normalized_value=normalized,
            seller_code=full_code,
            price=price,
            tax_type=tax_type,
            bid_id=record.record_id,
            decision=decision,
        )


# Singleton instance
_service_instance: OfferService | None = None


def get_offer_service() -> OfferService:
    """Get the offer service bound to the configured store."""
    global _service_instance
    if _service_instance is None:
        from ..stores.factory import get_store
        _service_instance = OfferService(get_store(), EngineConfig.from_settings(settings))
    return _service_instance


def reset_offer_service() -> None:
    """Reset the service singleton (useful for testing)."""
    global _service_instance
    _service_instance = None
