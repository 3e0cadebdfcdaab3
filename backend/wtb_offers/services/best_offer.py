"""
Best-offer resolution for a deal.

WHAT: Find the lowest normalized offer linked to a deal
WHY: Every new offer is judged against the current best
HOW: Full read of the deal's offers, normalize each, keep the first minimum;
     fall back to the deal's ceiling price when there are no offers
"""

import math

from ..models.offer import EngineConfig, NormalizedValue, TaxType
from ..stores.base import OfferStore
from ..stores.types import DealRecord, StoreError
from ..utils.logger import get_logger
from .normalizer import normalize
from .value_parser import normalize_tax_type, parse_numeric

logger = get_logger(__name__)


class BestOfferResolver:
    """Resolves the current best offer of a deal from the record store."""

    def __init__(self, store: OfferStore, config: EngineConfig | None = None):
        self.store = store
        self.config = config or EngineConfig()

    def resolve_best(self, deal_id: str, deal: DealRecord | None = None) -> NormalizedValue | None:
        """
        Current best offer for a deal.

        Store read failures count as "no data": an unreadable offer list is
        treated as empty and an unreadable deal as having no ceiling.

        Args:
            deal_id: Deal/order record id
            deal: The deal record when the caller already read it; fetched otherwise

        Returns:
            Lowest NormalizedValue, the fallback ceiling as a Margin value,
            or None when nothing can be compared against
        """
        best = self._best_linked_offer(deal_id)
        if best is not None:
            return best
        return self._fallback_ceiling(deal_id, deal)

    def _best_linked_offer(self, deal_id: str) -> NormalizedValue | None:
        try:
            bids = self.store.find_bids_by_deal(deal_id)
        except StoreError as e:
            logger.warning(f"Offer lookup failed for deal {deal_id}, treating as no offers: {e}")
            return None

        best = None
        for bid in bids:
            price = parse_numeric(bid.price)
            tax_type = normalize_tax_type(bid.tax_type)
            normalized = normalize(price, tax_type, self.config.vat_multiplier)

            if normalized is None or not math.isfinite(normalized):
                logger.debug(f"Skipping unreadable offer {bid.record_id} on deal {deal_id}")
                continue

            # Strict < keeps the first of equal offers
            if best is None or normalized < best.normalized:
                best = NormalizedValue(normalized=normalized, raw=price, tax_type=tax_type)

        return best

    def _fallback_ceiling(self, deal_id: str, deal: DealRecord | None) -> NormalizedValue | None:
        if deal is None:
            try:
                deal = self.store.find_deal(deal_id)
            except StoreError as e:
                logger.warning(f"Deal lookup failed for {deal_id}, no baseline: {e}")
                return None

        if deal is None:
            return None

        ceiling = parse_numeric(deal.fallback_ceiling)
        if ceiling is None or not math.isfinite(ceiling):
            return None

        return NormalizedValue(normalized=ceiling, raw=ceiling, tax_type=TaxType.MARGIN)
