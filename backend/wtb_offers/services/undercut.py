"""
Undercut validation.

WHAT: Decide whether a proposed offer beats the current best by the minimum step
WHY: Keeps bidding competitive without penny-increment undercutting
HOW: Compare in gross terms, then express the bound in the bidder's own tax type
"""

from ..models.offer import EngineConfig, NormalizedValue, TaxType, UndercutDecision
from ..stores.types import DealRecord
from ..utils.logger import get_logger
from .best_offer import BestOfferResolver
from .display import format_for_display, round_cents
from .normalizer import denormalize, normalize

logger = get_logger(__name__)


class UndercutValidator:
    """Admits or rejects offers against a deal's current best."""

    def __init__(self, resolver: BestOfferResolver, config: EngineConfig | None = None):
        self.resolver = resolver
        self.config = config or resolver.config

    def validate(self, proposed_raw: float, proposed_tax_type: TaxType | None,
                 deal_id: str, deal: DealRecord | None = None) -> UndercutDecision:
        """
        Check a proposed offer against the deal's current best.

        Args:
            proposed_raw: Offer price in the bidder's tax type
            proposed_tax_type: Bidder's tax type
            deal_id: Deal the offer targets
            deal: Already-read deal record, passed on to the resolver

        Returns:
            UndercutDecision; on rejection max_allowed holds the highest
            admissible price in the bidder's tax type, floored to the cent
        """
        proposed_normalized = normalize(proposed_raw, proposed_tax_type, self.config.vat_multiplier)

        best = self.resolver.resolve_best(deal_id, deal=deal)
        if best is None:
            logger.debug(f"No baseline for deal {deal_id}, accepting")
            return UndercutDecision(accepted=True, proposed_normalized=proposed_normalized)

        max_allowed_gross = best.normalized - self.config.undercut_step
        current_best_display = format_for_display(
            best,
            vat_multiplier=self.config.vat_multiplier,
            currency_symbol=self.config.currency_symbol,
        )

        if proposed_normalized is not None and \
                proposed_normalized <= max_allowed_gross + self.config.tolerance:
            return UndercutDecision(
                accepted=True,
                proposed_normalized=proposed_normalized,
                current_best=best,
                current_best_display=current_best_display,
            )

        bidder_type = proposed_tax_type or TaxType.MARGIN
        # Never round up: a rounded-up bound resubmitted verbatim would fail again
        max_raw = round_cents(
            denormalize(max_allowed_gross, bidder_type, self.config.vat_multiplier), floor=True
        )
        max_allowed = NormalizedValue(normalized=max_allowed_gross, raw=max_raw, tax_type=bidder_type)

        logger.info(
            f"Offer rejected on deal {deal_id}: {proposed_normalized} > {max_allowed_gross:.4f} "
            f"(best {best.normalized:.4f})"
        )
        return UndercutDecision(
            accepted=False,
            proposed_normalized=proposed_normalized,
            current_best=best,
            max_allowed=max_allowed,
            current_best_display=current_best_display,
            max_allowed_display=format_for_display(
                max_allowed,
                vat_multiplier=self.config.vat_multiplier,
                currency_symbol=self.config.currency_symbol,
                floor=True,
            ),
        )
