"""
Offer endpoints.

WHAT: Submit seller offers and read a deal's current best offer over HTTP
WHY: Same engine as the Discord modal, usable by other front ends
HOW: Sync handlers (FastAPI runs them in its threadpool) calling OfferService
"""

from fastapi import APIRouter

from ....models.api_schemas import (
    BestOfferResponse,
    OfferValue,
    SubmitOfferRequest,
    SubmitOfferResponse,
)
from ....models.offer import EngineConfig, NormalizedValue
from ....services.display import format_for_display
from ....services.offer_service import get_offer_service
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def _offer_value(value: NormalizedValue | None, config: EngineConfig, floor: bool = False) -> OfferValue | None:
    if value is None:
        return None
    return OfferValue(
        normalized=value.normalized,
        raw=value.raw,
        tax_type=value.tax_type.value if value.tax_type else None,
        display=format_for_display(
            value,
            vat_multiplier=config.vat_multiplier,
            currency_symbol=config.currency_symbol,
            floor=floor,
        ),
    )


@router.post("/offers", response_model=SubmitOfferResponse)
def submit_offer(request: SubmitOfferRequest):
    """
    Submit a seller offer.

    Rejections (bad input, unknown seller, not low enough) are normal
    200 responses with accepted=false. A failed write raises
    OfferPersistenceError, answered with 503.
    """
    service = get_offer_service()
    result = service.submit_bid(
        request.deal_id,
        request.seller_code,
        request.price,
        request.tax_type,
        request.discord_user_id,
    )

    decision = result.decision
    return SubmitOfferResponse(
        accepted=result.accepted,
        outcome=result.outcome.value,
        reason=result.reason,
        normalized_value=result.normalized_value,
        bid_id=result.bid_id,
        current_best=_offer_value(decision.current_best if decision else None, service.config),
        max_allowed=_offer_value(decision.max_allowed if decision else None, service.config, floor=True),
    )


@router.get("/deals/{deal_id}/best-offer", response_model=BestOfferResponse)
def best_offer(deal_id: str):
    """Current best offer of a deal and the highest gross value a new offer may have."""
    service = get_offer_service()
    best = service.resolver.resolve_best(deal_id)
    return BestOfferResponse(
        deal_id=deal_id,
        best=_offer_value(best, service.config),
        undercut_step=service.config.undercut_step,
        max_allowed_gross=best.normalized - service.config.undercut_step if best else None,
    )
