"""
Deal endpoints called by the Airtable automations.

WHAT: Post deals, disable offer buttons, open payout channels
WHY: The order base decides when deals open, close and get paid out
HOW: FastAPI router delegating to DealMessenger; paths kept stable for the automations
"""

from fastapi import APIRouter

from ....models.api_schemas import (
    DisableOffersRequest,
    DisableOffersResponse,
    PartnerDealRequest,
    PartnerDealResponse,
    PayoutChannelRequest,
    PayoutChannelResponse,
)
from ....services.deal_messenger import get_deal_messenger
from ....utils.exceptions import ValidationException
from ....utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _send_offer_deal(request: PartnerDealRequest) -> PartnerDealResponse:
    message_ids = await get_deal_messenger().post_offer_deal(request)
    return PartnerDealResponse(ok=True, message_ids=message_ids)


@router.post("/partner-offer-deal", response_model=PartnerDealResponse)
async def partner_offer_deal(request: PartnerDealRequest):
    """
    Announce an offer-only WTB deal in every deals channel.

    Returns:
        Posted message IDs
    """
    return await _send_offer_deal(request)


@router.post("/partner-deal", response_model=PartnerDealResponse)
async def partner_deal(request: PartnerDealRequest):
    """Alias of /partner-offer-deal."""
    return await _send_offer_deal(request)


@router.post("/seller-offer/disable", response_model=DisableOffersResponse)
async def disable_seller_offers(request: DisableOffersRequest):
    """
    Disable the Offer buttons of a deal.

    Raises:
        ValidationException: recordId missing
    """
    if not request.record_id:
        raise ValidationException("Missing recordId")

    disabled = await get_deal_messenger().disable_offer_messages(request.record_id)
    return DisableOffersResponse(ok=True, disabled=disabled)


@router.post("/payout-channel", response_model=PayoutChannelResponse)
async def payout_channel(request: PayoutChannelRequest):
    """Open a private payout channel for the winning seller."""
    channel_id = await get_deal_messenger().open_payout_channel(request)
    return PayoutChannelResponse(ok=True, channel_id=channel_id)
