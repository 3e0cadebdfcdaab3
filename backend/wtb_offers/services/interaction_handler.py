"""
Discord interaction handling.

WHAT: Route interaction payloads (buttons, modal submits) to the offer engine
WHY: Sellers bid through the Offer button and its modal form
HOW: Immediate responses for cheap actions; store-bound work is deferred and
     answered through the interaction webhook once it finishes
"""

from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Optional

from fastapi.concurrency import run_in_threadpool

from ..chat import components
from ..chat.discord_client import DiscordClient
from ..chat.types import (
    INTERACTION_MESSAGE_COMPONENT,
    INTERACTION_MODAL_SUBMIT,
    INTERACTION_PING,
    RESPONSE_PONG,
    DiscordError,
)
from ..stores.types import StoreError
from ..utils.exceptions import OfferPersistenceError, WebhookDeliveryException
from ..utils.logger import get_logger
from .deal_messenger import DealMessenger
from .offer_service import OfferService

logger = get_logger(__name__)


@dataclass
class InteractionReply:
    """Immediate interaction response plus optional work to finish afterwards."""
    response: dict
    followup: Optional[Callable[[], Awaitable[None]]] = None


def _user_id(payload: dict) -> Optional[str]:
    # Guild interactions carry member.user, DMs carry user
    user = (payload.get("member") or {}).get("user") or payload.get("user") or {}
    return user.get("id")


class InteractionHandler:
    """Dispatches Discord interactions."""

    def __init__(self, offer_service: OfferService, messenger: DealMessenger, discord: DiscordClient):
        self.offer_service = offer_service
        self.messenger = messenger
        self.discord = discord

    async def handle(self, payload: dict) -> InteractionReply:
        interaction_type = payload.get("type")
        data = payload.get("data") or {}
        custom_id = data.get("custom_id") or ""

        if interaction_type == INTERACTION_PING:
            return InteractionReply({"type": RESPONSE_PONG})

        if interaction_type == INTERACTION_MESSAGE_COMPONENT:
            if custom_id == components.OFFER_BUTTON_ID:
                message_id = (payload.get("message") or {}).get("id", "")
                return InteractionReply(components.offer_modal_response(message_id))
            if custom_id.startswith(components.PROCESS_PAYOUT_PREFIX):
                return self._deferred(payload, self.payout_reply)

        if interaction_type == INTERACTION_MODAL_SUBMIT and custom_id.startswith(components.OFFER_MODAL_PREFIX):
            return self._deferred(payload, self.offer_reply)

        logger.warning(f"Unhandled interaction type={interaction_type} custom_id={custom_id!r}")
        return InteractionReply(components.ephemeral_response("❌ This action is not available."))

    def _deferred(self, payload: dict, producer: Callable[[dict], Awaitable[str]]) -> InteractionReply:
        return InteractionReply(
            components.deferred_ephemeral_response(),
            followup=partial(self._complete, payload, producer),
        )

    async def _complete(self, payload: dict, producer: Callable[[dict], Awaitable[str]]) -> None:
        content = await producer(payload)
        try:
            await self.discord.edit_original_response(
                payload.get("application_id", ""), payload.get("token", ""), {"content": content}
            )
        except DiscordError as e:
            logger.error(f"Could not deliver interaction reply: {e}")

    async def offer_reply(self, payload: dict) -> str:
        """
        Run an offer modal submission through the offer engine.

        Returns:
            Reply text for the seller
        """
        data = payload.get("data") or {}
        message_id = data.get("custom_id", "")[len(components.OFFER_MODAL_PREFIX):]
        values = components.modal_values(data)

        deal_id = None
        try:
            deal = await run_in_threadpool(self.offer_service.store.find_deal_by_message, message_id)
            deal_id = deal.deal_id if deal else None
        except StoreError as e:
            logger.warning(f"Deal lookup for message {message_id} failed: {e}")

        try:
            result = await run_in_threadpool(
                self.offer_service.submit_bid,
                deal_id,
                values.get(components.FIELD_SELLER_ID, ""),
                values.get(components.FIELD_OFFER_PRICE, ""),
                values.get(components.FIELD_VAT_TYPE, ""),
                _user_id(payload),
            )
        except OfferPersistenceError as e:
            logger.error(f"Offer for message {message_id} not saved: {e.message}")
            return "❌ Your offer could not be saved right now. Please submit it again."

        marker = "✅" if result.accepted else "❌"
        return f"{marker} {result.reason}"

    async def payout_reply(self, payload: dict) -> str:
        """Forward a payout and describe the outcome."""
        custom_id = (payload.get("data") or {}).get("custom_id", "")
        try:
            await self.messenger.process_payout(custom_id, payload.get("message") or {})
        except WebhookDeliveryException as e:
            logger.error(f"Payout processing failed: {e.message}")
            return "❌ Deal could not be sent to processing. Please try again."
        return "✅ Deal sent to processing."


# Singleton instance
_handler_instance: InteractionHandler | None = None


def get_interaction_handler() -> InteractionHandler:
    global _handler_instance
    if _handler_instance is None:
        from ..chat.discord_client import get_discord_client
        from .deal_messenger import get_deal_messenger
        from .offer_service import get_offer_service
        _handler_instance = InteractionHandler(get_offer_service(), get_deal_messenger(), get_discord_client())
    return _handler_instance


def reset_interaction_handler() -> None:
    """Reset the handler singleton (useful for testing)."""
    global _handler_instance
    _handler_instance = None
