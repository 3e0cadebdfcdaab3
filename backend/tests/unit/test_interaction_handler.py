"""
Unit tests for Discord interaction handling.

WHAT: Test routing of pings, buttons and modal submissions
WHY: Every seller offer arrives through this handler
HOW: Real OfferService over the fake store; Discord client and messenger mocked
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from wtb_offers.chat.types import DiscordUnavailableError
from wtb_offers.services.interaction_handler import InteractionHandler
from wtb_offers.utils.exceptions import WebhookDeliveryException


def _modal_payload(message_id="m1", seller="00001", vat="Margin", price="100"):
    def row(custom_id, value):
        return {"type": 1, "components": [{"type": 4, "custom_id": custom_id, "value": value}]}

    return {
        "type": 5,
        "application_id": "app1",
        "token": "tok",
        "member": {"user": {"id": "u1"}},
        "data": {
            "custom_id": f"seller_offer_modal:{message_id}",
            "components": [row("seller_id", seller), row("vat_type", vat), row("offer_price", price)],
        },
    }


@pytest.fixture
def discord():
    client = MagicMock()
    client.edit_original_response = AsyncMock(return_value={})
    return client


@pytest.fixture
def messenger():
    messenger = MagicMock()
    messenger.process_payout = AsyncMock(return_value={})
    return messenger


@pytest.fixture
def handler(offer_service, messenger, discord, fake_store):
    fake_store.add_seller("SE-00001")
    fake_store.add_deal("rec1", message_ids=["m1"])
    fake_store.add_bid("rec1", 90, "VAT0")
    return InteractionHandler(offer_service, messenger, discord)


async def _reply_text(handler, payload, discord) -> str:
    reply = await handler.handle(payload)
    assert reply.followup is not None
    await reply.followup()
    return discord.edit_original_response.await_args.args[2]["content"]


@pytest.mark.unit
class TestImmediateResponses:
    """Test interactions answered inline."""

    @pytest.mark.asyncio
    async def test_ping(self, handler):
        reply = await handler.handle({"type": 1})

        assert reply.response == {"type": 1}
        assert reply.followup is None

    @pytest.mark.asyncio
    async def test_offer_button_opens_modal(self, handler):
        reply = await handler.handle({
            "type": 3, "message": {"id": "m1"}, "data": {"custom_id": "seller_offer"},
        })

        assert reply.response["type"] == 9
        assert reply.response["data"]["custom_id"] == "seller_offer_modal:m1"

    @pytest.mark.asyncio
    async def test_unknown_action(self, handler):
        reply = await handler.handle({"type": 3, "data": {"custom_id": "something_else"}})

        assert reply.response["type"] == 4
        assert reply.response["data"]["content"] == "❌ This action is not available."
        assert reply.followup is None


@pytest.mark.unit
class TestOfferModal:
    """Test offer modal submissions."""

    @pytest.mark.asyncio
    async def test_deferred_then_completed(self, handler, discord, fake_store):
        reply = await handler.handle(_modal_payload(price="100"))

        assert reply.response == {"type": 5, "data": {"flags": 64}}
        await reply.followup()

        app_id, token, body = discord.edit_original_response.await_args.args
        assert (app_id, token) == ("app1", "tok")
        assert body["content"] == "✅ Offer submitted.\nSeller: SE-00001\nOffer: €100.00 (Margin)"
        assert fake_store.created[-1].deal_id == "rec1"
        assert fake_store.created[-1].seller_discord_id == "u1"

    @pytest.mark.asyncio
    async def test_rejection_text(self, handler, discord):
        content = await _reply_text(handler, _modal_payload(price="107"), discord)

        assert content.startswith("❌ Offer too high.\nCurrent lowest: €90.00 (VAT0)")

    @pytest.mark.asyncio
    async def test_input_error_text(self, handler, discord):
        content = await _reply_text(handler, _modal_payload(vat="vat0"), discord)
        assert content == "❌ VAT Type must be one of: Margin, VAT0, VAT21."

    @pytest.mark.asyncio
    async def test_unknown_message_stores_unlinked(self, handler, discord, fake_store):
        content = await _reply_text(handler, _modal_payload(message_id="m404", price="500"), discord)

        assert content.startswith("✅")
        assert fake_store.created[-1].deal_id is None

    @pytest.mark.asyncio
    async def test_deal_lookup_failure_stores_unlinked(self, handler, discord, fake_store):
        fake_store.failing = {"find_deal_by_message"}

        content = await _reply_text(handler, _modal_payload(price="500"), discord)

        assert content.startswith("✅")
        assert fake_store.created[-1].deal_id is None

    @pytest.mark.asyncio
    async def test_save_failure_asks_to_retry(self, handler, discord, fake_store):
        fake_store.failing = {"create_bid"}

        content = await _reply_text(handler, _modal_payload(), discord)

        assert content == "❌ Your offer could not be saved right now. Please submit it again."

    @pytest.mark.asyncio
    async def test_dm_user_id(self, handler, discord, fake_store):
        payload = _modal_payload()
        del payload["member"]
        payload["user"] = {"id": "u2"}

        await _reply_text(handler, payload, discord)

        assert fake_store.created[-1].seller_discord_id == "u2"

    @pytest.mark.asyncio
    async def test_reply_delivery_failure_is_swallowed(self, handler, discord):
        discord.edit_original_response.side_effect = DiscordUnavailableError("down")

        reply = await handler.handle(_modal_payload())
        await reply.followup()

        discord.edit_original_response.assert_awaited_once()


@pytest.mark.unit
class TestProcessPayoutButton:
    """Test the Process Deal button."""

    def _payload(self):
        return {
            "type": 3,
            "application_id": "app1",
            "token": "tok",
            "message": {"id": "m9", "embeds": []},
            "data": {"custom_id": "process_payout:REC1:SE-00001:42"},
        }

    @pytest.mark.asyncio
    async def test_success(self, handler, discord, messenger):
        content = await _reply_text(handler, self._payload(), discord)

        assert content == "✅ Deal sent to processing."
        messenger.process_payout.assert_awaited_once_with(
            "process_payout:REC1:SE-00001:42", {"id": "m9", "embeds": []}
        )

    @pytest.mark.asyncio
    async def test_webhook_failure(self, handler, discord, messenger):
        messenger.process_payout.side_effect = WebhookDeliveryException("https://hooks.test", "HTTP 500")

        content = await _reply_text(handler, self._payload(), discord)

        assert content == "❌ Deal could not be sent to processing. Please try again."
