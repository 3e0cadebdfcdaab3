"""
Unit tests for deal messaging.

WHAT: Test DealMessenger posting, disabling, payout channels and payout forwarding
WHY: These are the Discord side effects the Airtable automations trigger
HOW: respx for Discord and the processing webhook; fake store for records
"""

import json

import httpx
import pytest
import pytest_asyncio
import respx

from wtb_offers.chat.discord_client import DiscordClient
from wtb_offers.chat.types import DiscordUnavailableError
from wtb_offers.models.api_schemas import PartnerDealRequest, PayoutChannelRequest
from wtb_offers.services.deal_messenger import DealMessenger
from wtb_offers.utils.exceptions import (
    ChannelSetupException,
    DealNotFoundException,
    WebhookDeliveryException,
)

DISCORD = "https://discord.test/api/v10"
WEBHOOK = "https://hooks.test/process-deal"


@pytest_asyncio.fixture
async def messenger(fake_store):
    discord = DiscordClient("bot-token", base_url=DISCORD)
    messenger = DealMessenger(
        discord,
        fake_store,
        deals_channel_ids=["c1", "c2"],
        payout_category_id="cat1",
        webhook_url=WEBHOOK,
        http_client=httpx.AsyncClient(),
    )
    yield messenger
    await messenger.close()
    await discord.close()


def _deal_request(**overrides) -> PartnerDealRequest:
    data = {"productName": "Dunk Low", "sku": "DD1391-100", "size": "42", "brand": "Nike",
            "recordId": "rec1"}
    data.update(overrides)
    return PartnerDealRequest(**data)


@pytest.mark.unit
class TestPostOfferDeal:
    """Test deal announcements."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_posts_to_every_channel_and_records_ids(self, messenger, fake_store):
        fake_store.add_deal("rec1", buttons_disabled=True)
        route_c1 = respx.post(f"{DISCORD}/channels/c1/messages").mock(
            return_value=httpx.Response(200, json={"id": "m1"})
        )
        respx.post(f"{DISCORD}/channels/c2/messages").mock(
            return_value=httpx.Response(200, json={"id": "m2"})
        )

        message_ids = await messenger.post_offer_deal(_deal_request())

        assert message_ids == ["m1", "m2"]
        payload = json.loads(route_c1.calls[0].request.content)
        assert "Dunk Low" in payload["embeds"][0]["description"]
        assert payload["components"][0]["components"][0]["custom_id"] == "seller_offer"
        assert fake_store.deals["rec1"].message_ids == ["m1", "m2"]
        assert fake_store.deals["rec1"].buttons_disabled is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_skips_refused_channel(self, messenger, fake_store):
        fake_store.add_deal("rec1")
        respx.post(f"{DISCORD}/channels/c1/messages").mock(
            return_value=httpx.Response(403, json={"message": "Missing Access"})
        )
        respx.post(f"{DISCORD}/channels/c2/messages").mock(
            return_value=httpx.Response(200, json={"id": "m2"})
        )

        assert await messenger.post_offer_deal(_deal_request()) == ["m2"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_without_record_id_nothing_is_stored(self, messenger, fake_store):
        respx.post(url__regex=rf"{DISCORD}/channels/c\d/messages").mock(
            return_value=httpx.Response(200, json={"id": "m1"})
        )

        await messenger.post_offer_deal(_deal_request(recordId=None))

        assert fake_store.messaging_updates == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_discord_outage_propagates(self, messenger, fake_store):
        fake_store.add_deal("rec1")
        respx.post(url__regex=rf"{DISCORD}/channels/c\d/messages").mock(
            return_value=httpx.Response(503)
        )

        with pytest.raises(DiscordUnavailableError):
            await messenger.post_offer_deal(_deal_request())

        assert fake_store.messaging_updates == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_partial_outage_records_posted_messages(self, messenger, fake_store):
        fake_store.add_deal("rec1", buttons_disabled=True)
        respx.post(f"{DISCORD}/channels/c1/messages").mock(
            return_value=httpx.Response(200, json={"id": "m1"})
        )
        respx.post(f"{DISCORD}/channels/c2/messages").mock(side_effect=httpx.ReadTimeout("slow"))

        message_ids = await messenger.post_offer_deal(_deal_request())

        assert message_ids == ["m1"]
        assert fake_store.deals["rec1"].message_ids == ["m1"]
        assert fake_store.deals["rec1"].buttons_disabled is False


@pytest.mark.unit
class TestDisableOfferMessages:
    """Test closing a deal's offer buttons."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_disables_found_messages(self, messenger, fake_store):
        fake_store.add_deal("rec1", message_ids=["m1", "m2"])
        rows = [{"type": 1, "components": [{"type": 2, "custom_id": "seller_offer", "style": 3}]}]
        respx.get(f"{DISCORD}/channels/c1/messages/m1").mock(
            return_value=httpx.Response(200, json={"id": "m1", "components": rows})
        )
        respx.get(f"{DISCORD}/channels/c1/messages/m2").mock(return_value=httpx.Response(404))
        respx.get(f"{DISCORD}/channels/c2/messages/m1").mock(return_value=httpx.Response(404))
        respx.get(f"{DISCORD}/channels/c2/messages/m2").mock(
            return_value=httpx.Response(200, json={"id": "m2", "components": rows})
        )
        edit_m1 = respx.patch(f"{DISCORD}/channels/c1/messages/m1").mock(
            return_value=httpx.Response(200, json={"id": "m1"})
        )
        respx.patch(f"{DISCORD}/channels/c2/messages/m2").mock(
            return_value=httpx.Response(200, json={"id": "m2"})
        )

        disabled = await messenger.disable_offer_messages("rec1")

        assert disabled == 2
        edited = json.loads(edit_m1.calls[0].request.content)
        assert edited["components"][0]["components"][0]["disabled"] is True
        assert fake_store.deals["rec1"].buttons_disabled is True

    @pytest.mark.asyncio
    async def test_unknown_deal(self, messenger):
        with pytest.raises(DealNotFoundException):
            await messenger.disable_offer_messages("nope")

    @pytest.mark.asyncio
    async def test_no_messages(self, messenger, fake_store):
        fake_store.add_deal("rec1")
        assert await messenger.disable_offer_messages("rec1") == 0

    @pytest.mark.asyncio
    async def test_store_failure_disables_nothing(self, messenger, fake_store):
        fake_store.failing = {"find_deal"}
        assert await messenger.disable_offer_messages("rec1") == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_edit_failure_is_skipped(self, messenger, fake_store):
        fake_store.add_deal("rec1", message_ids=["m1"])
        respx.get(url__regex=rf"{DISCORD}/channels/c\d/messages/m1").mock(
            return_value=httpx.Response(200, json={"id": "m1", "components": []})
        )
        respx.patch(f"{DISCORD}/channels/c1/messages/m1").mock(return_value=httpx.Response(500))
        respx.patch(f"{DISCORD}/channels/c2/messages/m1").mock(
            return_value=httpx.Response(200, json={"id": "m1"})
        )

        assert await messenger.disable_offer_messages("rec1") == 1
        assert fake_store.deals["rec1"].buttons_disabled is True


def _payout_request(**overrides) -> PayoutChannelRequest:
    data = {
        "orderId": "REC1", "productName": "Dunk Low", "sku": "DD1391-100", "size": "42",
        "brand": "Nike", "payout": 147.5, "sellerCode": "SE-00001", "discordUserId": "42",
        "vatType": "Margin",
    }
    data.update(overrides)
    return PayoutChannelRequest(**data)


@pytest.mark.unit
class TestPayoutChannel:
    """Test payout channel setup."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_creates_private_channel(self, messenger):
        respx.get(f"{DISCORD}/channels/cat1").mock(
            return_value=httpx.Response(200, json={"id": "cat1", "guild_id": "g1", "type": 4})
        )
        create = respx.post(f"{DISCORD}/guilds/g1/channels").mock(
            return_value=httpx.Response(201, json={"id": "ch9"})
        )
        send = respx.post(f"{DISCORD}/channels/ch9/messages").mock(
            return_value=httpx.Response(200, json={"id": "m9"})
        )

        channel_id = await messenger.open_payout_channel(_payout_request())

        assert channel_id == "ch9"
        channel = json.loads(create.calls[0].request.content)
        assert channel["name"] == "wtb-rec1"
        assert channel["parent_id"] == "cat1"
        everyone, seller = channel["permission_overwrites"]
        assert everyone["id"] == "g1" and everyone["deny"] == str(1 << 10)
        assert seller["id"] == "42" and int(seller["allow"]) & (1 << 11)

        message = json.loads(send.calls[0].request.content)
        assert message["content"] == "<@42>"
        fields = {f["name"]: f["value"] for f in message["embeds"][0]["fields"]}
        assert fields["Payout"] == "€147.50"
        assert message["components"][0]["components"][0]["custom_id"] == "process_payout:REC1:SE-00001:42"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_category(self, messenger):
        respx.get(f"{DISCORD}/channels/cat1").mock(return_value=httpx.Response(404))

        with pytest.raises(ChannelSetupException):
            await messenger.open_payout_channel(_payout_request())


@pytest.mark.unit
class TestProcessPayout:
    """Test payout forwarding to the processing webhook."""

    def _message(self):
        return {"embeds": [{
            "fields": [
                {"name": "Order", "value": "REC1"},
                {"name": "Product", "value": "Dunk Low"},
                {"name": "SKU", "value": "DD1391-100"},
                {"name": "Size", "value": "-"},
                {"name": "Brand", "value": "Nike"},
                {"name": "Payout", "value": "€147.50"},
                {"name": "Seller", "value": "SE-00001"},
            ],
            "image": {"url": "https://img.test/a.png"},
        }]}

    @pytest.mark.asyncio
    @respx.mock
    async def test_forwards_payload(self, messenger):
        hook = respx.post(WEBHOOK).mock(return_value=httpx.Response(200))

        payload = await messenger.process_payout("process_payout:REC1:SE-00001:42", self._message())

        assert json.loads(hook.calls[0].request.content) == payload
        assert payload == {
            "orderId": "REC1",
            "productName": "Dunk Low",
            "sku": "DD1391-100",
            "size": "",
            "brand": "Nike",
            "payout": 147.5,
            "sellerCode": "SE-00001",
            "discordUserId": "42",
            "vatType": None,
            "imageUrl": "https://img.test/a.png",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_webhook_error(self, messenger):
        respx.post(WEBHOOK).mock(return_value=httpx.Response(500))

        with pytest.raises(WebhookDeliveryException, match="HTTP 500"):
            await messenger.process_payout("process_payout:REC1:SE-00001:42", self._message())

    @pytest.mark.asyncio
    async def test_webhook_not_configured(self, fake_store):
        messenger = DealMessenger(
            DiscordClient("t", base_url=DISCORD), fake_store,
            deals_channel_ids=[], payout_category_id="", webhook_url="",
            http_client=httpx.AsyncClient(),
        )

        with pytest.raises(WebhookDeliveryException):
            await messenger.process_payout("process_payout:REC1:SE-00001:42", self._message())

        await messenger.close()
