"""
Deal messaging on Discord.

WHAT: Post deals, disable their offer buttons, open payout channels, forward payouts
WHY: Airtable automations drive the bot through these operations
HOW: DiscordClient for chat calls; store calls run in the threadpool
"""

from fastapi.concurrency import run_in_threadpool
import httpx

from ..chat import components
from ..chat.discord_client import DiscordClient
from ..chat.types import (
    CHANNEL_GUILD_TEXT,
    OVERWRITE_MEMBER,
    OVERWRITE_ROLE,
    PERMISSION_READ_MESSAGE_HISTORY,
    PERMISSION_SEND_MESSAGES,
    PERMISSION_VIEW_CHANNEL,
    DiscordError,
    DiscordResponseError,
    DiscordUnavailableError,
)
from ..core.config import settings
from ..models.api_schemas import PartnerDealRequest, PayoutChannelRequest
from ..stores.base import OfferStore
from ..stores.types import StoreError
from ..utils.exceptions import ChannelSetupException, DealNotFoundException, WebhookDeliveryException
from ..utils.logger import get_logger
from .display import format_money
from .value_parser import parse_numeric

logger = get_logger(__name__)


class DealMessenger:
    """Discord-side operations for deals."""

    def __init__(
        self,
        discord: DiscordClient,
        store: OfferStore,
        *,
        deals_channel_ids: list[str] | None = None,
        payout_category_id: str | None = None,
        webhook_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.discord = discord
        self.store = store
        self.deals_channel_ids = deals_channel_ids if deals_channel_ids is not None \
            else settings.get_deals_channel_ids()
        self.payout_category_id = payout_category_id if payout_category_id is not None \
            else settings.PAYOUT_CATEGORY_ID
        self.webhook_url = webhook_url if webhook_url is not None else settings.PROCESS_DEAL_WEBHOOK_URL
        self.http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(settings.DISCORD_TIMEOUT))

    async def post_offer_deal(self, deal: PartnerDealRequest) -> list[str]:
        """
        Announce a deal in every deals channel.

        Channels Discord refuses (deleted, no access) or cannot reach are
        skipped. When the deal has a record id, the ids of the messages that
        were posted are saved on it and its buttons are marked enabled.

        Returns:
            IDs of the posted messages

        Raises:
            DiscordUnavailableError: Discord unreachable and nothing was posted
        """
        payload = {
            "embeds": [components.deal_embed(
                deal.product_name, deal.sku, deal.size, deal.brand, deal.image_url
            )],
            "components": [components.offer_button_row()],
        }

        message_ids = []
        outage = None
        for channel_id in self.deals_channel_ids:
            try:
                message = await self.discord.send_message(channel_id, payload)
            except DiscordUnavailableError as e:
                logger.error(f"Deals channel {channel_id} not reachable: {e}")
                outage = e
                continue
            except DiscordResponseError as e:
                logger.warning(f"Skipping deals channel {channel_id}: {e}")
                continue
            message_ids.append(str(message["id"]))

        # Nothing posted: let the caller retry the whole deal
        if outage is not None and not message_ids:
            raise outage

        if deal.record_id:
            await run_in_threadpool(
                self.store.update_deal_messaging,
                deal.record_id,
                message_ids=message_ids,
                buttons_disabled=False,
            )

        logger.info(f"Posted deal {deal.record_id} to {len(message_ids)} channel(s)")
        return message_ids

    async def disable_offer_messages(self, order_id: str) -> int:
        """
        Disable the Offer button on every message posted for a deal.

        Returns:
            Number of messages edited

        Raises:
            DealNotFoundException: No deal record with this id
        """
        try:
            deal = await run_in_threadpool(self.store.find_deal, order_id)
        except StoreError as e:
            logger.error(f"Cannot disable offers for {order_id}, deal lookup failed: {e}")
            return 0

        if deal is None:
            raise DealNotFoundException(order_id)
        if not deal.message_ids:
            return 0

        disabled = 0
        for channel_id in self.deals_channel_ids:
            for message_id in deal.message_ids:
                try:
                    message = await self.discord.get_message(channel_id, message_id)
                    if not message:
                        continue
                    await self.discord.edit_message(channel_id, message_id, {
                        "components": components.disabled_components(message.get("components", [])),
                    })
                    disabled += 1
                except DiscordError as e:
                    logger.warning(f"Could not disable message {message_id} in {channel_id}: {e}")

        try:
            await run_in_threadpool(self.store.update_deal_messaging, order_id, buttons_disabled=True)
        except StoreError as e:
            logger.error(f"Could not mark deal {order_id} as disabled: {e}")

        logger.info(f"Disabled {disabled} offer message(s) for deal {order_id}")
        return disabled

    async def open_payout_channel(self, request: PayoutChannelRequest) -> str:
        """
        Create a private channel for an accepted offer.

        Only the seller (and roles with admin rights) can see it. The
        accepted-offer embed carries a Process Deal button.

        Returns:
            ID of the new channel

        Raises:
            ChannelSetupException: Payout category missing or not in a guild
        """
        category = await self.discord.get_channel(self.payout_category_id) \
            if self.payout_category_id else None
        if not category or not category.get("guild_id"):
            raise ChannelSetupException(self.payout_category_id or "-", "Invalid payout category")

        guild_id = category["guild_id"]
        channel = await self.discord.create_guild_channel(guild_id, {
            "name": f"wtb-{request.order_id}".lower(),
            "type": CHANNEL_GUILD_TEXT,
            "parent_id": category["id"],
            "permission_overwrites": [
                # @everyone's role id is the guild id
                {"id": guild_id, "type": OVERWRITE_ROLE, "deny": str(PERMISSION_VIEW_CHANNEL)},
                {
                    "id": request.discord_user_id,
                    "type": OVERWRITE_MEMBER,
                    "allow": str(
                        PERMISSION_VIEW_CHANNEL
                        | PERMISSION_SEND_MESSAGES
                        | PERMISSION_READ_MESSAGE_HISTORY
                    ),
                },
            ],
        })

        embed = components.payout_embed(
            order_id=request.order_id,
            product_name=request.product_name,
            sku=request.sku,
            size=request.size,
            brand=request.brand,
            payout=format_money(request.payout, settings.CURRENCY_SYMBOL),
            seller_code=request.seller_code,
            vat_type=request.vat_type,
            image_url=request.image_url,
        )
        await self.discord.send_message(channel["id"], {
            "content": f"<@{request.discord_user_id}>",
            "embeds": [embed],
            "components": [components.process_payout_row(
                request.order_id, request.seller_code, request.discord_user_id
            )],
        })

        logger.info(f"Opened payout channel {channel['id']} for order {request.order_id}")
        return str(channel["id"])

    async def process_payout(self, custom_id: str, message: dict) -> dict:
        """
        Forward an accepted deal to the processing webhook.

        Args:
            custom_id: process_payout:<order>:<seller code>:<discord user>
            message: The payout message the button belongs to

        Returns:
            Payload that was delivered

        Raises:
            WebhookDeliveryException: Webhook not configured or delivery failed
        """
        parts = custom_id[len(components.PROCESS_PAYOUT_PREFIX):].split(":")
        order_id, seller_code, discord_user_id = (parts + ["", "", ""])[:3]

        embeds = message.get("embeds") or [{}]
        embed = embeds[0]
        fields = components.embed_fields(embed)

        payload = {
            "orderId": fields.get(components.PAYOUT_ORDER) or order_id,
            "productName": fields.get(components.PAYOUT_PRODUCT),
            "sku": fields.get(components.PAYOUT_SKU),
            "size": fields.get(components.PAYOUT_SIZE),
            "brand": fields.get(components.PAYOUT_BRAND),
            "payout": parse_numeric(fields.get(components.PAYOUT_AMOUNT)),
            "sellerCode": seller_code,
            "discordUserId": discord_user_id,
            "vatType": fields.get(components.PAYOUT_VAT_TYPE) or None,
            "imageUrl": (embed.get("image") or {}).get("url"),
        }

        if not self.webhook_url:
            raise WebhookDeliveryException("-", "PROCESS_DEAL_WEBHOOK_URL is not set")

        try:
            response = await self.http_client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise WebhookDeliveryException(self.webhook_url, f"HTTP {e.response.status_code}") from e
        except httpx.TransportError as e:
            raise WebhookDeliveryException(self.webhook_url, str(e) or type(e).__name__) from e

        logger.info(f"Forwarded payout for order {payload['orderId']} ({seller_code})")
        return payload

    async def close(self):
        await self.http_client.aclose()


# Singleton instance
_messenger_instance: DealMessenger | None = None


def get_deal_messenger() -> DealMessenger:
    """Get the messenger bound to the shared Discord client and store."""
    global _messenger_instance
    if _messenger_instance is None:
        from ..chat.discord_client import get_discord_client
        from ..stores.factory import get_store
        _messenger_instance = DealMessenger(get_discord_client(), get_store())
    return _messenger_instance


def reset_deal_messenger() -> None:
    """Reset the messenger singleton (useful for testing)."""
    global _messenger_instance
    _messenger_instance = None
