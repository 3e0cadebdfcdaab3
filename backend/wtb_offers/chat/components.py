"""
Discord message, embed and component builders.

WHAT: Payload builders for deal posts, the offer modal and payout channels
WHY: Keep Discord JSON shapes in one place, out of handlers and services
HOW: Plain dict builders following the Discord API component schema
"""

import copy
from typing import Any

from .types import (
    BUTTON_PRIMARY,
    BUTTON_SUCCESS,
    COMPONENT_ACTION_ROW,
    COMPONENT_BUTTON,
    COMPONENT_TEXT_INPUT,
    FLAG_EPHEMERAL,
    RESPONSE_CHANNEL_MESSAGE,
    RESPONSE_DEFERRED_CHANNEL_MESSAGE,
    RESPONSE_MODAL,
    TEXT_INPUT_SHORT,
)

OFFER_BUTTON_ID = "seller_offer"
OFFER_MODAL_PREFIX = "seller_offer_modal:"
PROCESS_PAYOUT_PREFIX = "process_payout:"

FIELD_SELLER_ID = "seller_id"
FIELD_VAT_TYPE = "vat_type"
FIELD_OFFER_PRICE = "offer_price"

DEAL_COLOR = 0xF1C40F
ACCEPTED_COLOR = 0x57F287

# Payout embed field names, read back when the payout is processed
PAYOUT_ORDER = "Order"
PAYOUT_PRODUCT = "Product"
PAYOUT_SKU = "SKU"
PAYOUT_SIZE = "Size"
PAYOUT_BRAND = "Brand"
PAYOUT_AMOUNT = "Payout"
PAYOUT_SELLER = "Seller"
PAYOUT_VAT_TYPE = "VAT Type"
# Discord rejects empty field values
EMPTY_FIELD = "-"


def deal_embed(product_name: str, sku: str, size: str, brand: str,
               image_url: str | None = None) -> dict:
    """Embed announcing a new WTB deal."""
    embed = {
        "title": "🔥 NEW WTB DEAL (OFFER ONLY)",
        "description": f"**{product_name}**\n{sku}\n{size}\n{brand}\n\nClick below to submit your offer.",
        "color": DEAL_COLOR,
    }
    if image_url:
        embed["image"] = {"url": image_url}
    return embed


def offer_button_row() -> dict:
    return {
        "type": COMPONENT_ACTION_ROW,
        "components": [{
            "type": COMPONENT_BUTTON,
            "custom_id": OFFER_BUTTON_ID,
            "label": "Offer",
            "style": BUTTON_SUCCESS,
        }],
    }


def disabled_components(rows: list[dict]) -> list[dict]:
    """Copy of a message's component rows with every button disabled."""
    disabled = copy.deepcopy(rows or [])
    for row in disabled:
        for component in row.get("components", []):
            if component.get("type") == COMPONENT_BUTTON:
                component["disabled"] = True
    return disabled


def _text_input_row(custom_id: str, label: str) -> dict:
    return {
        "type": COMPONENT_ACTION_ROW,
        "components": [{
            "type": COMPONENT_TEXT_INPUT,
            "custom_id": custom_id,
            "label": label,
            "style": TEXT_INPUT_SHORT,
            "required": True,
        }],
    }


def offer_modal_response(message_id: str) -> dict:
    """Interaction response opening the offer form for a deal message."""
    return {
        "type": RESPONSE_MODAL,
        "data": {
            "custom_id": f"{OFFER_MODAL_PREFIX}{message_id}",
            "title": "Enter Seller ID, VAT & Offer",
            "components": [
                _text_input_row(FIELD_SELLER_ID, "Seller ID (e.g. 00001)"),
                _text_input_row(FIELD_VAT_TYPE, "VAT Type (Margin / VAT0 / VAT21)"),
                _text_input_row(FIELD_OFFER_PRICE, "Your Offer (€)"),
            ],
        },
    }


def modal_values(data: dict) -> dict[str, str]:
    """Flatten submitted modal rows into {custom_id: value}."""
    values = {}
    for row in data.get("components", []) or []:
        for component in row.get("components", []) or []:
            custom_id = component.get("custom_id")
            if custom_id:
                values[custom_id] = component.get("value") or ""
    return values


def ephemeral_response(content: str) -> dict:
    """Interaction response only the clicking user sees."""
    return {
        "type": RESPONSE_CHANNEL_MESSAGE,
        "data": {"content": content, "flags": FLAG_EPHEMERAL},
    }


def deferred_ephemeral_response() -> dict:
    """Acknowledge now, answer later through the interaction webhook."""
    return {
        "type": RESPONSE_DEFERRED_CHANNEL_MESSAGE,
        "data": {"flags": FLAG_EPHEMERAL},
    }


def payout_embed(
    *,
    order_id: str,
    product_name: str,
    sku: str,
    size: str,
    brand: str,
    payout: str,
    seller_code: str,
    vat_type: str | None = None,
    image_url: str | None = None,
) -> dict:
    """Embed posted in a payout channel once an offer is accepted."""
    fields = [
        (PAYOUT_ORDER, order_id),
        (PAYOUT_PRODUCT, product_name),
        (PAYOUT_SKU, sku),
        (PAYOUT_SIZE, size),
        (PAYOUT_BRAND, brand),
        (PAYOUT_AMOUNT, payout),
        (PAYOUT_SELLER, seller_code),
    ]
    if vat_type:
        fields.append((PAYOUT_VAT_TYPE, vat_type))

    embed: dict[str, Any] = {
        "title": "✅ Offer Accepted",
        "color": ACCEPTED_COLOR,
        "fields": [
            {"name": name, "value": str(value) if value not in (None, "") else EMPTY_FIELD, "inline": True}
            for name, value in fields
        ],
    }
    if image_url:
        embed["image"] = {"url": image_url}
    return embed


def embed_fields(embed: dict) -> dict[str, str]:
    """Read an embed's fields back as {name: value}."""
    return {
        field["name"]: "" if field.get("value") == EMPTY_FIELD else field.get("value", "")
        for field in embed.get("fields", []) or []
        if field.get("name")
    }


def process_payout_row(order_id: str, seller_code: str, discord_user_id: str) -> dict:
    return {
        "type": COMPONENT_ACTION_ROW,
        "components": [{
            "type": COMPONENT_BUTTON,
            "custom_id": f"{PROCESS_PAYOUT_PREFIX}{order_id}:{seller_code}:{discord_user_id}",
            "label": "Process Deal",
            "style": BUTTON_PRIMARY,
        }],
    }
