"""
Pydantic API schemas for the HTTP endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation; camelCase keys match the Airtable automation payloads
HOW: Pydantic v2 models with field aliases (populate_by_name for Python callers)
"""

from typing import Optional, List, Union
from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Base model accepting both alias and field names."""
    model_config = ConfigDict(populate_by_name=True)


# ========== Deal posting ==========

class PartnerDealRequest(CamelModel):
    """Deal to announce in the deals channels."""
    product_name: str = Field(default="", alias="productName")
    sku: str = ""
    size: str = ""
    brand: str = ""
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    record_id: Optional[str] = Field(default=None, alias="recordId", description="Order record id")


class PartnerDealResponse(CamelModel):
    ok: bool = True
    message_ids: List[str] = Field(default_factory=list, alias="messageIds")


class DisableOffersRequest(CamelModel):
    record_id: Optional[str] = Field(default=None, alias="recordId")


class DisableOffersResponse(CamelModel):
    ok: bool = True
    disabled: int = Field(default=0, description="Messages whose buttons were disabled")


# ========== Payout channel ==========

class PayoutChannelRequest(CamelModel):
    """Accepted offer to open a private payout channel for."""
    order_id: str = Field(..., min_length=1, alias="orderId")
    product_name: str = Field(default="", alias="productName")
    sku: str = ""
    size: str = ""
    brand: str = ""
    payout: float = Field(..., description="Agreed payout amount")
    seller_code: str = Field(..., min_length=1, alias="sellerCode")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    discord_user_id: str = Field(..., min_length=1, alias="discordUserId")
    vat_type: Optional[str] = Field(default=None, alias="vatType")


class PayoutChannelResponse(CamelModel):
    ok: bool = True
    channel_id: str = Field(..., alias="channelId")


# ========== Offers ==========

class SubmitOfferRequest(CamelModel):
    """Seller offer as typed; parsing happens in the offer engine."""
    deal_id: Optional[str] = Field(default=None, alias="dealId")
    seller_code: str = Field(..., alias="sellerCode", description="Seller number, digits only")
    price: Union[str, float] = Field(..., description="Offer price, e.g. '99,50'")
    tax_type: str = Field(..., alias="taxType", description="Margin, VAT0 or VAT21")
    discord_user_id: Optional[str] = Field(default=None, alias="discordUserId")


class OfferValue(CamelModel):
    """A price in its own tax type with its gross comparison value."""
    normalized: float
    raw: float
    tax_type: Optional[str] = Field(default=None, alias="taxType")
    display: str


class SubmitOfferResponse(CamelModel):
    accepted: bool
    outcome: str
    reason: Optional[str] = None
    normalized_value: Optional[float] = Field(default=None, alias="normalizedValue")
    bid_id: Optional[str] = Field(default=None, alias="bidId")
    current_best: Optional[OfferValue] = Field(default=None, alias="currentBest")
    max_allowed: Optional[OfferValue] = Field(default=None, alias="maxAllowed")


class BestOfferResponse(CamelModel):
    deal_id: str = Field(..., alias="dealId")
    best: Optional[OfferValue] = None
    undercut_step: float = Field(..., alias="undercutStep")
    max_allowed_gross: Optional[float] = Field(default=None, alias="maxAllowedGross")
