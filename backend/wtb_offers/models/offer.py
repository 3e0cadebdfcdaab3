"""
Offer domain models.

WHAT: Tax types, normalized values, engine config and submission results
WHY: One vocabulary shared by the parser, resolver, validator and callers
HOW: str-valued Enum plus plain dataclasses (derived values are never persisted)
"""

from dataclasses import dataclass
from typing import Optional
import enum


class TaxType(str, enum.Enum):
    """Pricing basis a seller quotes an offer under."""
    MARGIN = "Margin"
    VAT0 = "VAT0"
    VAT21 = "VAT21"


@dataclass(frozen=True)
class NormalizedValue:
    """A price together with its gross comparison value."""
    normalized: float
    raw: float
    tax_type: Optional[TaxType]


@dataclass(frozen=True)
class EngineConfig:
    """Bidding rules passed into the engine at construction time."""
    undercut_step: float = 2.5
    vat_multiplier: float = 1.21
    tolerance: float = 1e-9
    currency_symbol: str = "€"
    seller_code_prefix: str = "SE-"

    @classmethod
    def from_settings(cls, settings) -> "EngineConfig":
        return cls(
            undercut_step=settings.MIN_UNDERCUT_STEP,
            vat_multiplier=settings.VAT_MULTIPLIER,
            tolerance=settings.UNDERCUT_TOLERANCE,
            currency_symbol=settings.CURRENCY_SYMBOL,
            seller_code_prefix=settings.SELLER_CODE_PREFIX,
        )


@dataclass(frozen=True)
class UndercutDecision:
    """Outcome of comparing a proposed offer against the current best."""
    accepted: bool
    proposed_normalized: Optional[float] = None
    current_best: Optional[NormalizedValue] = None
    max_allowed: Optional[NormalizedValue] = None  # in the bidder's own tax type
    current_best_display: Optional[str] = None
    max_allowed_display: Optional[str] = None


class SubmitOutcome(str, enum.Enum):
    """Why a submission ended the way it did."""
    ACCEPTED = "accepted"
    INVALID_SELLER_CODE = "invalid_seller_code"
    INVALID_TAX_TYPE = "invalid_tax_type"
    INVALID_PRICE = "invalid_price"
    DEAL_NOT_FOUND = "deal_not_found"
    DEAL_CLOSED = "deal_closed"
    UNDERCUT_REQUIRED = "undercut_required"
    UNKNOWN_SELLER = "unknown_seller"
    SELLER_LOOKUP_FAILED = "seller_lookup_failed"
    OFFER_REFUSED = "offer_refused"


@dataclass(frozen=True)
class SubmitResult:
    """Result of submit_bid, relayed verbatim to the seller."""
    accepted: bool
    outcome: SubmitOutcome
    reason: Optional[str] = None
    normalized_value: Optional[float] = None
    seller_code: Optional[str] = None
    price: Optional[float] = None
    tax_type: Optional[TaxType] = None
    bid_id: Optional[str] = None
    decision: Optional[UndercutDecision] = None
