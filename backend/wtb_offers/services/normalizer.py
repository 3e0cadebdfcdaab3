"""
Price normalization between tax bases.

WHAT: Convert (price, tax type) to a gross comparison value and back
WHY: Offers quoted as VAT0 must compete with Margin/VAT21 offers
HOW: VAT0 is grossed up by the VAT multiplier; other bases are already gross
"""

import math

from ..models.offer import TaxType

DEFAULT_VAT_MULTIPLIER = 1.21


def normalize(price: float | None, tax_type: TaxType | None,
              vat_multiplier: float = DEFAULT_VAT_MULTIPLIER) -> float | None:
    """
    Gross value used to rank offers.

    Unrecognized or missing tax types are treated as already gross; the
    parser upstream decides what is admissible.
    """
    if price is None or not math.isfinite(price):
        return None
    if tax_type == TaxType.VAT0:
        return price * vat_multiplier
    return price


def denormalize(gross: float | None, tax_type: TaxType | None,
                vat_multiplier: float = DEFAULT_VAT_MULTIPLIER) -> float | None:
    """Express a gross value in the given tax type."""
    if gross is None or not math.isfinite(gross):
        return None
    if tax_type == TaxType.VAT0:
        return gross / vat_multiplier
    return gross
