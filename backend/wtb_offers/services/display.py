"""
Display formatting for prices.

WHAT: Render prices with both tax-basis interpretations
WHY: Sellers quote in their own basis but compete in gross terms
HOW: Same multiplier as the normalizer; Decimal rounding to the cent
"""

from decimal import Context, Decimal, ROUND_FLOOR, ROUND_HALF_UP

from ..models.offer import NormalizedValue, TaxType
from .normalizer import DEFAULT_VAT_MULTIPLIER

_CENT = Decimal("0.01")
# Float noise from VAT arithmetic stays far below this
_NOISE = Decimal("1e-9")
# Room for 9 decimals on very large amounts
_CONTEXT = Context(prec=60)


def round_cents(amount: float, floor: bool = False) -> float:
    """
    Round to two decimals, optionally always downwards.

    Goes through the shortest repr of the float and drops noise below
    1e-9 first, so 106.39999999999999 floors to 106.40, not 106.39.
    """
    exact = Decimal(repr(amount))
    if floor:
        exact = exact.quantize(_NOISE, rounding=ROUND_HALF_UP, context=_CONTEXT)
        return float(exact.quantize(_CENT, rounding=ROUND_FLOOR, context=_CONTEXT))
    return float(exact.quantize(_CENT, rounding=ROUND_HALF_UP, context=_CONTEXT))


def format_money(amount: float, currency_symbol: str = "€", floor: bool = False) -> str:
    """Format a single amount, e.g. €147.50."""
    return f"{currency_symbol}{round_cents(amount, floor=floor):.2f}"


def format_for_display(
    value: NormalizedValue,
    *,
    vat_multiplier: float = DEFAULT_VAT_MULTIPLIER,
    currency_symbol: str = "€",
    floor: bool = False,
) -> str:
    """
    Show a price in its own tax type plus the other basis.

    VAT0 is shown with its VAT21 equivalent; Margin and VAT21 are shown
    with their VAT0 equivalent.

    Args:
        value: Price to render (raw is in value.tax_type)
        vat_multiplier: Must be the multiplier the normalizer used
        currency_symbol: Prefix for each amount
        floor: Round both amounts down instead of half-up

    Returns:
        e.g. "€147.50 (Margin) / €121.90 (VAT0)"
    """
    tax_type = value.tax_type or TaxType.MARGIN
    own = format_money(value.raw, currency_symbol, floor=floor)

    if tax_type == TaxType.VAT0:
        other_amount = value.raw * vat_multiplier
        other_type = TaxType.VAT21
    else:
        other_amount = value.raw / vat_multiplier
        other_type = TaxType.VAT0

    other = format_money(other_amount, currency_symbol, floor=floor)
    return f"{own} ({tax_type.value}) / {other} ({other_type.value})"
