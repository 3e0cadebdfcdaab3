"""
Value parsing for loosely-typed price and tax-type input.

WHAT: Turn raw form/record values into floats and TaxType members
WHY: Sellers type "12,50", "€ 99" etc; records may hold numbers or text
HOW: Locale fix-up, character stripping and a lenient float-prefix read
"""

from decimal import Decimal
import math
import re
from typing import Any

from ..models.offer import TaxType

_NON_NUMERIC = re.compile(r"[^\d.\-]")
# Longest leading float, the way a lenient parser reads "1.2.3" as 1.2
_FLOAT_PREFIX = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

_TAX_TYPES = {tax_type.value: tax_type for tax_type in TaxType}


def parse_numeric(value: Any) -> float | None:
    """
    Parse a price-like value.

    Finite numbers pass through unchanged. Strings get their first comma turned
    into a dot and everything except digits, dots and minus signs removed
    before parsing. Anything else, or anything that yields no finite number,
    gives None.

    Args:
        value: Raw value from a form field or store record

    Returns:
        Parsed number or None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value.replace(",", ".", 1))
        match = _FLOAT_PREFIX.match(cleaned)
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    return number if math.isfinite(number) else None


def normalize_tax_type(value: Any) -> TaxType | None:
    """
    Map a label to a TaxType.

    Exact and case-sensitive: "vat0", " VAT0" and "" all give None. This is
    the only gate keeping malformed tax types out of the comparison.
    """
    if isinstance(value, TaxType):
        return value
    if not isinstance(value, str):
        return None
    return _TAX_TYPES.get(value)
