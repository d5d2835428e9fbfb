"""
Monetary value parsing and formatting.

parse_amount is the single place OCR text becomes a number. "No value" is
None, never 0: an empty box on a form and a box holding "0" mean different
things downstream.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

# Rounding precision for currency amounts
CURRENCY_PRECISION = Decimal("0.01")
# Precision of stored relative differences (basis points)
PERCENT_PRECISION = Decimal("0.0001")

_STRIP_PATTERN = re.compile(r"[$,\s]")
_NUMBER_PATTERN = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")


def parse_amount(text: object) -> Optional[Decimal]:
    """
    Parse a dollar amount string into a Decimal.

    Handles: "$85,000", "85000", "85,000.00", "(5,000)" and "-5,000" for
    negatives, "$-5". Empty text, a lone dash, exponent notation ("1e5")
    and anything else that is not plain digits after cleanup give None.

    Examples:
        >>> parse_amount("$85,000")
        Decimal('85000')
        >>> parse_amount("(5,000)")
        Decimal('-5000')
        >>> parse_amount("-") is None
        True
    """
    if not isinstance(text, str):
        return None

    cleaned = text.strip()
    if not cleaned or cleaned == "-":
        return None

    negative = False

    # Parenthetical negatives: (5,000) = -5000
    if cleaned.startswith("(") and cleaned.endswith(")"):
        negative = True
        cleaned = cleaned[1:-1].strip()

    cleaned = _STRIP_PATTERN.sub("", cleaned)

    # Leading minus, before or after the currency symbol
    if cleaned.startswith("-"):
        negative = True
        cleaned = cleaned[1:]

    # Plain digits with an optional fraction: no exponent, NaN or Infinity
    if not _NUMBER_PATTERN.match(cleaned):
        return None

    amount = Decimal(cleaned)
    return -amount if negative else amount


def quantize_cents(amount: Decimal) -> Decimal:
    """Round to whole cents, half up."""
    return amount.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def percent_difference(a: Decimal, b: Decimal) -> Decimal:
    """
    |a - b| / max(|a|, |b|); 0 when both are 0.

    Symmetric and always within [0, 1]: values of opposite sign are a
    complete disagreement and clamp to 1.
    """
    largest = max(abs(a), abs(b))
    if largest == 0:
        return Decimal("0")
    return min(abs(a - b) / largest, Decimal("1"))


def format_dollars(amount: Decimal) -> str:
    """
    Human-facing dollar rendering used in review descriptions.

    At most two decimals, no trailing zero cents, magnitude only with a
    "(negative)" marker: Decimal("-2500.50") → "$2,500.5 (negative)".
    """
    magnitude = quantize_cents(abs(amount))
    text = f"{magnitude:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    suffix = " (negative)" if amount < 0 else ""
    return f"${text}{suffix}"
