"""Fixed-point conversions between on-chain integers and decimal strings — no I/O.

All vault and token amounts are unscaled integers carrying 18 fractional
digits. User input is converted with :func:`parse_units` before any call and
on-chain values are rendered with :func:`format_units` for display.
"""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .exceptions import InvalidAmount

DEFAULT_DECIMALS = 18

_AMOUNT_RE = re.compile(r"^(\d+)?(?:\.(\d*))?$")


def parse_units(text: str, decimals: int = DEFAULT_DECIMALS) -> int:
    """Convert a decimal string into its unscaled integer representation.

    Examples:
        "1"    → 1000000000000000000
        "0.5"  → 500000000000000000

    Raises:
        InvalidAmount: empty, signed, non-numeric or over-precise input.
    """
    if text is None:
        raise InvalidAmount("Amount is required")
    text = str(text).strip()
    if not text:
        raise InvalidAmount("Amount is required")
    if text.startswith("-"):
        raise InvalidAmount(f"Amount must be positive: {text}")

    match = _AMOUNT_RE.match(text)
    if not match or text == ".":
        raise InvalidAmount(f"Not a decimal number: {text}")

    whole, frac = match.group(1) or "0", match.group(2) or ""
    if len(frac) > decimals:
        raise InvalidAmount(
            f"Too many decimal places in {text} (max {decimals})"
        )
    return int(whole) * 10**decimals + int(frac.ljust(decimals, "0") or "0")


def format_units(value: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render an unscaled integer as a decimal string.

    Always keeps one fractional digit and strips trailing zeros, so the output
    parses back to the same integer:
        0                     → "0.0"
        1500000000000000000   → "1.5"
    """
    value = int(value)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


def to_decimal(text: str) -> Decimal:
    """Parse a formatted amount into a Decimal (zero for blank input)."""
    try:
        return Decimal(text or "0")
    except InvalidOperation as e:
        raise InvalidAmount(f"Not a decimal number: {text}") from e


def format_display(text: str, places: int = 4) -> str:
    """Round a formatted amount to a fixed number of places for display."""
    quantum = Decimal(1).scaleb(-places)
    return f"{to_decimal(text).quantize(quantum, rounding=ROUND_HALF_UP):.{places}f}"


def parse_positive_units(text: str, decimals: int = DEFAULT_DECIMALS) -> int:
    """Like :func:`parse_units`, but zero is rejected too."""
    amount = parse_units(text, decimals)
    if amount <= 0:
        raise InvalidAmount("Amount must be greater than 0")
    return amount
