"""Currency metadata and the single rounding path for money.

Every code path that produces an amount (balances, destination amounts,
adjustments) goes through ``round_for_currency`` so decimal places stay
consistent per currency.
"""

import json
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from functools import lru_cache
from importlib import resources
from typing import Optional

DEFAULT_DECIMAL_PLACES = 2
RATE_DECIMAL_PLACES = 6


@lru_cache(maxsize=1)
def load_currencies() -> dict[str, dict]:
    """Load bundled currency metadata keyed by currency code."""
    text = resources.files("ledgerkeep.data").joinpath("currencies.json").read_text(encoding="utf-8")
    return json.loads(text)


def decimal_places(currency: Optional[str]) -> int:
    """Return the number of decimal places used by a currency.

    Unknown or missing currencies use two decimal places.
    """
    if not currency:
        return DEFAULT_DECIMAL_PLACES
    meta = load_currencies().get(currency.upper())
    if meta is None:
        return DEFAULT_DECIMAL_PLACES
    return int(meta.get("decimal_digits", DEFAULT_DECIMAL_PLACES))


def to_decimal(value: Decimal | str | int | float | None) -> Optional[Decimal]:
    """Parse a money-like value into a Decimal.

    Returns None for empty input or strings that are not numbers. Floats go
    through ``str`` so the binary representation does not leak in.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return result


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places)


def round_to_places(amount: Decimal | str, places: int) -> Decimal:
    """Round half-up to a fixed number of decimal places."""
    value = to_decimal(amount)
    if value is None:
        raise ValueError(f"Could not parse amount '{amount}'")
    return value.quantize(_quantum(places), rounding=ROUND_HALF_UP)


def round_for_currency(amount: Decimal | str, currency: Optional[str]) -> Decimal:
    """Round an amount to the canonical decimal places of its currency."""
    return round_to_places(amount, decimal_places(currency))


def format_amount(amount: Decimal | str, currency: Optional[str]) -> str:
    """Format an amount as a plain decimal string for its currency."""
    return str(round_for_currency(amount, currency))


def format_rate(rate: Decimal | str) -> str:
    """Format an exchange rate with the fixed rate precision."""
    return str(round_to_places(rate, RATE_DECIMAL_PLACES))


def convert_amount(amount: Decimal | str, rate: Decimal | str, to_currency: Optional[str]) -> Optional[str]:
    """Convert a source amount with a rate, rounded for the destination currency.

    Returns None when either input is not a number.
    """
    source = to_decimal(amount)
    factor = to_decimal(rate)
    if source is None or factor is None:
        return None
    return format_amount(source * factor, to_currency)


def currency_symbol(currency: str) -> str:
    meta = load_currencies().get(currency.upper())
    if meta is None:
        return currency
    return meta.get("symbol", currency)


def display_amount(amount: Decimal, currency: str) -> str:
    """Human readable amount with grouping, e.g. ``$1,234.50``."""
    places = decimal_places(currency)
    rounded = round_for_currency(amount, currency)
    return f"{currency_symbol(currency)}{rounded:,.{places}f}"
