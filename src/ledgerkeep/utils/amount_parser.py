"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from ledgerkeep.domain.currency import load_currencies


def _currency_symbol_pattern() -> str:
    symbols = {meta.get("symbol", "") for meta in load_currencies().values()}
    return "|".join(re.escape(symbol) for symbol in sorted(symbols, key=len, reverse=True) if symbol)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Accepts plain numbers ("123.45", "-123.45"), thousands separators
    ("1,234.56"), a leading currency symbol or code ("$12", "12 EUR") and
    accounting negatives ("(123.45)").

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    text = re.sub(_currency_symbol_pattern(), "", text)
    text = re.sub(r"\b[A-Za-z]{3}\b", "", text)
    text = text.replace(",", "").replace(" ", "")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if negative else amount


def parse_positive_amount(amount_str: str) -> Decimal:
    """Parse an operation amount, which must be greater than zero."""
    amount = parse_amount(amount_str)
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got '{amount_str}'")
    return amount
