"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from ledgerkeep.utils.amount_parser import parse_amount, parse_positive_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("1,234.56", Decimal("1234.56")),
        ("$12", Decimal("12")),
        ("€ 9.99", Decimal("9.99")),
        ("12 EUR", Decimal("12")),
        ("usd 5", Decimal("5")),
        ("KD 1.250", Decimal("1.250")),
        ("(123.45)", Decimal("-123.45")),
        ("($1,000.00)", Decimal("-1000.00")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.3.4", "NaN", "Infinity"])
def test_parse_amount_rejects(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_parse_positive_amount():
    assert parse_positive_amount("0.01") == Decimal("0.01")

    with pytest.raises(ValueError, match="must be positive"):
        parse_positive_amount("0")
    with pytest.raises(ValueError, match="must be positive"):
        parse_positive_amount("(5)")
