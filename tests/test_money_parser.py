"""Tests for money parsing."""

from decimal import Decimal

import pytest

from ledgerpost.domain.errors import ValidationError
from ledgerpost.utils.money_parser import cents_to_amount, format_cents, parse_money_cents


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$1,234.56", 123456),
        ("1234.56", 123456),
        ("-$12.00", -1200),
        ("(123.45)", -12345),
        ("USD 12.00", 1200),
        ("12", 1200),
        (12, 1200),
        (Decimal("0.10"), 10),
    ],
)
def test_parse_money_formats(raw, expected):
    assert parse_money_cents(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "-", "  ", "$"])
def test_parse_money_empty_is_zero(raw):
    assert parse_money_cents(raw) == 0


def test_parse_money_rounds_half_away_from_zero():
    """Half cents round away from zero on both sides."""
    assert parse_money_cents(1234.565) == 123457
    assert parse_money_cents("1234.565") == 123457
    assert parse_money_cents("-1234.565") == -123457
    assert parse_money_cents("0.005") == 1


def test_parse_money_float_uses_shortest_repr():
    assert parse_money_cents(0.1) == 10
    assert parse_money_cents(19.99) == 1999


def test_parse_money_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_money_cents("1.2.3")


@pytest.mark.parametrize("raw", [float("nan"), float("inf"), float("-inf"), Decimal("NaN")])
def test_parse_money_rejects_non_finite(raw):
    with pytest.raises(ValidationError):
        parse_money_cents(raw)


def test_format_cents():
    assert format_cents(123456) == "1234.56"
    assert format_cents(5) == "0.05"
    assert format_cents(-1200) == "-12.00"


def test_cents_to_amount():
    assert cents_to_amount(11800) == 118.0
    assert cents_to_amount(1999) == 19.99
