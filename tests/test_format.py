"""
Tests for INR formatting
"""
import pytest

from silkthread.core.format import format_currency, format_indian_number


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "0"),
        (999, "999"),
        (1500, "1,500"),
        (100000, "1,00,000"),
        (12345678, "1,23,45,678"),
        (-2500, "-2,500"),
    ],
)
def test_indian_grouping(value, expected):
    assert format_indian_number(value) == expected


def test_currency():
    assert format_currency(1500) == "₹1,500"
    assert format_currency(1500, show_symbol=False) == "1,500"
    assert format_currency(1500.5, decimals=2) == "₹1,500.50"
    assert format_currency(-40) == "-₹40"
