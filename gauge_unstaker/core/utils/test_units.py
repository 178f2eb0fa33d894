from decimal import Decimal

from gauge_unstaker.core.utils.units import format_units, from_raw_amount


def test_format_units_strips_trailing_zeros():
    assert format_units(1_500_000_000_000_000_000) == "1.5"
    assert format_units(2 * 10**18) == "2"
    assert format_units(0) == "0"
    assert format_units(100) == "0.0000000000000001"


def test_format_units_respects_decimals():
    assert format_units(1_234_567, decimals=6) == "1.234567"


def test_from_raw_amount():
    assert from_raw_amount(1_500_000, decimals=6) == Decimal("1.5")


def test_large_amounts_keep_every_digit():
    raw = 10**40 + 1
    assert format_units(raw) == "10000000000000000000000.000000000000000001"
    assert from_raw_amount(raw) == Decimal("10000000000000000000000.000000000000000001")
