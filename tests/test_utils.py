from datetime import date, datetime

import pytest

from utils.currency import currency_symbol, format_currency
from utils.date_helpers import (
    add_months,
    as_date,
    as_datetime,
    clamp_day_to_month,
    end_of_month,
    parse_date,
    shift_month,
)


@pytest.mark.parametrize("raw, expected", [
    ("2024-02-29", date(2024, 2, 29)),
    ("2024/02/05", date(2024, 2, 5)),
    ("2024.02.05", date(2024, 2, 5)),
    ("2023-02-29", None),
    ("", None),
    (None, None),
])
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected


def test_month_arithmetic():
    assert shift_month(2024, 12) == (2025, 1)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 11, 14) == (2026, 1)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert end_of_month(date(2024, 4, 10)) == date(2024, 4, 30)
    assert clamp_day_to_month(2024, 4, 31) == 30


def test_clock_conversions():
    moment = datetime(2024, 2, 5, 9, 30)
    assert as_date(moment) == date(2024, 2, 5)
    assert as_date(date(2024, 2, 5)) == date(2024, 2, 5)
    assert as_datetime(moment) is moment
    assert as_datetime(date(2024, 2, 5)) == datetime(2024, 2, 5)


def test_format_currency():
    assert format_currency(1234567) == "$1,234,567"
    assert format_currency(1234.5, decimals=2) == "$1,234.50"
    assert format_currency(-500) == "-$500"


@pytest.mark.parametrize("code, expected", [
    ("COP", "$"),
    ("eur", "€"),
    ("GBP", "£"),
    ("XYZ", "XYZ "),
    ("", "$"),
])
def test_currency_symbol(code, expected):
    assert currency_symbol(code) == expected
