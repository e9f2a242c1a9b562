from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from utils.dates import date_range, days_between, is_weekend, parse_date, start_of_day, strip_timezone, utc_offset_minutes
from utils.errors import ValidationError
from utils.money import format_amount, parse_amount, share_of, to_storage


class TestParseAmount:
    def test_strings_and_numbers(self):
        assert parse_amount("12.5") == Decimal("12.50")
        assert parse_amount(" 7 ") == Decimal("7.00")
        assert parse_amount(3) == Decimal("3.00")
        assert parse_amount(Decimal("1.234")) == Decimal("1.23")

    def test_rounds_half_up(self):
        assert parse_amount("10.005") == Decimal("10.01")
        assert parse_amount("-10.005") == Decimal("-10.01")

    def test_floats_do_not_leak_binary_error(self):
        assert parse_amount(0.1) + parse_amount(0.2) == Decimal("0.30")

    @pytest.mark.parametrize("value", [None, True, "", "abc", "NaN", "Infinity"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value)


def test_share_of():
    assert share_of(Decimal("100.00"), 50) == Decimal("50.00")
    assert share_of(Decimal("10.00"), 33) == Decimal("3.30")
    assert share_of(Decimal("0.05"), 50) == Decimal("0.03")


def test_to_storage_and_format():
    assert to_storage(Decimal("5")) == "5.00"
    assert format_amount(Decimal("12.3")) == "$12.30"
    assert format_amount(Decimal("-5"), "EUR") == "-€5.00"
    assert format_amount(Decimal("1"), "JPY") == "JPY1.00"


class TestDates:
    def test_parse_date(self):
        assert parse_date("2024-01-06") == date(2024, 1, 6)
        assert parse_date("2024-01-06T15:30:00.000Z") == date(2024, 1, 6)
        assert parse_date(datetime(2024, 1, 6, 23, 59)) == date(2024, 1, 6)
        assert parse_date(date(2024, 1, 6)) == date(2024, 1, 6)
        assert parse_date(None) is None
        assert parse_date("") is None

    def test_parse_date_keeps_calendar_day_of_offsets(self):
        assert parse_date("2024-01-06T23:30:00-08:00") == date(2024, 1, 6)

    def test_invalid_dates(self):
        with pytest.raises(ValueError):
            parse_date("06/01/2024")
        with pytest.raises(ValueError):
            start_of_day(None)

    def test_days_between(self):
        assert days_between(date(2024, 1, 1), date(2024, 1, 15)) == 14
        assert days_between(date(2024, 1, 15), date(2024, 1, 1)) == -14
        # Leap day counts as a single day
        assert days_between("2024-02-28", "2024-03-01") == 2

    def test_date_range_is_inclusive(self):
        assert list(date_range("2024-01-30", "2024-02-02")) == [
            date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)
        ]
        assert list(date_range("2024-01-02", "2024-01-01")) == []

    def test_is_weekend(self):
        assert is_weekend(date(2024, 1, 6))
        assert is_weekend(date(2024, 1, 7))
        assert not is_weekend(date(2024, 1, 8))

    def test_strip_timezone(self):
        aware = datetime(2024, 1, 6, 23, 30, tzinfo=timezone(timedelta(hours=-8)))
        assert strip_timezone(aware) == datetime(2024, 1, 6, 23, 30)
        assert strip_timezone(None) is None

    def test_utc_offset_minutes(self):
        assert utc_offset_minutes(datetime(2024, 1, 6, 23, 30, tzinfo=timezone(timedelta(hours=-5)))) == -300
        assert utc_offset_minutes(datetime(2024, 1, 6, 23, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))) == 330
        assert utc_offset_minutes(datetime(2024, 1, 6, 23, 30)) is None
        assert utc_offset_minutes(None) is None
