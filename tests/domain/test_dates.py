"""Tests for effective-date resolution and the clock collaborator."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from ringside.domain.dates import (
    FixedClock,
    SystemClock,
    effective_date,
    ensure_valid_date_range,
    is_valid_date_range,
    normalize,
    parse_date,
)
from ringside.domain.errors import InvalidDateRangeError, ValidationError

JAN_1 = datetime(2024, 1, 1, tzinfo=UTC)


class TestNormalize:
    def test_date_becomes_midnight_utc(self) -> None:
        assert normalize(date(2024, 1, 1)) == JAN_1

    def test_naive_datetime_is_treated_as_utc(self) -> None:
        assert normalize(datetime(2024, 1, 1)) == JAN_1

    def test_aware_datetime_is_converted(self) -> None:
        est = timezone(timedelta(hours=-5))
        value = normalize(datetime(2023, 12, 31, 19, 0, tzinfo=est))
        assert value == JAN_1
        assert value.tzinfo is UTC


class TestEffectiveDate:
    def test_explicit_value_wins(self) -> None:
        clock = FixedClock(datetime(2030, 1, 1, tzinfo=UTC))
        assert effective_date(date(2024, 1, 1), clock) == JAN_1

    def test_defaults_to_clock_now(self) -> None:
        clock = FixedClock(JAN_1)
        assert effective_date(None, clock) == JAN_1

    def test_fixed_clock_advances(self) -> None:
        clock = FixedClock(JAN_1)
        clock.advance_to(datetime(2024, 2, 1))
        assert clock.now() == datetime(2024, 2, 1, tzinfo=UTC)

    def test_system_clock_is_aware(self) -> None:
        assert SystemClock().now().tzinfo is not None


class TestDateRange:
    def test_equal_dates_are_valid(self) -> None:
        assert is_valid_date_range(JAN_1, JAN_1)

    def test_end_before_start(self) -> None:
        assert not is_valid_date_range(JAN_1, JAN_1 - timedelta(days=1))

    def test_ensure_raises_with_both_dates(self) -> None:
        with pytest.raises(InvalidDateRangeError, match=r"2023-12-31.*2024-01-01"):
            ensure_valid_date_range(JAN_1, JAN_1 - timedelta(days=1))

    def test_range_error_is_a_validation_error(self) -> None:
        assert issubclass(InvalidDateRangeError, ValidationError)


class TestParseDate:
    def test_iso_date(self) -> None:
        assert parse_date("2024-01-01") == JAN_1

    def test_iso_datetime_with_offset(self) -> None:
        assert parse_date("2024-01-01T05:00:00+05:00") == JAN_1

    def test_invalid(self) -> None:
        with pytest.raises(ValidationError, match="Invalid date 'yesterday'"):
            parse_date("yesterday")
