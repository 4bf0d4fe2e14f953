"""Tests for the NSE session clock.

**Feature: breakout-scanner**
"""

from datetime import date, datetime, timedelta, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from breakwatch.market_hours import (
    is_market_hours,
    session_complete,
    to_ist,
    trading_date,
)
from conftest import ist


class TestTradingDate:
    """
    **Feature: breakout-scanner, Property 1: Trading Day Resolution**

    *For any* instant, the trading day is the IST calendar date rolled
    back to Friday on weekends.
    """

    def test_weekday_is_its_own_trading_day(self):
        assert trading_date(ist(2024, 1, 10, 11, 0)) == date(2024, 1, 10)

    def test_weekend_rolls_back_to_friday(self):
        assert trading_date(ist(2024, 1, 13, 12, 0)) == date(2024, 1, 12)
        assert trading_date(ist(2024, 1, 14, 12, 0)) == date(2024, 1, 12)

    def test_utc_evening_is_next_ist_day(self):
        # 20:00 UTC Tuesday is 01:30 IST Wednesday
        instant = datetime(2024, 1, 9, 20, 0, tzinfo=timezone.utc)
        assert trading_date(instant) == date(2024, 1, 10)

    def test_naive_datetime_is_utc(self):
        assert to_ist(datetime(2024, 1, 10, 0, 0)).hour == 5

    @given(st.datetimes(
        min_value=datetime(2000, 1, 1),
        max_value=datetime(2100, 1, 1),
        timezones=st.just(timezone.utc),
    ))
    @settings(max_examples=100)
    def test_trading_date_is_weekday_not_after_ist_date(self, instant: datetime):
        day = trading_date(instant)
        assert day.weekday() < 5
        ist_day = to_ist(instant).date()
        assert ist_day - timedelta(days=2) <= day <= ist_day


class TestSessionHours:
    """
    **Feature: breakout-scanner, Property 2: Session Boundaries**
    """

    def test_regular_session(self):
        assert not is_market_hours(ist(2024, 1, 10, 9, 14))
        assert is_market_hours(ist(2024, 1, 10, 9, 15))
        assert is_market_hours(ist(2024, 1, 10, 15, 29))
        assert not is_market_hours(ist(2024, 1, 10, 15, 30))

    def test_closed_on_weekends(self):
        assert not is_market_hours(ist(2024, 1, 13, 11, 0))

    def test_session_complete_after_close(self):
        assert not session_complete(ist(2024, 1, 10, 8, 0))
        assert not session_complete(ist(2024, 1, 10, 11, 0))
        assert session_complete(ist(2024, 1, 10, 15, 30))
        assert session_complete(ist(2024, 1, 10, 23, 59))

    def test_weekend_session_is_complete(self):
        assert session_complete(ist(2024, 1, 13, 7, 0))
        assert session_complete(ist(2024, 1, 14, 20, 0))
