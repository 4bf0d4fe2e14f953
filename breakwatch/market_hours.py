"""NSE session clock.

Every day-boundary decision goes through :func:`trading_date` so the rest
of the package never has to think about time zones.

NSE hours (IST):
    Open       09:15
    Close      15:30
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

IST = ZoneInfo("Asia/Kolkata")

MARKET_OPEN = time(9, 15)
MARKET_CLOSE = time(15, 30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current instant, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def to_ist(instant: datetime) -> datetime:
    """Convert an instant to IST. Naive datetimes are taken as UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(IST)


def is_trading_weekday(day: date) -> bool:
    """True for Monday to Friday."""
    return day.weekday() < 5


def trading_date(instant: datetime) -> date:
    """Trading day an instant belongs to.

    The IST calendar date, rolled back to the preceding Friday on
    weekends. Exchange holidays are not modelled.
    """
    day = to_ist(instant).date()
    while not is_trading_weekday(day):
        day -= timedelta(days=1)
    return day


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def is_market_hours(instant: Optional[datetime] = None) -> bool:
    """True during 09:15 - 15:30 IST on weekdays."""
    now = to_ist(instant or utc_now())
    if not is_trading_weekday(now.date()):
        return False
    mins = _minutes(now.time())
    return _minutes(MARKET_OPEN) <= mins < _minutes(MARKET_CLOSE)


def session_complete(instant: Optional[datetime] = None) -> bool:
    """True once the trading day's regular session has closed.

    Weekends count as complete: their trading day is the Friday before.
    Before 15:30 IST on a weekday the day's bar is still forming (or not
    yet started), so it is not complete.
    """
    now = to_ist(instant or utc_now())
    if not is_trading_weekday(now.date()):
        return True
    return _minutes(now.time()) >= _minutes(MARKET_CLOSE)
