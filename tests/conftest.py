"""Shared fixtures and fakes for the BreakWatch test suite."""

import tempfile
import threading
import time
from collections import Counter
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import pytest

from breakwatch.db.store import DataStore
from breakwatch.errors import SourceError
from breakwatch.market_hours import IST, Clock, is_market_hours, trading_date
from breakwatch.models import Candle, QuoteRow
from breakwatch.sources.base import MarketDataSource


def ist(year: int, month: int, day: int, hour: int = 10, minute: int = 0) -> datetime:
    """Timezone-aware IST instant."""
    return datetime(year, month, day, hour, minute, tzinfo=IST)


def weekdays_before(end: date, count: int) -> list[date]:
    """The ``count`` weekdays strictly before ``end``, oldest first."""
    days = []
    day = end
    while len(days) < count:
        day -= timedelta(days=1)
        if day.weekday() < 5:
            days.append(day)
    return list(reversed(days))


def make_candles(
    symbol: str,
    end: date,
    highs: list[float],
    volumes: list[int],
    lows: Optional[list[float]] = None,
) -> list[Candle]:
    """Daily candles on the weekdays before ``end``, oldest first."""
    dates = weekdays_before(end, len(highs))
    lows = lows or [h * 0.95 for h in highs]
    return [
        Candle(
            symbol=symbol,
            date=d,
            open=low,
            high=high,
            low=low,
            close=(high + low) / 2,
            volume=volume,
        )
        for d, high, low, volume in zip(dates, highs, lows, volumes)
    ]


def make_row(symbol: str, day_high: float, volume: int, last_price: Optional[float] = None) -> QuoteRow:
    price = last_price if last_price is not None else day_high
    return QuoteRow(
        symbol=symbol,
        name=f"{symbol} Ltd",
        last_price=price,
        open=price,
        day_high=day_high,
        day_low=price * 0.98,
        previous_close=price,
        total_traded_volume=volume,
        total_traded_value=price * volume,
    )


class FakeClock:
    """Settable clock; call it to get the current instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeSource(MarketDataSource):
    """In-memory source that counts calls and fails on request."""

    def __init__(
        self,
        history: Optional[dict[str, list[Candle]]] = None,
        live: Optional[dict[str, Candle]] = None,
        snapshot: Optional[list[QuoteRow]] = None,
        market_open: bool = False,
        delay: float = 0.0,
    ):
        self.history = history or {}
        self.live = live or {}
        self.snapshot = snapshot or []
        self.market_open = market_open
        self.delay = delay

        self.fail_history: set[str] = set()
        self.fail_live: set[str] = set()
        self.fail_snapshot = False
        self.fail_status = False

        self.calls: Counter = Counter()
        self._lock = threading.Lock()

    def _count(self, key: str) -> None:
        with self._lock:
            self.calls[key] += 1
        if self.delay:
            time.sleep(self.delay)

    def fetch_current_day(self, symbol: str) -> Optional[Candle]:
        self._count(f"live:{symbol}")
        if symbol in self.fail_live:
            raise SourceError(f"live feed down for {symbol}")
        return self.live.get(symbol)

    def fetch_historical(self, symbol: str, days: int) -> list[Candle]:
        self._count(f"history:{symbol}")
        if symbol in self.fail_history:
            raise SourceError(f"history unavailable for {symbol}")
        return list(self.history.get(symbol, []))[-days:]

    def fetch_snapshot(self) -> list[QuoteRow]:
        self._count("snapshot")
        if self.fail_snapshot:
            raise SourceError("snapshot endpoint down")
        return list(self.snapshot)

    def fetch_market_status(self) -> bool:
        self._count("status")
        if self.fail_status:
            raise SourceError("status endpoint down")
        return self.market_open

    def history_calls(self, symbol: str) -> int:
        return self.calls[f"history:{symbol}"]


class SessionSource(FakeSource):
    """FakeSource whose daily history omits today's bar while the market is open."""

    def __init__(self, clock: Clock, **kwargs):
        super().__init__(**kwargs)
        self._clock = clock

    def fetch_historical(self, symbol: str, days: int) -> list[Candle]:
        candles = super().fetch_historical(symbol, 365)
        now = self._clock()
        if is_market_hours(now):
            candles = [c for c in candles if c.date < trading_date(now)]
        return candles[-days:]


# Wednesday, mid-session
SESSION_NOW = ist(2024, 1, 10, 11, 0)
TODAY = date(2024, 1, 10)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(SESSION_NOW)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield DataStore(Path(tmpdir) / "test.db")
