"""Per-symbol daily candle cache, valid for one trading session."""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from breakwatch.cache.api_stats import ApiStatsTracker
from breakwatch.cache.inflight import InFlightRequests
from breakwatch.errors import DataUnavailable, SourceError
from breakwatch.market_hours import Clock, session_complete, trading_date, utc_now
from breakwatch.models import CacheStats, Candle
from breakwatch.sources.base import MarketDataSource

logger = logging.getLogger(__name__)

MIN_DAYS = 1
MAX_DAYS = 365
DEFAULT_TTL_SECONDS = 24 * 60 * 60

Bucket = tuple[date, bool]


@dataclass
class _Entry:
    bucket: Bucket
    days: int
    candles: list[Candle]
    stored_at: datetime


def history_bucket(instant: datetime) -> Bucket:
    """(trading day, session complete) an instant reads history for.

    Completed days only change when the session closes: before the close
    the day's own bar is not part of the history, after it (and over the
    weekend) it is. The two halves of a trading day are separate buckets.
    """
    return trading_date(instant), session_complete(instant)


class HistoricalCandleCache:
    """Memoizes daily candle series per (symbol, history bucket).

    Completed-day candles never change within a bucket, so an entry stays
    valid until the session closes or the trading day rolls over (bounded
    by ``ttl_seconds``). An entry holds the longest series fetched for its
    key; shorter requests are served as a slice of it. Entries from any
    other bucket are evicted on the first access of a new one.
    """

    METHOD = "getHistoricalData"

    def __init__(
        self,
        source: MarketDataSource,
        stats: ApiStatsTracker,
        clock: Optional[Clock] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ):
        self._source = source
        self._stats = stats
        self._clock = clock or utc_now
        self._ttl = timedelta(seconds=ttl_seconds)
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, Bucket], _Entry] = {}
        self._inflight = InFlightRequests()

    def _evict_other_buckets(self, bucket: Bucket) -> None:
        stale = [key for key in self._entries if key[1] != bucket]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("Evicted %d historical entries from earlier sessions", len(stale))

    def _cached(self, symbol: str, bucket: Bucket, days: int, now: datetime) -> Optional[list[Candle]]:
        with self._lock:
            self._evict_other_buckets(bucket)
            entry = self._entries.get((symbol, bucket))
        if entry is None or entry.days < days or now - entry.stored_at >= self._ttl:
            return None
        return entry.candles[-days:]

    def get_historical_data(self, symbol: str, days: int = 10) -> list[Candle]:
        """Get the most recent ``days`` daily candles, oldest first.

        Args:
            symbol: Trading symbol.
            days: Number of candles wanted (1-365).

        Returns:
            Up to ``days`` candles.

        Raises:
            ValueError: If ``days`` is out of range.
            DataUnavailable: If the upstream fetch failed.
        """
        if not MIN_DAYS <= days <= MAX_DAYS:
            raise ValueError(f"days must be between {MIN_DAYS} and {MAX_DAYS}, got {days}")

        while True:
            now = self._clock()
            bucket = history_bucket(now)

            cached = self._cached(symbol, bucket, days, now)
            if cached is not None:
                self._stats.record("cache", self.METHOD, symbol)
                return cached

            try:
                (candles, fetched_days), shared = self._inflight.run(
                    (symbol, bucket),
                    lambda: self._fetch(symbol, days, bucket),
                )
            except SourceError as e:
                raise DataUnavailable(
                    f"Historical data unavailable for {symbol}: {e}", symbol=symbol
                ) from e

            if not shared:
                return candles[-days:]
            if fetched_days >= days:
                self._stats.record("cache", self.METHOD, symbol)
                return candles[-days:]
            # Joined a shorter fetch; go again for the longer series

    def _fetch(self, symbol: str, days: int, bucket: Bucket) -> tuple[list[Candle], int]:
        logger.debug("Historical cache miss for %s (%d days)", symbol, days)
        self._stats.record("api", self.METHOD, symbol)
        try:
            candles = self._source.fetch_historical(symbol, days)
        except SourceError as e:
            logger.warning("Historical fetch failed for %s: %s", symbol, e)
            raise

        candles = sorted(candles, key=lambda c: c.date)
        if candles:
            with self._lock:
                self._entries[(symbol, bucket)] = _Entry(
                    bucket=bucket, days=days, candles=candles, stored_at=self._clock()
                )
        return candles, days

    def invalidate(self, symbol: Optional[str] = None) -> int:
        """Drop cached entries for one symbol, or all of them.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            keys = [k for k in self._entries if symbol is None or k[0] == symbol]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def get_historical_cache_stats(self) -> CacheStats:
        """Entries valid for the current history bucket."""
        bucket = history_bucket(self._clock())
        with self._lock:
            symbols = [sym for (sym, b) in self._entries if b == bucket]
        return CacheStats(size=len(symbols), symbols=symbols, date=bucket[0])
