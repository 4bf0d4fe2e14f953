"""Baseline engine.

A baseline is the maximum daily high and maximum daily volume over the
trailing 5 trading days before a given date. Historical candles for
completed days never change, so a baseline is computed once per trading
day per symbol and cached for the rest of the day.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Optional

from breakwatch.cache.historical import HistoricalCandleCache
from breakwatch.errors import DataUnavailable
from breakwatch.market_hours import Clock, trading_date, utc_now
from breakwatch.models import Baseline, BaselineStats, Candle
from breakwatch.universe import UNIVERSE_SIZE

logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 5
LOW_LOOKBACK_DAYS = 10

# Enough history for the low lookback plus the day under evaluation
HISTORY_DAYS = 15

BATCH_SIZE = 5


def compute_baseline(symbol: str, candles: list[Candle], before: date) -> Optional[Baseline]:
    """Compute a baseline from candles strictly before a date.

    Args:
        symbol: Trading symbol.
        candles: Daily candles, any order.
        before: Candles on or after this date are ignored.

    Returns:
        Baseline over up to the last 5 prior days, or None if there are
        no prior days at all.
    """
    prior = sorted((c for c in candles if c.date < before), key=lambda c: c.date)
    if not prior:
        return None

    recent = prior[-LOOKBACK_DAYS:]
    return Baseline(
        symbol=symbol,
        max_high_5d=max(c.high for c in recent),
        max_volume_5d=max(c.volume for c in recent),
        computed_date=before,
        days_used=len(recent),
        prev_10day_low=min(c.low for c in prior[-LOW_LOOKBACK_DAYS:]),
    )


class BaselineEngine:
    """Computes and caches baselines for the current trading day."""

    def __init__(
        self,
        historical: HistoricalCandleCache,
        clock: Optional[Clock] = None,
        universe_size: int = UNIVERSE_SIZE,
        batch_size: int = BATCH_SIZE,
    ):
        """Initialize the baseline engine.

        Args:
            historical: Cache the candles are read through.
            clock: Returns the current instant; defaults to UTC now.
            universe_size: Symbols expected to have a baseline (for stats).
            batch_size: Symbols fetched concurrently per batch.
        """
        self._historical = historical
        self._clock = clock or utc_now
        self._universe_size = universe_size
        self._batch_size = batch_size
        self._lock = threading.Lock()
        self._cache: dict[str, Baseline] = {}

    def _cached(self, symbol: str, today: date) -> Optional[Baseline]:
        with self._lock:
            baseline = self._cache.get(symbol)
        if baseline is not None and baseline.computed_date == today:
            return baseline
        return None

    def get_baseline(self, symbol: str) -> Optional[Baseline]:
        """Get the baseline for one symbol.

        Returns:
            Baseline, or None if history could not be fetched or is empty.
        """
        today = trading_date(self._clock())
        cached = self._cached(symbol, today)
        if cached is not None:
            return cached

        try:
            candles = self._historical.get_historical_data(symbol, HISTORY_DAYS)
        except DataUnavailable as e:
            logger.warning("Baseline unavailable for %s: %s", symbol, e)
            return None

        baseline = compute_baseline(symbol, candles, today)
        if baseline is None:
            logger.debug("Baseline: no prior history for %s", symbol)
            return None
        if baseline.days_used < LOOKBACK_DAYS:
            logger.debug(
                "Baseline for %s uses only %d day(s)", symbol, baseline.days_used
            )

        with self._lock:
            self._cache[symbol] = baseline
        return baseline

    def get_baselines(self, symbols: list[str]) -> dict[str, Baseline]:
        """Get baselines for many symbols.

        Symbols without a baseline are absent from the result. Missing
        baselines are computed in concurrent batches.
        """
        today = trading_date(self._clock())
        results: dict[str, Baseline] = {}
        to_fetch: list[str] = []

        for symbol in symbols:
            cached = self._cached(symbol, today)
            if cached is not None:
                results[symbol] = cached
            else:
                to_fetch.append(symbol)

        if not to_fetch:
            return results

        logger.info("Computing baselines for %d symbol(s)", len(to_fetch))
        with ThreadPoolExecutor(max_workers=self._batch_size) as executor:
            for i in range(0, len(to_fetch), self._batch_size):
                batch = to_fetch[i:i + self._batch_size]
                futures = {symbol: executor.submit(self.get_baseline, symbol) for symbol in batch}
                for symbol, future in futures.items():
                    try:
                        baseline = future.result()
                    except Exception as e:
                        logger.warning("Baseline computation failed for %s: %s", symbol, e)
                        continue
                    if baseline is not None:
                        results[symbol] = baseline

        logger.info("Baselines ready: %d/%d available", len(results), len(symbols))
        return results

    def get_baseline_stats(self) -> BaselineStats:
        """Availability of today's baselines against the universe size."""
        today = trading_date(self._clock())
        with self._lock:
            symbols = [s for s, b in self._cache.items() if b.computed_date == today]
        return BaselineStats(
            available=len(symbols),
            missing=max(self._universe_size - len(symbols), 0),
            date=today,
            symbols=symbols,
        )
