"""Breakout scanner.

A symbol breaks out when its day high AND day volume both exceed the
trailing 5-day maxima. Scanning runs in two phases: per-symbol data is
fetched concurrently and every fetch settles into an outcome, then each
outcome is classified synchronously.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from breakwatch.baselines import HISTORY_DAYS, BaselineEngine, compute_baseline
from breakwatch.cache.api_stats import ApiStatsTracker
from breakwatch.cache.historical import HistoricalCandleCache
from breakwatch.errors import SourceError
from breakwatch.market_hours import Clock, utc_now
from breakwatch.models import (
    Baseline,
    BreakoutDiscovery,
    Candle,
    DataSource,
    QuoteRow,
    ScanResult,
    Snapshot,
    WatchTarget,
)
from breakwatch.sources.base import MarketDataSource

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def round_percent(ratio: float) -> float:
    """Express a ratio as a percentage with 2 decimals, rounding half up."""
    return math.floor(ratio * 10000 + 0.5) / 100


def break_percent(value: float, reference: float) -> float:
    """How far ``value`` is above ``reference``, in percent. 0 if reference <= 0."""
    if reference <= 0:
        return 0.0
    return round_percent((value - reference) / reference)


@dataclass(frozen=True)
class BreakoutCheck:
    high_break: bool
    volume_break: bool
    triggered: bool
    high_break_percent: float
    volume_break_percent: float


def check_breakout(today_high: float, today_volume: int, baseline: Baseline) -> BreakoutCheck:
    """Compare today's high and volume against a baseline.

    Both conditions are required: a price spike without volume, or
    volume without a new high, does not trigger.
    """
    high_break = today_high > baseline.max_high_5d
    volume_break = today_volume > baseline.max_volume_5d
    return BreakoutCheck(
        high_break=high_break,
        volume_break=volume_break,
        triggered=high_break and volume_break,
        high_break_percent=break_percent(today_high, baseline.max_high_5d),
        volume_break_percent=break_percent(today_volume, baseline.max_volume_5d),
    )


@dataclass
class FetchOutcome:
    """What phase one managed to fetch for one watch target."""

    target: WatchTarget
    history: list[Candle]
    live: Optional[Candle] = None
    baseline: Optional[Baseline] = None
    error: Optional[str] = None


def _as_target(stock: Union[WatchTarget, str]) -> WatchTarget:
    if isinstance(stock, WatchTarget):
        return stock
    return WatchTarget(symbol=stock, name=stock)


class BreakoutScanner:
    """Runs watchlist scan cycles."""

    LIVE_METHOD = "getCurrentDayData"

    def __init__(
        self,
        historical: HistoricalCandleCache,
        baselines: BaselineEngine,
        source: MarketDataSource,
        stats: ApiStatsTracker,
        clock: Optional[Clock] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """Initialize the scanner.

        Args:
            historical: Cache history is read through.
            baselines: Engine providing live-mode baselines.
            source: Upstream source for live current-day data.
            stats: Tracker live calls are recorded in.
            clock: Returns the current instant; defaults to UTC now.
            max_workers: Bound on concurrent per-symbol fetches.
        """
        self._historical = historical
        self._baselines = baselines
        self._source = source
        self._stats = stats
        self._clock = clock or utc_now
        self._max_workers = max_workers

    # ==================== Phase 1: fetch ====================

    def _fetch_live(self, symbol: str) -> Optional[Candle]:
        self._stats.record("api", self.LIVE_METHOD, symbol)
        try:
            return self._source.fetch_current_day(symbol)
        except SourceError as e:
            logger.warning("Live data unavailable for %s: %s", symbol, e)
            return None

    def fetch(self, target: WatchTarget, use_intraday: bool) -> FetchOutcome:
        """Fetch everything one target needs. Raises on history failure."""
        history = self._historical.get_historical_data(target.symbol, HISTORY_DAYS)
        outcome = FetchOutcome(target=target, history=history)
        if use_intraday:
            outcome.live = self._fetch_live(target.symbol)
            if outcome.live is not None and outcome.live.high > 0:
                outcome.baseline = self._baselines.get_baseline(target.symbol)
        return outcome

    def fetch_all(
        self, stocks: list[Union[WatchTarget, str]], use_intraday: bool
    ) -> list[FetchOutcome]:
        """Fetch all targets concurrently; every target settles into an outcome.

        Outcomes are returned in completion order.
        """
        targets = [_as_target(s) for s in stocks]
        if not targets:
            return []

        outcomes: list[FetchOutcome] = []
        workers = min(self._max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_target = {
                executor.submit(self.fetch, target, use_intraday): target
                for target in targets
            }
            for future in as_completed(future_to_target):
                target = future_to_target[future]
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    logger.warning("Scan fetch failed for %s: %s", target.symbol, e)
                    outcomes.append(FetchOutcome(target=target, history=[], error=str(e)))
        return outcomes

    # ==================== Phase 2: classify ====================

    @staticmethod
    def _skipped(target: WatchTarget, scanned_at: datetime, error: str) -> ScanResult:
        return ScanResult(
            symbol=target.symbol,
            name=target.name,
            data_source="stale",
            scanned_at=scanned_at,
            skipped=True,
            error=error,
        )

    def classify(
        self,
        outcome: FetchOutcome,
        use_intraday: bool,
        market_open: bool,
        scanned_at: datetime,
    ) -> ScanResult:
        """Classify one fetched target. Never raises for data problems."""
        target = outcome.target
        if outcome.error is not None:
            return self._skipped(target, scanned_at, outcome.error)

        history = outcome.history
        live = outcome.live
        data_source: DataSource

        if use_intraday and live is not None and live.high > 0:
            data_source = "live"
            current = live
            baseline = outcome.baseline
            previous = [c for c in history if c.date < live.date]
        else:
            if not history:
                return self._skipped(target, scanned_at, "No historical data")
            # Live data was expected but missing: show the last completed
            # day, but never confirm a breakout from it
            data_source = "stale" if use_intraday and market_open else "historical"
            current = history[-1]
            baseline = compute_baseline(target.symbol, history, current.date)
            previous = history[:-1]

        if baseline is None:
            return self._skipped(target, scanned_at, "Insufficient history for a baseline")

        check = check_breakout(current.high, current.volume, baseline)
        confirmable = data_source != "stale"

        prev_low = baseline.prev_10day_low
        low_break = prev_low > 0 and current.low < prev_low
        prev_close = previous[-1].close if previous else 0.0

        return ScanResult(
            symbol=target.symbol,
            name=target.name,
            today_high=current.high,
            today_low=current.low,
            today_volume=current.volume,
            today_close=current.close,
            today_change=break_percent(current.close, prev_close),
            prev_max_high=baseline.max_high_5d,
            prev_max_volume=baseline.max_volume_5d,
            high_break_percent=check.high_break_percent,
            volume_break_percent=check.volume_break_percent,
            triggered=check.triggered and confirmable,
            data_source=data_source,
            scanned_at=scanned_at,
            low_break_triggered=low_break and confirmable,
            prev_10day_low=prev_low,
            low_break_percent=round_percent((prev_low - current.low) / prev_low) if prev_low > 0 else 0.0,
        )

    def classify_all(
        self,
        outcomes: list[FetchOutcome],
        use_intraday: bool,
        market_open: bool,
    ) -> list[ScanResult]:
        scanned_at = self._clock()
        return [self.classify(o, use_intraday, market_open, scanned_at) for o in outcomes]

    # ==================== Entry points ====================

    def scan_stock(
        self,
        stock: Union[WatchTarget, str],
        use_intraday: bool = False,
        market_open: bool = False,
    ) -> ScanResult:
        """Scan a single target."""
        return self.scan_multiple_stocks([stock], use_intraday, market_open)[0]

    def scan_multiple_stocks(
        self,
        stocks: list[Union[WatchTarget, str]],
        use_intraday: bool = False,
        market_open: bool = False,
    ) -> list[ScanResult]:
        """Run one scan cycle over a list of targets.

        Args:
            stocks: Watch targets (or bare symbols).
            use_intraday: Use live current-day data when available.
            market_open: Whether the market is in session.

        Returns:
            One result per target, in no particular order. Targets whose
            data could not be fetched come back with ``skipped=True``.
        """
        outcomes = self.fetch_all(stocks, use_intraday)
        results = self.classify_all(outcomes, use_intraday, market_open)

        triggered = [r.symbol for r in results if r.triggered]
        skipped = sum(1 for r in results if r.skipped)
        logger.info(
            "Scanned %d stock(s): %d triggered, %d skipped",
            len(results), len(triggered), skipped,
        )
        return results


# ==================== Discovery ====================


def classify_discovery(
    row: QuoteRow,
    baseline: Optional[Baseline],
    snapshot: Snapshot,
) -> BreakoutDiscovery:
    """Classify one index symbol outside the watchlist.

    Precedence: a missing baseline wins over a stale snapshot, and a
    breakout is only confirmed when both the snapshot is fresh and the
    baseline exists.
    """
    if baseline is None:
        return BreakoutDiscovery(symbol=row.symbol, name=row.name, baseline_unavailable=True)

    if snapshot.stale or not snapshot.fetch_success:
        return BreakoutDiscovery(symbol=row.symbol, name=row.name, possible_breakout=True)

    check = check_breakout(row.day_high, row.total_traded_volume, baseline)
    return BreakoutDiscovery(
        symbol=row.symbol,
        name=row.name,
        breakout=check.triggered,
        high_break=check.high_break,
        volume_break=check.volume_break,
        high_break_percent=check.high_break_percent,
        volume_break_percent=check.volume_break_percent,
    )


def discover_breakouts(
    snapshot: Snapshot,
    baselines: dict[str, Baseline],
    watchlist_symbols: set[str],
) -> list[BreakoutDiscovery]:
    """Classify every snapshot row not already on the watchlist."""
    return [
        classify_discovery(row, baselines.get(row.symbol), snapshot)
        for row in snapshot.stocks
        if row.symbol not in watchlist_symbols
    ]
