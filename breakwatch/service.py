"""Breakout service: wires caches, baselines, scanner and alerts together."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Union

from breakwatch.alerts import AlertDeduplicator
from breakwatch.baselines import BaselineEngine
from breakwatch.cache import ApiStatsTracker, HistoricalCandleCache, SnapshotCache
from breakwatch.cache.historical import DEFAULT_TTL_SECONDS as HISTORY_TTL_SECONDS
from breakwatch.cache.snapshot import DEFAULT_TTL_SECONDS as SNAPSHOT_TTL_SECONDS
from breakwatch.db.store import DataStore
from breakwatch.market_hours import Clock, trading_date, utc_now
from breakwatch.models import (
    Alert,
    ApiStats,
    Baseline,
    BaselineStats,
    CacheStats,
    Candle,
    DiscoveryReport,
    ScanResult,
    Snapshot,
    SnapshotStats,
    WatchTarget,
    WatchlistScanReport,
)
from breakwatch.scanner import DEFAULT_MAX_WORKERS, BreakoutScanner, discover_breakouts
from breakwatch.sources.base import MarketDataSource
from breakwatch.universe import UNIVERSE_SIZE

logger = logging.getLogger(__name__)


class BreakoutService:
    """Entry point for scans, cache reads and statistics.

    Holds exactly one instance of every cache for its lifetime, so all
    callers share the same entries and counters.
    """

    MARKET_STATUS_METHOD = "getMarketStatus"

    def __init__(
        self,
        source: MarketDataSource,
        store: DataStore,
        clock: Optional[Clock] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        snapshot_ttl_seconds: float = SNAPSHOT_TTL_SECONDS,
        history_ttl_seconds: float = HISTORY_TTL_SECONDS,
        universe_size: int = UNIVERSE_SIZE,
    ):
        """Initialize the service.

        Args:
            source: Upstream market-data source.
            store: Data store holding the watchlist and alert log.
            clock: Returns the current instant; defaults to UTC now.
            max_workers: Bound on concurrent per-symbol fetches.
            snapshot_ttl_seconds: Freshness window of the index snapshot.
            history_ttl_seconds: Upper bound on a historical entry's age.
            universe_size: Symbols expected to have a baseline.
        """
        self.source = source
        self.store = store
        self._clock = clock or utc_now

        self.stats = ApiStatsTracker(clock=self._clock)
        self.historical = HistoricalCandleCache(
            source, self.stats, clock=self._clock, ttl_seconds=history_ttl_seconds
        )
        self.snapshots = SnapshotCache(
            source, self.stats, clock=self._clock, ttl_seconds=snapshot_ttl_seconds
        )
        self.baselines = BaselineEngine(
            self.historical, clock=self._clock, universe_size=universe_size
        )
        self.scanner = BreakoutScanner(
            self.historical,
            self.baselines,
            source,
            self.stats,
            clock=self._clock,
            max_workers=max_workers,
        )
        self.alerts = AlertDeduplicator(store, clock=self._clock)

    # ==================== Reads ====================

    def get_historical_data(self, symbol: str, days: int = 10) -> list[Candle]:
        return self.historical.get_historical_data(symbol, days)

    def get_historical_cache_stats(self) -> CacheStats:
        return self.historical.get_historical_cache_stats()

    def get_nifty50_snapshot(self) -> Snapshot:
        return self.snapshots.get_nifty50_snapshot()

    def get_nifty50_snapshot_stats(self) -> SnapshotStats:
        return self.snapshots.get_nifty50_snapshot_stats()

    def get_baselines(self, symbols: list[str]) -> dict[str, Baseline]:
        return self.baselines.get_baselines(symbols)

    def get_baseline_stats(self) -> BaselineStats:
        return self.baselines.get_baseline_stats()

    def get_api_stats(self) -> ApiStats:
        return self.stats.get_api_stats()

    def is_market_open(self) -> bool:
        """Ask the source whether the market is in session; False on failure."""
        self.stats.record("api", self.MARKET_STATUS_METHOD)
        try:
            return bool(self.source.fetch_market_status())
        except Exception as e:
            logger.warning("Market status unavailable, assuming closed: %s", e)
            return False

    # ==================== Scans ====================

    def scan_multiple_stocks(
        self,
        stocks: list[Union[WatchTarget, str]],
        use_intraday: bool = False,
        market_open: Optional[bool] = None,
    ) -> list[ScanResult]:
        """Scan a list of targets. Market status is looked up when not given."""
        if market_open is None:
            market_open = self.is_market_open()
        return self.scanner.scan_multiple_stocks(stocks, use_intraday, market_open)

    def run_watchlist_scan(
        self, use_intraday: bool = False, close_watch_only: bool = False
    ) -> WatchlistScanReport:
        """Scan the watchlist and raise alerts for new signals.

        Market status is fetched in parallel with the per-symbol batch.
        """
        targets = self.store.get_watch_targets()
        if close_watch_only:
            targets = [t for t in targets if t.close_watch]

        with ThreadPoolExecutor(max_workers=1) as executor:
            status_future = executor.submit(self.is_market_open)
            outcomes = self.scanner.fetch_all(targets, use_intraday)
            market_open = status_future.result()

        results = self.scanner.classify_all(outcomes, use_intraday, market_open)

        new_alerts: list[Alert] = []
        for result in results:
            if result.triggered:
                alert = self.alerts.watchlist_alert(result, "breakout")
                if self.alerts.add_alert(alert):
                    new_alerts.append(alert)
            if result.low_break_triggered:
                alert = self.alerts.watchlist_alert(result, "low-break")
                if self.alerts.add_alert(alert):
                    new_alerts.append(alert)

        logger.info(
            "Watchlist scan: %d result(s), %d new alert(s), market %s",
            len(results), len(new_alerts), "open" if market_open else "closed",
        )
        return WatchlistScanReport(
            results=results,
            new_alerts=new_alerts,
            scanned_at=self._clock(),
            market_open=market_open,
            cache_stats=self.get_historical_cache_stats(),
        )

    def run_discovery_scan(self) -> DiscoveryReport:
        """Look for breakouts among index symbols outside the watchlist.

        Raises:
            DataUnavailable: If no snapshot has ever been fetched and the
                current fetch failed.
        """
        with ThreadPoolExecutor(max_workers=3) as executor:
            snapshot_future = executor.submit(self.snapshots.get_nifty50_snapshot)
            targets_future = executor.submit(self.store.get_watch_targets)
            status_future = executor.submit(self.is_market_open)
            targets = targets_future.result()
            market_open = status_future.result()
            snapshot = snapshot_future.result()

        watchlist_symbols = [t.symbol for t in targets]
        close_watch_symbols = [t.symbol for t in targets if t.close_watch]

        baselines = self.baselines.get_baselines([row.symbol for row in snapshot.stocks])
        discoveries = discover_breakouts(snapshot, baselines, set(watchlist_symbols))

        today = trading_date(self._clock())
        rows = {row.symbol: row for row in snapshot.stocks}
        new_alerts: list[Alert] = []
        for discovery in discoveries:
            if not discovery.breakout:
                continue
            alert = self.alerts.discovery_alert(
                discovery, rows[discovery.symbol], baselines[discovery.symbol], today
            )
            if self.alerts.add_alert(alert):
                new_alerts.append(alert)

        logger.info(
            "Discovery: %d symbol(s) checked, %d breakout(s), %d new alert(s)%s",
            len(discoveries),
            sum(1 for d in discoveries if d.breakout),
            len(new_alerts),
            " (stale snapshot)" if snapshot.stale else "",
        )
        return DiscoveryReport(
            snapshot=snapshot,
            discoveries=discoveries,
            baseline_stats=self.get_baseline_stats(),
            watchlist_symbols=watchlist_symbols,
            close_watch_symbols=close_watch_symbols,
            market_open=market_open,
            new_alerts=new_alerts,
        )
