"""NIFTY 50 snapshot cache with serve-stale-on-error."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from breakwatch.cache.api_stats import ApiStatsTracker
from breakwatch.cache.inflight import InFlightRequests
from breakwatch.errors import DataUnavailable, SourceError
from breakwatch.market_hours import Clock, utc_now
from breakwatch.models import Snapshot, SnapshotStats
from breakwatch.sources.base import MarketDataSource

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 180


class SnapshotCache:
    """Memoizes the full-index snapshot for a short TTL.

    When a refresh fails and a previous snapshot exists, that snapshot is
    returned flagged ``stale=True, fetch_success=False``. Only when there
    has never been a successful fetch does the failure propagate.
    """

    METHOD = "getNifty50Snapshot"
    _KEY = "nifty50"

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
        self._inflight = InFlightRequests()

        self._snapshot: Optional[Snapshot] = None
        self._last_refresh_time: Optional[datetime] = None
        self._last_fetch_success = False
        self._fetch_count = 0
        self._success_count = 0
        self._fail_count = 0

    def get_nifty50_snapshot(self) -> Snapshot:
        """Get the index snapshot, refreshing it when older than the TTL.

        Raises:
            DataUnavailable: If the refresh failed and nothing is cached.
        """
        now = self._clock()
        with self._lock:
            cached = self._snapshot
        if cached is not None and now - cached.fetched_at < self._ttl:
            self._stats.record("cache", self.METHOD)
            return cached

        snapshot, shared = self._inflight.run(self._KEY, self._refresh)
        if shared:
            self._stats.record("cache", self.METHOD)
        return snapshot

    def _refresh(self) -> Snapshot:
        self._stats.record("api", self.METHOD)
        try:
            stocks = self._source.fetch_snapshot()
        except SourceError as e:
            with self._lock:
                self._fetch_count += 1
                self._fail_count += 1
                self._last_fetch_success = False
                previous = self._snapshot
            if previous is None:
                logger.warning("Snapshot fetch failed with nothing cached: %s", e)
                raise DataUnavailable(f"NIFTY 50 snapshot unavailable: {e}") from e
            logger.warning(
                "Snapshot fetch failed, serving copy from %s: %s",
                previous.fetched_at.isoformat(), e,
            )
            return previous.model_copy(update={"fetch_success": False, "stale": True})

        now = self._clock()
        snapshot = Snapshot(stocks=stocks, fetched_at=now, fetch_success=True, stale=False)
        with self._lock:
            self._snapshot = snapshot
            self._last_refresh_time = now
            self._last_fetch_success = True
            self._fetch_count += 1
            self._success_count += 1
        logger.debug("Snapshot refreshed: %d stocks", len(stocks))
        return snapshot

    def get_nifty50_snapshot_stats(self) -> SnapshotStats:
        """Refresh counters, read-only."""
        with self._lock:
            return SnapshotStats(
                last_refresh_time=self._last_refresh_time,
                snapshot_fetch_success=self._last_fetch_success,
                snapshot_fetch_count=self._fetch_count,
                snapshot_success_count=self._success_count,
                snapshot_fail_count=self._fail_count,
            )
