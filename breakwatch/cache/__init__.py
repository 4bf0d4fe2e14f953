"""Cache layers in front of the upstream market-data source."""

from breakwatch.cache.api_stats import ApiStatsTracker
from breakwatch.cache.historical import HistoricalCandleCache
from breakwatch.cache.inflight import InFlightRequests
from breakwatch.cache.snapshot import SnapshotCache

__all__ = [
    "ApiStatsTracker",
    "HistoricalCandleCache",
    "InFlightRequests",
    "SnapshotCache",
]
