"""Data models for BreakWatch."""

from breakwatch.models.candle import Candle
from breakwatch.models.snapshot import QuoteRow, Snapshot
from breakwatch.models.baseline import Baseline
from breakwatch.models.scan import BreakoutDiscovery, DataSource, ScanResult, WatchTarget
from breakwatch.models.alert import Alert, AlertType
from breakwatch.models.stats import (
    ApiCallRecord,
    ApiStats,
    BaselineStats,
    CacheStats,
    MethodCounts,
    SnapshotStats,
)
from breakwatch.models.reports import DiscoveryReport, WatchlistScanReport

__all__ = [
    "Alert",
    "AlertType",
    "ApiCallRecord",
    "ApiStats",
    "Baseline",
    "BaselineStats",
    "BreakoutDiscovery",
    "CacheStats",
    "Candle",
    "DataSource",
    "DiscoveryReport",
    "MethodCounts",
    "QuoteRow",
    "ScanResult",
    "Snapshot",
    "SnapshotStats",
    "WatchTarget",
    "WatchlistScanReport",
]
