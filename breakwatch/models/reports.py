"""Scan cycle reports returned by the service."""

from datetime import datetime
from pydantic import BaseModel, Field

from breakwatch.models.alert import Alert
from breakwatch.models.scan import BreakoutDiscovery, ScanResult
from breakwatch.models.snapshot import Snapshot
from breakwatch.models.stats import BaselineStats, CacheStats


class WatchlistScanReport(BaseModel):
    """Outcome of one watchlist scan cycle."""

    results: list[ScanResult] = Field(default_factory=list)
    new_alerts: list[Alert] = Field(default_factory=list)
    scanned_at: datetime = Field(...)
    market_open: bool = Field(default=False)
    cache_stats: CacheStats = Field(...)

    model_config = {"frozen": True}


class DiscoveryReport(BaseModel):
    """Outcome of one NIFTY 50 discovery cycle."""

    snapshot: Snapshot = Field(...)
    discoveries: list[BreakoutDiscovery] = Field(default_factory=list)
    baseline_stats: BaselineStats = Field(...)
    watchlist_symbols: list[str] = Field(default_factory=list)
    close_watch_symbols: list[str] = Field(default_factory=list)
    market_open: bool = Field(default=False)
    new_alerts: list[Alert] = Field(default_factory=list)

    model_config = {"frozen": True}
