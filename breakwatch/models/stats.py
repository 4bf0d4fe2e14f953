"""Read-only statistics summaries."""

from datetime import date as date_type, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """Historical candle cache contents for the current trading day."""

    size: int = Field(..., ge=0, description="Number of cached symbols")
    symbols: list[str] = Field(default_factory=list, description="Cached symbols")
    date: date_type = Field(..., description="Trading day the entries belong to")

    model_config = {"frozen": True}


class ApiCallRecord(BaseModel):
    """One data request, served either upstream or from cache."""

    ts: datetime = Field(..., description="When the request was made")
    kind: Literal["api", "cache"] = Field(..., description="Upstream call or cache hit")
    method: str = Field(..., description="Accessor name")
    symbol: Optional[str] = Field(default=None, description="Symbol, if any")

    model_config = {"frozen": True}


class MethodCounts(BaseModel):
    """Cumulative upstream/cache counts for one accessor."""

    api: int = Field(default=0, ge=0)
    cache: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class ApiStats(BaseModel):
    """Request telemetry over the rolling call log."""

    total: int = Field(..., ge=0, description="Records in the rolling log")
    api_calls: int = Field(..., ge=0, description="Upstream calls in the rolling log")
    cache_hits: int = Field(..., ge=0, description="Cache hits in the rolling log")
    recent_rate: float = Field(..., ge=0, description="Upstream calls per second, last 60s")
    last_60s: list[ApiCallRecord] = Field(default_factory=list, description="Recent records")
    method_breakdown: dict[str, MethodCounts] = Field(
        default_factory=dict, description="Cumulative counts per accessor"
    )

    model_config = {"frozen": True}


class SnapshotStats(BaseModel):
    """Snapshot refresh counters; monotonic for the life of the cache."""

    last_refresh_time: Optional[datetime] = Field(default=None)
    snapshot_fetch_success: bool = Field(default=False)
    snapshot_fetch_count: int = Field(default=0, ge=0, description="Refresh attempts")
    snapshot_success_count: int = Field(default=0, ge=0, description="Successful refreshes")
    snapshot_fail_count: int = Field(default=0, ge=0, description="Failed refreshes")

    model_config = {"frozen": True}


class BaselineStats(BaseModel):
    """Baseline availability against the index universe."""

    available: int = Field(..., ge=0)
    missing: int = Field(..., ge=0)
    date: date_type = Field(...)
    symbols: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}
