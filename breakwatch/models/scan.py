"""Scan and discovery result models."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

DataSource = Literal["live", "historical", "stale"]


class WatchTarget(BaseModel):
    """A symbol on the user's watchlist."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    name: str = Field(default="", description="Display name")
    close_watch: bool = Field(default=False, description="Marked for close watch")

    model_config = {"frozen": True}


class ScanResult(BaseModel):
    """Breakout classification of one watchlist symbol in one scan cycle."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    name: str = Field(default="", description="Display name")
    today_high: float = Field(default=0.0, ge=0, description="Day high being evaluated")
    today_low: float = Field(default=0.0, ge=0, description="Day low being evaluated")
    today_volume: int = Field(default=0, ge=0, description="Day volume being evaluated")
    today_close: float = Field(default=0.0, ge=0, description="Close or last traded price")
    today_change: float = Field(default=0.0, description="Percent change vs previous close")
    prev_max_high: float = Field(default=0.0, ge=0, description="Baseline max high")
    prev_max_volume: int = Field(default=0, ge=0, description="Baseline max volume")
    high_break_percent: float = Field(default=0.0, description="High above baseline, %")
    volume_break_percent: float = Field(default=0.0, description="Volume above baseline, %")
    triggered: bool = Field(default=False, description="Both high and volume broke out")
    data_source: DataSource = Field(default="historical", description="Where today's data came from")
    scanned_at: datetime = Field(..., description="Scan timestamp")
    low_break_triggered: bool = Field(default=False, description="Day low under the 10-day low")
    prev_10day_low: float = Field(default=0.0, ge=0, description="Trailing 10-day low")
    low_break_percent: float = Field(default=0.0, description="Day low below 10-day low, %")
    skipped: bool = Field(default=False, description="No usable data this cycle")
    error: Optional[str] = Field(default=None, description="Why the symbol was skipped")

    model_config = {"frozen": True}


class BreakoutDiscovery(BaseModel):
    """Breakout classification of an index symbol outside the watchlist."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    name: str = Field(default="", description="Company name")
    breakout: bool = Field(default=False, description="Confirmed breakout")
    high_break: bool = Field(default=False, description="Day high above baseline")
    volume_break: bool = Field(default=False, description="Volume above baseline")
    high_break_percent: float = Field(default=0.0, description="High above baseline, %")
    volume_break_percent: float = Field(default=0.0, description="Volume above baseline, %")
    baseline_unavailable: bool = Field(default=False, description="No reference data")
    possible_breakout: bool = Field(default=False, description="Snapshot could not be trusted")

    model_config = {"frozen": True}
