"""Alert data model."""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

AlertType = Literal["breakout", "low-break"]


class Alert(BaseModel):
    """Represents a persisted breakout alert."""

    id: str = Field(..., min_length=1, description="Stable identity key")
    symbol: str = Field(..., min_length=1, description="Trading symbol")
    name: str = Field(default="", description="Display name")
    alert_type: AlertType = Field(default="breakout", description="Kind of signal")
    today_high: float = Field(default=0.0, ge=0, description="Day high at trigger time")
    today_volume: int = Field(default=0, ge=0, description="Day volume at trigger time")
    prev_max_high: float = Field(default=0.0, ge=0, description="Baseline max high")
    prev_max_volume: int = Field(default=0, ge=0, description="Baseline max volume")
    high_break_percent: float = Field(default=0.0, description="High above baseline, %")
    volume_break_percent: float = Field(default=0.0, description="Volume above baseline, %")
    today_close: float = Field(default=0.0, ge=0, description="Close or last traded price")
    today_change: float = Field(default=0.0, description="Percent change vs previous close")
    prev_10day_low: float = Field(default=0.0, ge=0, description="Trailing 10-day low")
    low_break_percent: float = Field(default=0.0, description="Day low below 10-day low, %")
    triggered_at: datetime = Field(..., description="When the alert fired")
    read: bool = Field(default=False, description="Acknowledged by the user")

    model_config = {"frozen": True}
