"""Baseline data model."""

from datetime import date
from pydantic import BaseModel, Field


class Baseline(BaseModel):
    """Trailing reference levels for a symbol, computed once per trading day."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    max_high_5d: float = Field(..., ge=0, description="Max daily high over the trailing 5 days")
    max_volume_5d: int = Field(..., ge=0, description="Max daily volume over the trailing 5 days")
    computed_date: date = Field(..., description="Trading date the baseline is valid for")
    days_used: int = Field(..., ge=1, le=5, description="Number of prior days available (1-5)")
    prev_10day_low: float = Field(
        default=0.0, ge=0, description="Min daily low over the trailing 10 days"
    )

    model_config = {"frozen": True}
