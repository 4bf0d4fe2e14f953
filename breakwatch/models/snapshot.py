"""Index snapshot data models."""

from datetime import datetime
from pydantic import BaseModel, Field


class QuoteRow(BaseModel):
    """One constituent row of an index snapshot."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    name: str = Field(default="", description="Company name")
    last_price: float = Field(..., ge=0, description="Last traded price")
    change: float = Field(default=0.0, description="Change from previous close")
    percent_change: float = Field(default=0.0, description="Percentage change")
    open: float = Field(default=0.0, ge=0, description="Opening price")
    day_high: float = Field(default=0.0, ge=0, description="Day high")
    day_low: float = Field(default=0.0, ge=0, description="Day low")
    previous_close: float = Field(default=0.0, ge=0, description="Previous close")
    total_traded_volume: int = Field(default=0, ge=0, description="Traded volume")
    total_traded_value: float = Field(default=0.0, ge=0, description="Traded value")
    year_high: float = Field(default=0.0, ge=0, description="52-week high")
    year_low: float = Field(default=0.0, ge=0, description="52-week low")

    model_config = {"frozen": True}


class Snapshot(BaseModel):
    """All constituents of the index, produced by one fetch cycle."""

    stocks: list[QuoteRow] = Field(default_factory=list, description="Constituent rows")
    fetched_at: datetime = Field(..., description="When the rows were fetched")
    fetch_success: bool = Field(..., description="Whether the latest refresh succeeded")
    stale: bool = Field(
        default=False,
        description="Served past its freshness window because the refresh failed",
    )

    model_config = {"frozen": True}
