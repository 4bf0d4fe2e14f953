"""Candle (daily OHLCV) data model."""

from datetime import date as date_type
from pydantic import BaseModel, Field


class Candle(BaseModel):
    """Represents one trading day of OHLCV data for a symbol."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    date: date_type = Field(..., description="Trading day")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="Day high")
    low: float = Field(..., ge=0, description="Day low")
    close: float = Field(..., ge=0, description="Closing (or last traded) price")
    volume: int = Field(..., ge=0, description="Total traded volume")

    model_config = {"frozen": True}
