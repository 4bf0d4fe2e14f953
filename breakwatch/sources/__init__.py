"""Market-data sources for BreakWatch."""

from breakwatch.sources.base import MarketDataSource
from breakwatch.sources.angelone import AngelOneSource
from breakwatch.sources.replay import ReplaySource

__all__ = [
    "AngelOneSource",
    "MarketDataSource",
    "ReplaySource",
]
