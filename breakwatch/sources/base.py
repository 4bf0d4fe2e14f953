"""Base market-data source interface for BreakWatch."""

from abc import ABC, abstractmethod
from typing import Optional

from breakwatch.models import Candle, QuoteRow


class MarketDataSource(ABC):
    """Abstract base class for upstream market-data sources.

    Implementations do no caching of their own; that is the job of the
    cache layers in :mod:`breakwatch.cache`. Every method may raise
    :class:`breakwatch.errors.SourceError` on a transient failure.
    """

    @abstractmethod
    def fetch_current_day(self, symbol: str) -> Optional[Candle]:
        """Get today's in-progress candle for a symbol.

        Args:
            symbol: Trading symbol.

        Returns:
            Candle dated today, or None if the exchange has nothing yet.

        Raises:
            SourceError: If the upstream request fails.
        """
        pass

    @abstractmethod
    def fetch_historical(self, symbol: str, days: int) -> list[Candle]:
        """Get the most recent daily candles for a symbol.

        Args:
            symbol: Trading symbol.
            days: Number of trading days wanted.

        Returns:
            Up to ``days`` candles, oldest first.

        Raises:
            SourceError: If the upstream request fails.
        """
        pass

    @abstractmethod
    def fetch_snapshot(self) -> list[QuoteRow]:
        """Get quote rows for every NIFTY 50 constituent in one shot.

        Returns:
            Constituent rows (the index row itself excluded).

        Raises:
            SourceError: If the upstream request fails.
        """
        pass

    @abstractmethod
    def fetch_market_status(self) -> bool:
        """Check whether the cash market is currently open.

        Raises:
            SourceError: If the upstream request fails.
        """
        pass
