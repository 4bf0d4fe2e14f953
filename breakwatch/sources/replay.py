"""Offline market-data source replaying candles from the data store."""

from datetime import timedelta
from typing import Optional

from breakwatch.db.store import DataStore
from breakwatch.errors import SourceError
from breakwatch.market_hours import Clock, is_market_hours, trading_date, utc_now
from breakwatch.models import Candle, QuoteRow
from breakwatch.sources.base import MarketDataSource
from breakwatch.universe import NIFTY50


class ReplaySource(MarketDataSource):
    """Serves daily candles previously saved in the DataStore.

    Makes no external calls. The candle stored for the current trading
    day (if any) plays the role of live data; earlier candles are the
    history. Useful for offline runs and for replaying a past session by
    injecting a clock.
    """

    # Calendar days searched for the latest candle of a symbol
    SNAPSHOT_LOOKBACK_DAYS = 10

    def __init__(
        self,
        data_store: DataStore,
        clock: Optional[Clock] = None,
        universe: Optional[dict[str, str]] = None,
    ):
        """Initialize the replay source.

        Args:
            data_store: DataStore holding the candles.
            clock: Returns the current instant; defaults to UTC now.
            universe: Symbol -> name map for snapshots (default NIFTY 50).
        """
        self._data_store = data_store
        self._clock = clock or utc_now
        self._universe = universe if universe is not None else NIFTY50

    def fetch_current_day(self, symbol: str) -> Optional[Candle]:
        today = trading_date(self._clock())
        candles = self._data_store.get_candles(symbol, today, today)
        return candles[-1] if candles else None

    def fetch_historical(self, symbol: str, days: int) -> list[Candle]:
        today = trading_date(self._clock())
        from_date = today - timedelta(days=days * 2 + 7)
        candles = self._data_store.get_candles(symbol, from_date, today - timedelta(days=1))
        return candles[-days:]

    def fetch_snapshot(self) -> list[QuoteRow]:
        """Build index rows from each symbol's most recent stored candle."""
        today = trading_date(self._clock())
        from_date = today - timedelta(days=self.SNAPSHOT_LOOKBACK_DAYS)

        stocks = []
        for symbol, name in self._universe.items():
            candles = self._data_store.get_candles(symbol, from_date, today)
            if not candles:
                continue
            last = candles[-1]
            prev_close = candles[-2].close if len(candles) > 1 else last.open
            change = last.close - prev_close
            stocks.append(QuoteRow(
                symbol=symbol,
                name=name,
                last_price=last.close,
                change=round(change, 2),
                percent_change=round(change / prev_close * 100, 2) if prev_close > 0 else 0.0,
                open=last.open,
                day_high=last.high,
                day_low=last.low,
                previous_close=prev_close,
                total_traded_volume=last.volume,
                total_traded_value=last.close * last.volume,
            ))

        if not stocks:
            raise SourceError("No stored candles to build a snapshot from")
        return stocks

    def fetch_market_status(self) -> bool:
        return is_market_hours(self._clock())
