"""Exceptions raised by BreakWatch."""

from typing import Optional


class BreakwatchError(Exception):
    """Base class for all BreakWatch errors."""


class SourceError(BreakwatchError):
    """The upstream market-data source failed (network, auth, bad payload)."""


class DataUnavailable(BreakwatchError):
    """Upstream fetch failed and there is no usable cached copy.

    Attributes:
        symbol: Symbol the request was for, or None for index-wide data.
    """

    def __init__(self, message: str, symbol: Optional[str] = None):
        super().__init__(message)
        self.symbol = symbol
