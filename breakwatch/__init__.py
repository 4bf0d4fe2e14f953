"""BreakWatch: breakout scanner for NSE stocks."""

__version__ = "0.1.0"
