"""Angel One market-data source using SmartAPI."""

import json
import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

import pyotp
from SmartApi import SmartConnect

from breakwatch.errors import SourceError
from breakwatch.market_hours import Clock, is_market_hours, trading_date, utc_now
from breakwatch.models import Candle, QuoteRow
from breakwatch.sources.base import MarketDataSource
from breakwatch.universe import NIFTY50

logger = logging.getLogger(__name__)

EXCHANGE = "NSE"

# getMarketData accepts at most 50 tokens per exchange per request
MARKET_DATA_BATCH = 50

# Well-known NSE tokens; anything else is resolved through searchScrip
COMMON_TOKENS = {
    "RELIANCE": ("2885", "RELIANCE-EQ"),
    "TCS": ("11536", "TCS-EQ"),
    "INFY": ("1594", "INFY-EQ"),
    "HDFCBANK": ("1333", "HDFCBANK-EQ"),
    "ICICIBANK": ("4963", "ICICIBANK-EQ"),
    "SBIN": ("3045", "SBIN-EQ"),
    "BHARTIARTL": ("10604", "BHARTIARTL-EQ"),
    "ITC": ("1660", "ITC-EQ"),
    "KOTAKBANK": ("1922", "KOTAKBANK-EQ"),
    "LT": ("11483", "LT-EQ"),
    "AXISBANK": ("5900", "AXISBANK-EQ"),
    "HINDUNILVR": ("1394", "HINDUNILVR-EQ"),
    "BAJFINANCE": ("317", "BAJFINANCE-EQ"),
    "MARUTI": ("10999", "MARUTI-EQ"),
    "ASIANPAINT": ("236", "ASIANPAINT-EQ"),
    "TITAN": ("3506", "TITAN-EQ"),
    "WIPRO": ("3787", "WIPRO-EQ"),
    "HCLTECH": ("7229", "HCLTECH-EQ"),
    "SUNPHARMA": ("3351", "SUNPHARMA-EQ"),
    "TATAMOTORS": ("3456", "TATAMOTORS-EQ"),
    "TATASTEEL": ("3499", "TATASTEEL-EQ"),
    "POWERGRID": ("14977", "POWERGRID-EQ"),
    "NTPC": ("11630", "NTPC-EQ"),
    "ONGC": ("2475", "ONGC-EQ"),
    "COALINDIA": ("20374", "COALINDIA-EQ"),
}


class AngelOneSource(MarketDataSource):
    """Market-data source backed by Angel One's SmartAPI.

    Handles TOTP login and session persistence, resolves symbol tokens,
    and maps SmartAPI payloads onto BreakWatch models. Nothing is cached
    here apart from the session and resolved symbol tokens.
    """

    def __init__(
        self,
        api_key: str,
        client_id: str,
        pin: str,
        totp_secret: str,
        token_path: Optional[Path] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the Angel One source.

        Args:
            api_key: Angel One API key.
            client_id: Angel One client ID.
            pin: Angel One PIN.
            totp_secret: TOTP secret for 2FA.
            token_path: Path to store session tokens.
            clock: Returns the current instant; defaults to UTC now.
        """
        self.api_key = api_key
        self.client_id = client_id
        self.pin = pin
        self.totp_secret = totp_secret
        self.token_path = token_path or Path.home() / ".config" / "breakwatch" / "session.json"
        self._clock = clock or utc_now

        self._smart_api: Optional[SmartConnect] = None
        self._auth_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._feed_token: Optional[str] = None
        self._tokens: dict[str, tuple[str, str]] = dict(COMMON_TOKENS)
        self._session_lock = threading.RLock()

    # ==================== Session ====================

    def _generate_totp(self) -> str:
        """Generate the current TOTP code."""
        clean_secret = self.totp_secret.replace("-", "").replace(" ", "").replace("_", "").upper()

        invalid_chars = set(clean_secret) - set("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")
        if invalid_chars:
            raise ValueError(
                f"TOTP secret contains invalid characters: {invalid_chars}. "
                "Base32 only allows A-Z and 2-7."
            )

        return pyotp.TOTP(clean_secret).now()

    def _save_session(self) -> None:
        """Save session tokens to file."""
        if not self._auth_token:
            return

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        session_data = {
            "auth_token": self._auth_token,
            "refresh_token": self._refresh_token,
            "feed_token": self._feed_token,
            "timestamp": self._clock().isoformat(),
        }
        self.token_path.write_text(json.dumps(session_data))

    def _load_session(self) -> bool:
        """Load session tokens from file.

        Returns:
            True if a usable session was loaded, False otherwise.
        """
        if not self.token_path.exists():
            return False

        try:
            session_data = json.loads(self.token_path.read_text())
        except json.JSONDecodeError:
            return False

        self._auth_token = session_data.get("auth_token")
        self._refresh_token = session_data.get("refresh_token")
        self._feed_token = session_data.get("feed_token")
        return bool(self._auth_token)

    def login(self) -> bool:
        """Authenticate with Angel One using TOTP.

        Returns:
            True if authentication succeeded, False otherwise.
        """
        with self._session_lock:
            return self._login()

    def _login(self) -> bool:
        try:
            api = SmartConnect(api_key=self.api_key)
            data = api.generateSession(
                clientCode=self.client_id,
                password=self.pin,
                totp=self._generate_totp(),
            )
        except Exception as e:
            logger.warning("Angel One login failed: %s", e)
            return False

        if data and data.get("status"):
            self._auth_token = data["data"]["jwtToken"]
            self._refresh_token = data["data"]["refreshToken"]
            self._feed_token = api.getfeedToken()
            self._smart_api = api
            self._save_session()
            return True

        logger.warning(
            "Angel One login rejected: %s",
            data.get("message", "Unknown error") if data else "No response from API",
        )
        return False

    def is_authenticated(self) -> bool:
        """Check if a session token is held."""
        return self._auth_token is not None

    def _ensure_authenticated(self) -> SmartConnect:
        """Return a ready SmartConnect, loading or creating a session as needed.

        Raises:
            SourceError: If no session can be established.
        """
        api = self._smart_api
        if api is not None and self.is_authenticated():
            return api

        # Scan workers call in concurrently; only one of them logs in
        with self._session_lock:
            if self._smart_api is not None and self.is_authenticated():
                return self._smart_api

            if not self._load_session():
                if not self.login():
                    raise SourceError("Failed to authenticate with Angel One")
                return self._smart_api

            api = SmartConnect(api_key=self.api_key)
            token = self._auth_token
            if token and token.startswith("Bearer "):
                token = token[7:]
            api.setAccessToken(token)
            if self._refresh_token:
                api.setRefreshToken(self._refresh_token)
            self._smart_api = api
            return api

    # ==================== Symbols ====================

    def _resolve(self, symbol: str) -> tuple[str, str]:
        """Get the (symbol_token, trading_symbol) pair for an NSE symbol."""
        symbol = symbol.upper()
        if symbol in self._tokens:
            return self._tokens[symbol]

        api = self._ensure_authenticated()
        try:
            result = api.searchScrip(EXCHANGE, symbol)
        except Exception as e:
            raise SourceError(f"Symbol lookup failed for {symbol}: {e}") from e

        items = (result or {}).get("data") or []
        match = None
        for wanted in (symbol, f"{symbol}-EQ"):
            match = next(
                (i for i in items if i.get("tradingsymbol", "").upper() == wanted), None
            )
            if match:
                break
        if match is None:
            raise SourceError(f"Unknown NSE symbol: {symbol}")

        pair = (match["symboltoken"], match["tradingsymbol"])
        self._tokens[symbol] = pair
        return pair

    @staticmethod
    def _plain_symbol(trading_symbol: str) -> str:
        return trading_symbol[:-3] if trading_symbol.endswith("-EQ") else trading_symbol

    # ==================== Market data ====================

    def _market_data(self, tokens: list[str]) -> list[dict[str, Any]]:
        """Fetch FULL-mode market data rows for NSE tokens."""
        api = self._ensure_authenticated()
        rows: list[dict[str, Any]] = []
        for i in range(0, len(tokens), MARKET_DATA_BATCH):
            batch = tokens[i:i + MARKET_DATA_BATCH]
            try:
                response = api.getMarketData("FULL", {EXCHANGE: batch})
            except Exception as e:
                raise SourceError(f"Market data request failed: {e}") from e
            if not response or not response.get("status"):
                message = response.get("message", "no response") if response else "no response"
                raise SourceError(f"Market data request rejected: {message}")
            rows.extend(response["data"].get("fetched") or [])
        return rows

    def fetch_current_day(self, symbol: str) -> Optional[Candle]:
        """Get today's in-progress candle from a FULL market-data quote."""
        token, _ = self._resolve(symbol)
        rows = self._market_data([token])
        if not rows:
            return None

        row = rows[0]
        high = float(row.get("high") or 0)
        if high <= 0:
            return None

        ltp = float(row.get("ltp") or 0)
        return Candle(
            symbol=symbol.upper(),
            date=trading_date(self._clock()),
            open=float(row.get("open") or ltp),
            high=high,
            low=float(row.get("low") or ltp),
            close=ltp,
            volume=int(row.get("tradeVolume") or 0),
        )

    def fetch_historical(self, symbol: str, days: int) -> list[Candle]:
        """Get the last ``days`` daily candles via getCandleData."""
        token, _ = self._resolve(symbol)
        api = self._ensure_authenticated()

        to_date = self._clock()
        # Pad the calendar window to cover weekends and holidays
        from_date = to_date - timedelta(days=days * 2 + 7)
        params = {
            "exchange": EXCHANGE,
            "symboltoken": token,
            "interval": "ONE_DAY",
            "fromdate": f"{from_date.date().isoformat()} 09:15",
            "todate": f"{to_date.date().isoformat()} 15:30",
        }

        try:
            data = api.getCandleData(params)
        except Exception as e:
            raise SourceError(f"Failed to get historical data for {symbol}: {e}") from e

        if not data or not data.get("status", True):
            message = data.get("message", "no response") if data else "no response"
            raise SourceError(f"Historical data request rejected for {symbol}: {message}")

        candles = [
            Candle(
                symbol=symbol.upper(),
                date=datetime.fromisoformat(row[0]).date(),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=int(row[5]),
            )
            for row in data.get("data") or []
        ]
        candles.sort(key=lambda c: c.date)
        if is_market_hours(to_date):
            # Today's bar is still forming
            today = trading_date(to_date)
            candles = [c for c in candles if c.date < today]
        return candles[-days:]

    def fetch_snapshot(self) -> list[QuoteRow]:
        """Get FULL quotes for every NIFTY 50 constituent."""
        tokens = [self._resolve(symbol)[0] for symbol in NIFTY50]
        stocks = []
        for row in self._market_data(tokens):
            symbol = self._plain_symbol(row.get("tradingSymbol", ""))
            if not symbol or symbol not in NIFTY50:
                continue
            volume = int(row.get("tradeVolume") or 0)
            stocks.append(QuoteRow(
                symbol=symbol,
                name=NIFTY50[symbol],
                last_price=float(row.get("ltp") or 0),
                change=float(row.get("netChange") or 0),
                percent_change=float(row.get("percentChange") or 0),
                open=float(row.get("open") or 0),
                day_high=float(row.get("high") or 0),
                day_low=float(row.get("low") or 0),
                previous_close=float(row.get("close") or 0),
                total_traded_volume=volume,
                total_traded_value=float(row.get("avgPrice") or 0) * volume,
                year_high=float(row.get("52WeekHigh") or 0),
                year_low=float(row.get("52WeekLow") or 0),
            ))
        return stocks

    def fetch_market_status(self) -> bool:
        """SmartAPI has no market-status endpoint; use the NSE session clock."""
        return is_market_hours(self._clock())
