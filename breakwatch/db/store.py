"""SQLite data store for BreakWatch."""

import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from breakwatch.models import Alert, Candle, WatchTarget


class DataStore:
    """SQLite-based data store for BreakWatch.

    Holds the alert log (the key-value collaborator of the alert
    deduplicator), the watchlist, and persisted daily candles for
    offline replay.
    """

    REQUIRED_TABLES = [
        "candles",
        "watchlist",
        "alerts",
    ]

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS candles (
                    symbol TEXT NOT NULL,
                    date TEXT NOT NULL,
                    open REAL NOT NULL,
                    high REAL NOT NULL,
                    low REAL NOT NULL,
                    close REAL NOT NULL,
                    volume INTEGER NOT NULL,
                    PRIMARY KEY (symbol, date)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS watchlist (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL,
                    name TEXT NOT NULL DEFAULT '',
                    close_watch INTEGER NOT NULL DEFAULT 0,
                    list_name TEXT NOT NULL DEFAULT 'default',
                    UNIQUE(symbol, list_name)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS alerts (
                    id TEXT PRIMARY KEY,
                    symbol TEXT NOT NULL,
                    name TEXT NOT NULL,
                    alert_type TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    triggered_at TEXT NOT NULL,
                    read INTEGER NOT NULL DEFAULT 0
                )
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Candles ====================

    def save_candles(self, candles: list[Candle]) -> None:
        """Save daily candles, replacing any stored for the same symbol/date.

        Args:
            candles: Candles to save.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.executemany(
                """
                INSERT OR REPLACE INTO candles
                (symbol, date, open, high, low, close, volume)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        c.symbol,
                        c.date.isoformat(),
                        c.open,
                        c.high,
                        c.low,
                        c.close,
                        c.volume,
                    )
                    for c in candles
                ],
            )
            conn.commit()
        finally:
            conn.close()

    def get_candles(self, symbol: str, from_date: date, to_date: date) -> list[Candle]:
        """Get stored candles for a symbol, oldest first.

        Args:
            symbol: Trading symbol.
            from_date: Start date (inclusive).
            to_date: End date (inclusive).

        Returns:
            List of candles in the date range.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT symbol, date, open, high, low, close, volume
                FROM candles
                WHERE symbol = ? AND date >= ? AND date <= ?
                ORDER BY date
                """,
                (symbol, from_date.isoformat(), to_date.isoformat()),
            )
            return [
                Candle(
                    symbol=row["symbol"],
                    date=date.fromisoformat(row["date"]),
                    open=row["open"],
                    high=row["high"],
                    low=row["low"],
                    close=row["close"],
                    volume=row["volume"],
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== Watchlist ====================

    def add_to_watchlist(
        self,
        symbol: str,
        name: str = "",
        close_watch: bool = False,
        list_name: str = "default",
    ) -> bool:
        """Add a symbol to a watchlist.

        Args:
            symbol: Symbol to add.
            name: Display name.
            close_watch: Whether to mark the symbol for close watch.
            list_name: Name of the watchlist.

        Returns:
            True if added, False if it was already present.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO watchlist (symbol, name, close_watch, list_name)
                VALUES (?, ?, ?, ?)
                """,
                (symbol, name, 1 if close_watch else 0, list_name),
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def remove_from_watchlist(self, symbol: str, list_name: str = "default") -> None:
        """Remove a symbol from a watchlist.

        Args:
            symbol: Symbol to remove.
            list_name: Name of the watchlist.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM watchlist WHERE symbol = ? AND list_name = ?",
                (symbol, list_name),
            )
            conn.commit()
        finally:
            conn.close()

    def set_close_watch(self, symbol: str, close_watch: bool, list_name: str = "default") -> None:
        """Toggle the close-watch flag of a watchlist entry."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE watchlist SET close_watch = ? WHERE symbol = ? AND list_name = ?",
                (1 if close_watch else 0, symbol, list_name),
            )
            conn.commit()
        finally:
            conn.close()

    def get_watch_targets(self, list_name: str = "default") -> list[WatchTarget]:
        """Get all entries of a watchlist.

        Args:
            list_name: Name of the watchlist.

        Returns:
            Watchlist entries in insertion order.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT symbol, name, close_watch FROM watchlist
                WHERE list_name = ?
                ORDER BY id
                """,
                (list_name,),
            )
            return [
                WatchTarget(
                    symbol=row["symbol"],
                    name=row["name"],
                    close_watch=bool(row["close_watch"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def get_watchlist(self, list_name: str = "default") -> list[str]:
        """Get the symbols of a watchlist."""
        return [t.symbol for t in self.get_watch_targets(list_name)]

    # ==================== Alerts ====================

    @staticmethod
    def _row_to_alert(row: sqlite3.Row) -> Alert:
        alert = Alert.model_validate_json(row["payload"])
        return alert.model_copy(update={"read": bool(row["read"])})

    def get(self, alert_id: str) -> Optional[Alert]:
        """Get an alert by its identity key.

        Args:
            alert_id: Alert identity key.

        Returns:
            Alert if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT payload, read FROM alerts WHERE id = ?",
                (alert_id,),
            )
            row = cursor.fetchone()
            return self._row_to_alert(row) if row else None
        finally:
            conn.close()

    def put(self, alert: Alert) -> bool:
        """Insert an alert unless one with the same id exists.

        Args:
            alert: Alert to store.

        Returns:
            True if stored, False if the id was already taken.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO alerts
                (id, symbol, name, alert_type, payload, triggered_at, read)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    alert.id,
                    alert.symbol,
                    alert.name,
                    alert.alert_type,
                    alert.model_dump_json(),
                    alert.triggered_at.isoformat(),
                    1 if alert.read else 0,
                ),
            )
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def list_alerts(self) -> list[Alert]:
        """Get all alerts, newest first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT payload, read FROM alerts ORDER BY triggered_at DESC"
            )
            return [self._row_to_alert(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def mark_alert_read(self, alert_id: str) -> bool:
        """Acknowledge one alert.

        Returns:
            True if the alert exists.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE alerts SET read = 1 WHERE id = ?", (alert_id,))
            conn.commit()
            return cursor.rowcount == 1
        finally:
            conn.close()

    def mark_all_alerts_read(self) -> int:
        """Acknowledge every unread alert.

        Returns:
            Number of alerts changed.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE alerts SET read = 1 WHERE read = 0")
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def get_unread_alert_count(self) -> int:
        """Count alerts not yet acknowledged."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM alerts WHERE read = 0")
            return cursor.fetchone()["count"]
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.get_tables():
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
