"""Alert construction and deduplication."""

import logging
import threading
from datetime import date
from typing import Optional

from breakwatch.db.store import DataStore
from breakwatch.market_hours import Clock, utc_now
from breakwatch.models import Alert, AlertType, Baseline, BreakoutDiscovery, QuoteRow, ScanResult

logger = logging.getLogger(__name__)

LOCK_STRIPES = 64


def watchlist_alert_id(symbol: str, epoch_ms: int, alert_type: AlertType = "breakout") -> str:
    """Watchlist alerts are unique per firing instant."""
    if alert_type == "breakout":
        return f"{symbol}-{epoch_ms}"
    return f"{symbol}-{alert_type}-{epoch_ms}"


def discovery_alert_id(symbol: str, day: date) -> str:
    """Discovery alerts are unique per symbol per trading day."""
    return f"{symbol}-nifty50-breakout-{day.isoformat()}"


class AlertDeduplicator:
    """Assigns alert identities and stores each identity at most once."""

    def __init__(self, store: DataStore, clock: Optional[Clock] = None):
        """Initialize the deduplicator.

        Args:
            store: Key-value store holding the alert log.
            clock: Returns the current instant; defaults to UTC now.
        """
        self._store = store
        self._clock = clock or utc_now
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def _lock_for(self, alert_id: str) -> threading.Lock:
        # Equal ids always share a stripe
        return self._locks[hash(alert_id) % LOCK_STRIPES]

    def watchlist_alert(self, result: ScanResult, alert_type: AlertType = "breakout") -> Alert:
        """Build an alert for a watchlist scan result."""
        now = self._clock()
        epoch_ms = int(now.timestamp() * 1000)
        return Alert(
            id=watchlist_alert_id(result.symbol, epoch_ms, alert_type),
            symbol=result.symbol,
            name=result.name,
            alert_type=alert_type,
            today_high=result.today_high,
            today_volume=result.today_volume,
            prev_max_high=result.prev_max_high,
            prev_max_volume=result.prev_max_volume,
            high_break_percent=result.high_break_percent,
            volume_break_percent=result.volume_break_percent,
            today_close=result.today_close,
            today_change=result.today_change,
            prev_10day_low=result.prev_10day_low,
            low_break_percent=result.low_break_percent,
            triggered_at=now,
        )

    def discovery_alert(
        self,
        discovery: BreakoutDiscovery,
        row: QuoteRow,
        baseline: Baseline,
        day: date,
    ) -> Alert:
        """Build an alert for a confirmed discovery breakout."""
        return Alert(
            id=discovery_alert_id(discovery.symbol, day),
            symbol=discovery.symbol,
            name=discovery.name,
            alert_type="breakout",
            today_high=row.day_high,
            today_volume=row.total_traded_volume,
            prev_max_high=baseline.max_high_5d,
            prev_max_volume=baseline.max_volume_5d,
            high_break_percent=discovery.high_break_percent,
            volume_break_percent=discovery.volume_break_percent,
            today_close=row.last_price,
            today_change=row.percent_change,
            prev_10day_low=baseline.prev_10day_low,
            triggered_at=self._clock(),
        )

    def add_alert(self, alert: Alert) -> bool:
        """Store an alert unless its id is already taken.

        Returns:
            True if the alert is new, False if it was a duplicate.
        """
        with self._lock_for(alert.id):
            if self._store.get(alert.id) is not None:
                logger.debug("Duplicate alert %s", alert.id)
                return False
            added = self._store.put(alert)

        if added:
            logger.info("New %s alert for %s (%s)", alert.alert_type, alert.symbol, alert.id)
        return added
