"""Records every data request as an upstream call or a cache hit."""

import threading
from collections import deque
from datetime import timedelta
from typing import Literal, Optional

from breakwatch.market_hours import Clock, utc_now
from breakwatch.models import ApiCallRecord, ApiStats, MethodCounts

MAX_CALL_LOG = 500
RECENT_WINDOW = timedelta(seconds=60)


class ApiStatsTracker:
    """Rolling log of data requests plus cumulative per-accessor counts.

    The rolling log is bounded; the per-method counters are not and never
    reset for the life of the tracker.
    """

    def __init__(self, clock: Optional[Clock] = None, max_records: int = MAX_CALL_LOG):
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._log: deque[ApiCallRecord] = deque(maxlen=max_records)
        self._methods: dict[str, dict[str, int]] = {}

    def record(
        self,
        kind: Literal["api", "cache"],
        method: str,
        symbol: Optional[str] = None,
    ) -> None:
        """Record one request.

        Args:
            kind: "api" for an upstream call, "cache" for a cache hit.
            method: Accessor that served the request.
            symbol: Symbol the request was for, if any.
        """
        entry = ApiCallRecord(ts=self._clock(), kind=kind, method=method, symbol=symbol)
        with self._lock:
            self._log.append(entry)
            counts = self._methods.setdefault(method, {"api": 0, "cache": 0})
            counts[kind] += 1

    def get_api_stats(self) -> ApiStats:
        """Summarise the rolling log.

        ``recent_rate`` is upstream calls per second over the last minute,
        rounded to 2 decimals.
        """
        cutoff = self._clock() - RECENT_WINDOW
        with self._lock:
            log = list(self._log)
            methods = {m: MethodCounts(**c) for m, c in self._methods.items()}

        recent = [r for r in log if r.ts >= cutoff]
        recent_api = sum(1 for r in recent if r.kind == "api")
        api_calls = sum(1 for r in log if r.kind == "api")

        return ApiStats(
            total=len(log),
            api_calls=api_calls,
            cache_hits=len(log) - api_calls,
            recent_rate=round(recent_api / RECENT_WINDOW.total_seconds(), 2),
            last_60s=recent,
            method_breakdown=methods,
        )
