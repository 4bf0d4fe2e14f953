"""Collapse concurrent requests for the same key onto one call."""

import threading
from concurrent.futures import Future
from typing import Callable, Hashable, TypeVar

T = TypeVar("T")


class InFlightRequests:
    """Shares one in-progress call per key between concurrent callers.

    The first caller for a key runs the function; callers arriving while
    it runs block on the same result (or exception). Once the call
    settles the key is released, so later callers start a new call.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: dict[Hashable, Future] = {}

    def run(self, key: Hashable, fn: Callable[[], T]) -> tuple[T, bool]:
        """Run ``fn`` for ``key`` unless a call for it is already in flight.

        Returns:
            Tuple of (result, shared). ``shared`` is True when the result
            came from another caller's call.
        """
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result(), True

        try:
            result = fn()
        except BaseException as exc:
            self._release(key)
            future.set_exception(exc)
            raise
        self._release(key)
        future.set_result(result)
        return result, False

    def _release(self, key: Hashable) -> None:
        # Runs before the future settles
        with self._lock:
            self._calls.pop(key, None)
