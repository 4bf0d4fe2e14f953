"""Tests for NIFTY 50 discovery classification.

**Feature: breakout-scanner**
"""

from typing import Optional

from hypothesis import given, settings
from hypothesis import strategies as st

from breakwatch.models import Baseline, Snapshot
from breakwatch.scanner import classify_discovery, discover_breakouts
from conftest import SESSION_NOW, TODAY, make_row


def _baseline(symbol: str, max_high: float = 100.0, max_volume: int = 1000) -> Baseline:
    return Baseline(
        symbol=symbol,
        max_high_5d=max_high,
        max_volume_5d=max_volume,
        computed_date=TODAY,
        days_used=5,
    )


def _snapshot(rows, stale: bool = False, fetch_success: bool = True) -> Snapshot:
    return Snapshot(stocks=rows, fetched_at=SESSION_NOW, fetch_success=fetch_success, stale=stale)


class TestDiscoveryPrecedence:
    """
    **Feature: breakout-scanner, Property 17: Discovery Precedence**

    *For any* combination of baseline presence and snapshot freshness,
    a missing baseline wins, then an untrusted snapshot, and only then is
    the breakout rule applied. The degraded flags never coincide.
    """

    @given(
        has_baseline=st.booleans(),
        stale=st.booleans(),
        fetch_success=st.booleans(),
        day_high=st.floats(min_value=0, max_value=1000),
        volume=st.integers(min_value=0, max_value=10**6),
    )
    @settings(max_examples=200)
    def test_precedence(self, has_baseline, stale, fetch_success, day_high, volume):
        row = make_row("INFY", day_high, volume)
        baseline: Optional[Baseline] = _baseline("INFY") if has_baseline else None
        snapshot = _snapshot([row], stale=stale, fetch_success=fetch_success)

        result = classify_discovery(row, baseline, snapshot)

        assert not (result.baseline_unavailable and result.possible_breakout)
        if not has_baseline:
            assert result.baseline_unavailable
            assert not result.breakout and not result.high_break and not result.volume_break
        elif stale or not fetch_success:
            assert result.possible_breakout
            assert not result.breakout
        else:
            assert not result.baseline_unavailable and not result.possible_breakout
            assert result.breakout == (day_high > 100.0 and volume > 1000)

    def test_confirmed_breakout(self):
        row = make_row("INFY", 120.0, 1500)
        result = classify_discovery(row, _baseline("INFY"), _snapshot([row]))

        assert result.breakout
        assert result.high_break_percent == 20.0
        assert result.volume_break_percent == 50.0


class TestDiscoverBreakouts:
    """
    **Feature: breakout-scanner, Property 18: Watchlist Exclusion**
    """

    def test_watchlist_symbols_are_excluded(self):
        rows = [make_row("INFY", 120.0, 1500), make_row("TCS", 120.0, 1500), make_row("SBIN", 90.0, 10)]
        baselines = {s: _baseline(s) for s in ("INFY", "TCS")}

        results = discover_breakouts(_snapshot(rows), baselines, {"INFY"})

        by_symbol = {r.symbol: r for r in results}
        assert set(by_symbol) == {"TCS", "SBIN"}
        assert by_symbol["TCS"].breakout
        assert by_symbol["SBIN"].baseline_unavailable
