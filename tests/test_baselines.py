"""Tests for baseline computation and the baseline engine.

**Feature: breakout-scanner**
"""

from datetime import date

from hypothesis import given, settings
from hypothesis import strategies as st

from breakwatch.baselines import BaselineEngine, compute_baseline
from breakwatch.cache import ApiStatsTracker, HistoricalCandleCache
from conftest import SESSION_NOW, TODAY, FakeClock, FakeSource, make_candles


def _engine(source: FakeSource, clock: FakeClock, universe_size: int = 50) -> BaselineEngine:
    historical = HistoricalCandleCache(source, ApiStatsTracker(clock=clock), clock=clock)
    return BaselineEngine(historical, clock=clock, universe_size=universe_size)


class TestComputeBaseline:
    """
    **Feature: breakout-scanner, Property 10: Baseline Window**

    *For any* daily history, the baseline is the max high and max volume
    of the last 5 days strictly before the evaluation date.
    """

    @given(
        highs=st.lists(st.floats(min_value=1, max_value=10000), min_size=1, max_size=15),
        data=st.data(),
    )
    @settings(max_examples=100)
    def test_maxima_over_last_five_prior_days(self, highs: list[float], data):
        volumes = data.draw(st.lists(
            st.integers(min_value=0, max_value=10**9), min_size=len(highs), max_size=len(highs)
        ))
        candles = make_candles("INFY", TODAY, highs, volumes)

        baseline = compute_baseline("INFY", candles, TODAY)

        assert baseline.max_high_5d == max(highs[-5:])
        assert baseline.max_volume_5d == max(volumes[-5:])
        assert baseline.days_used == min(len(highs), 5)
        assert baseline.computed_date == TODAY
        assert baseline.prev_10day_low == min(c.low for c in candles[-10:])

    def test_excludes_the_evaluation_day_and_later(self):
        candles = make_candles("INFY", date(2024, 1, 11), [100, 101, 102, 103, 104, 500], [1] * 6)
        # Last candle is dated 2024-01-10
        baseline = compute_baseline("INFY", candles, TODAY)
        assert baseline.max_high_5d == 104

    def test_no_prior_days(self):
        assert compute_baseline("INFY", [], TODAY) is None
        candles = make_candles("INFY", date(2024, 1, 20), [100], [1])
        assert compute_baseline("INFY", candles, date(2024, 1, 1)) is None

    def test_sparse_history_is_still_valid(self):
        candles = make_candles("NEWCO", TODAY, [50, 55], [100, 90])
        baseline = compute_baseline("NEWCO", candles, TODAY)
        assert baseline.days_used == 2
        assert baseline.max_high_5d == 55
        assert baseline.max_volume_5d == 100


class TestBaselineEngine:
    """
    **Feature: breakout-scanner, Property 11: Baseline Availability**
    """

    def _source(self, symbols: list[str]) -> FakeSource:
        return FakeSource(history={
            s: make_candles(s, TODAY, [100, 110, 105, 120, 115, 90], [10, 20, 30, 40, 50, 60])
            for s in symbols
        })

    def test_get_baselines_returns_available_symbols(self):
        source = self._source(["INFY", "TCS", "SBIN"])
        source.fail_history.add("SBIN")
        engine = _engine(source, FakeClock(SESSION_NOW))

        baselines = engine.get_baselines(["INFY", "TCS", "SBIN", "NEWCO"])

        assert set(baselines) == {"INFY", "TCS"}
        assert baselines["INFY"].max_high_5d == 120
        assert baselines["INFY"].max_volume_5d == 60

    def test_baselines_cached_for_the_day(self):
        source = self._source(["INFY"])
        clock = FakeClock(SESSION_NOW)
        engine = _engine(source, clock)

        engine.get_baselines(["INFY"])
        engine.get_baselines(["INFY"])
        assert engine.get_baseline("INFY") is not None
        assert source.history_calls("INFY") == 1

        clock.advance(days=1)
        engine.get_baselines(["INFY"])
        assert source.history_calls("INFY") == 2

    def test_baseline_stats(self):
        symbols = [f"SYM{i}" for i in range(12)]
        engine = _engine(self._source(symbols), FakeClock(SESSION_NOW), universe_size=10)

        engine.get_baselines(symbols[:4])
        stats = engine.get_baseline_stats()
        assert stats.available == 4
        assert stats.missing == 6
        assert stats.date == TODAY

        engine.get_baselines(symbols)
        stats = engine.get_baseline_stats()
        assert stats.available == 12
        assert stats.missing == 0
