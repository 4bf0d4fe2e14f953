"""Property-based tests for the database store.

**Feature: breakout-scanner**
"""

import tempfile
from datetime import timedelta
from pathlib import Path

from hypothesis import given, settings
from hypothesis import strategies as st

from breakwatch.db.store import DataStore
from breakwatch.models import Alert
from conftest import SESSION_NOW, TODAY, make_candles

SYMBOLS = st.text(
    alphabet=st.characters(categories=("Lu", "Nd")),
    min_size=1,
    max_size=20,
).filter(lambda x: x.strip() != "")

LIST_NAMES = st.text(
    alphabet=st.characters(categories=("Ll", "Lu", "Nd")),
    min_size=1,
    max_size=20,
).filter(lambda x: x.strip() != "")


def _alert(alert_id: str, minutes: int = 0, symbol: str = "INFY") -> Alert:
    return Alert(
        id=alert_id,
        symbol=symbol,
        name="Infosys",
        today_high=120.0,
        today_volume=1500,
        prev_max_high=100.0,
        prev_max_volume=1000,
        high_break_percent=20.0,
        volume_break_percent=50.0,
        triggered_at=SESSION_NOW + timedelta(minutes=minutes),
    )


class TestDatabaseSchemaCompleteness:
    """
    **Feature: breakout-scanner, Property 21: Database Schema Completeness**

    *For any* fresh database, all required tables should exist.
    """

    def test_schema_completeness(self, temp_db: DataStore):
        tables = temp_db.get_tables()
        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    @given(st.integers(min_value=1, max_value=5))
    @settings(max_examples=10)
    def test_schema_completeness_multiple_instances(self, num_instances: int):
        with tempfile.TemporaryDirectory() as tmpdir:
            for i in range(num_instances):
                store = DataStore(Path(tmpdir) / f"test_{i}.db")
                tables = store.get_tables()
                for table in DataStore.REQUIRED_TABLES:
                    assert table in tables, f"Required table '{table}' missing in instance {i}"


class TestWatchlistOperations:
    """
    **Feature: breakout-scanner, Property 22: Watchlist Add/Remove Consistency**

    *For any* symbol added to a watchlist, it should be retrievable;
    after removal, it should not be.
    """

    @given(symbol=SYMBOLS, list_name=LIST_NAMES)
    @settings(max_examples=50)
    def test_watchlist_add_remove(self, symbol: str, list_name: str):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")

            assert store.add_to_watchlist(symbol, list_name=list_name)
            assert symbol in store.get_watchlist(list_name)
            assert not store.add_to_watchlist(symbol, list_name=list_name)

            store.remove_from_watchlist(symbol, list_name)
            assert symbol not in store.get_watchlist(list_name)

    @given(symbols=st.lists(SYMBOLS, min_size=1, max_size=10, unique=True))
    @settings(max_examples=30)
    def test_insertion_order_preserved(self, symbols: list[str]):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            for symbol in symbols:
                store.add_to_watchlist(symbol)
            assert store.get_watchlist() == symbols

    def test_close_watch_flag(self, temp_db: DataStore):
        temp_db.add_to_watchlist("INFY", name="Infosys")
        temp_db.add_to_watchlist("TCS", name="TCS", close_watch=True)

        targets = {t.symbol: t for t in temp_db.get_watch_targets()}
        assert targets["INFY"].name == "Infosys"
        assert not targets["INFY"].close_watch
        assert targets["TCS"].close_watch

        temp_db.set_close_watch("INFY", True)
        assert all(t.close_watch for t in temp_db.get_watch_targets())

    def test_lists_are_independent(self, temp_db: DataStore):
        temp_db.add_to_watchlist("INFY", list_name="tech")
        temp_db.add_to_watchlist("INFY", list_name="default")
        temp_db.remove_from_watchlist("INFY", "tech")

        assert temp_db.get_watchlist("tech") == []
        assert temp_db.get_watchlist("default") == ["INFY"]


class TestAlertStorage:
    """
    **Feature: breakout-scanner, Property 23: Alert Log**

    *For any* alert id, the store keeps exactly one alert.
    """

    @given(
        alert_id=st.text(
            alphabet=st.characters(categories=("Lu", "Ll", "Nd", "Pd")),
            min_size=1,
            max_size=40,
        ),
        repeats=st.integers(min_value=1, max_value=5),
    )
    @settings(max_examples=50)
    def test_put_is_insert_or_ignore(self, alert_id: str, repeats: int):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            outcomes = [store.put(_alert(alert_id, minutes=i)) for i in range(repeats)]

            assert outcomes[0] is True
            assert not any(outcomes[1:])
            stored = store.get(alert_id)
            assert stored == _alert(alert_id)

    def test_get_missing(self, temp_db: DataStore):
        assert temp_db.get("nope") is None

    def test_list_newest_first(self, temp_db: DataStore):
        temp_db.put(_alert("a", minutes=0))
        temp_db.put(_alert("c", minutes=10))
        temp_db.put(_alert("b", minutes=5))

        assert [a.id for a in temp_db.list_alerts()] == ["c", "b", "a"]

    def test_acknowledgement(self, temp_db: DataStore):
        for i in range(3):
            temp_db.put(_alert(f"id-{i}", minutes=i))
        assert temp_db.get_unread_alert_count() == 3

        assert temp_db.mark_alert_read("id-1")
        assert not temp_db.mark_alert_read("missing")
        assert temp_db.get("id-1").read
        assert temp_db.get_unread_alert_count() == 2

        assert temp_db.mark_all_alerts_read() == 2
        assert temp_db.get_unread_alert_count() == 0


class TestCandleStorage:
    """
    **Feature: breakout-scanner, Property 24: Candle Persistence**
    """

    def test_save_and_range_query(self, temp_db: DataStore):
        candles = make_candles("INFY", TODAY, [100.0, 101.0, 102.0, 103.0], [10, 20, 30, 40])
        temp_db.save_candles(candles)

        assert temp_db.get_candles("INFY", candles[0].date, TODAY) == candles
        assert temp_db.get_candles("INFY", candles[2].date, candles[3].date) == candles[2:]
        assert temp_db.get_candles("TCS", candles[0].date, TODAY) == []

    def test_save_replaces_same_day(self, temp_db: DataStore):
        first = make_candles("INFY", TODAY, [100.0], [10])
        second = make_candles("INFY", TODAY, [200.0], [20])
        temp_db.save_candles(first)
        temp_db.save_candles(second)

        assert temp_db.get_candles("INFY", first[0].date, TODAY) == second
        assert temp_db.get_stats()["candles"] == 1
