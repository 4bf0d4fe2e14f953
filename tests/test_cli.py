"""Tests for the command-line interface.

**Feature: breakout-scanner**
"""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from breakwatch.cli.main import cli
from breakwatch.config import default_config
from breakwatch.db.store import DataStore
from breakwatch.market_hours import trading_date, utc_now
from conftest import make_candles


@pytest.fixture
def config():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = default_config()
        config["data"].update(source="replay", db_path=str(Path(tmpdir) / "bw.db"))
        with patch("breakwatch.cli.common.load_config", return_value=config):
            yield config


def _store(config: dict) -> DataStore:
    return DataStore(Path(config["data"]["db_path"]))


class TestWatchCommands:
    """
    **Feature: breakout-scanner, Property 33: Watchlist Commands**
    """

    def test_add_list_remove(self, config):
        runner = CliRunner()

        result = runner.invoke(cli, ["watch", "add", "infy", "--close-watch"])
        assert result.exit_code == 0
        assert "Added INFY" in result.output

        targets = _store(config).get_watch_targets()
        assert [(t.symbol, t.name, t.close_watch) for t in targets] == [("INFY", "Infosys", True)]

        result = runner.invoke(cli, ["watch", "add", "INFY"])
        assert "already" in result.output

        result = runner.invoke(cli, ["watch", "list"])
        assert "INFY" in result.output

        result = runner.invoke(cli, ["watch", "remove", "INFY"])
        assert result.exit_code == 0
        assert _store(config).get_watchlist() == []


class TestScanCommand:
    """
    **Feature: breakout-scanner, Property 34: Scan Command**
    """

    def test_scan_with_replay_data(self, config):
        today = trading_date(utc_now())
        store = _store(config)
        store.add_to_watchlist("INFY", name="Infosys")
        store.save_candles(make_candles("INFY", today, [100.0] * 5 + [130.0], [1000] * 5 + [2000]))

        result = CliRunner().invoke(cli, ["scan"])

        assert result.exit_code == 0, result.output
        assert "INFY" in result.output
        assert "1 new alert" in result.output
        assert len(store.list_alerts()) == 1

    def test_missing_config_exits(self):
        with patch("breakwatch.cli.common.load_config", return_value=None):
            result = CliRunner().invoke(cli, ["scan"])
        assert result.exit_code == 1
        assert "Configuration not found" in result.output


class TestAlertCommands:
    """
    **Feature: breakout-scanner, Property 35: Alert Commands**
    """

    def test_read_requires_target(self, config):
        result = CliRunner().invoke(cli, ["alerts", "read"])
        assert result.exit_code == 1

    def test_list_empty(self, config):
        result = CliRunner().invoke(cli, ["alerts", "list"])
        assert result.exit_code == 0
        assert "No alerts" in result.output


class TestStatsCommand:
    """
    **Feature: breakout-scanner, Property 37: Stats Command**
    """

    def test_stats_reports_store_counts(self, config):
        _store(config).add_to_watchlist("INFY", name="Infosys")

        result = CliRunner().invoke(cli, ["stats"])

        assert result.exit_code == 0, result.output
        assert "Local store" in result.output
        assert "Watchlist: 1" in result.output
        assert "Alerts:    0" in result.output
