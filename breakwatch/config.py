"""Configuration loading and service construction.

Configuration lives in ``~/.config/breakwatch/config.toml``::

    [angelone]
    api_key = "..."
    client_id = "..."
    pin = "..."
    totp_secret = "..."

    [data]
    source = "angelone"   # or "replay"
    db_path = "~/.config/breakwatch/breakwatch.db"

    [scanner]
    max_workers = 8
    snapshot_ttl_seconds = 180
    history_ttl_seconds = 86400
    universe_size = 50
"""

import copy
import logging
from pathlib import Path
from typing import Optional

import toml

from breakwatch.db.store import DataStore
from breakwatch.service import BreakoutService
from breakwatch.sources import AngelOneSource, ReplaySource
from breakwatch.sources.base import MarketDataSource

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "breakwatch"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULTS = {
    "angelone": {
        "api_key": "",
        "client_id": "",
        "pin": "",
        "totp_secret": "",
    },
    "data": {
        "source": "angelone",
        "db_path": str(CONFIG_DIR / "breakwatch.db"),
    },
    "scanner": {
        "max_workers": 8,
        "snapshot_ttl_seconds": 180,
        "history_ttl_seconds": 86400,
        "universe_size": 50,
    },
}

SOURCES = ("angelone", "replay")


class ConfigError(ValueError):
    """Raised when the configuration cannot be used."""


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> Optional[dict]:
    """Load the config file merged over the defaults.

    Args:
        path: Config file path; defaults to ``~/.config/breakwatch/config.toml``.

    Returns:
        Merged configuration, or None if the file does not exist.

    Raises:
        ConfigError: If the file is not valid TOML.
    """
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        return None

    try:
        raw = toml.load(config_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    return _merge(DEFAULTS, raw)


def default_config() -> dict:
    return copy.deepcopy(DEFAULTS)


def get_data_store(config: dict) -> DataStore:
    """Open the data store named by the ``[data]`` section."""
    return DataStore(Path(config["data"]["db_path"]).expanduser())


def get_source(config: dict, store: DataStore) -> MarketDataSource:
    """Build the market-data source named by ``[data].source``.

    Raises:
        ConfigError: If the source is unknown or Angel One credentials
            are missing.
    """
    source = config["data"]["source"]
    if source not in SOURCES:
        raise ConfigError(f"Unknown data source '{source}'. Use one of: {', '.join(SOURCES)}")

    if source == "replay":
        return ReplaySource(store)

    angelone = config["angelone"]
    missing = [k for k in ("api_key", "client_id", "pin", "totp_secret") if not angelone.get(k)]
    if missing:
        raise ConfigError(f"Missing Angel One settings: {', '.join(missing)}")

    return AngelOneSource(
        api_key=angelone["api_key"],
        client_id=angelone["client_id"],
        pin=angelone["pin"],
        totp_secret=angelone["totp_secret"],
        token_path=CONFIG_DIR / "session.json",
    )


def build_service(config: dict) -> BreakoutService:
    """Build a fully wired BreakoutService from configuration."""
    store = get_data_store(config)
    scanner = config["scanner"]
    logger.debug("Using %s data source", config["data"]["source"])
    return BreakoutService(
        source=get_source(config, store),
        store=store,
        max_workers=int(scanner["max_workers"]),
        snapshot_ttl_seconds=float(scanner["snapshot_ttl_seconds"]),
        history_ttl_seconds=float(scanner["history_ttl_seconds"]),
        universe_size=int(scanner["universe_size"]),
    )
