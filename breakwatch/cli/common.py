"""Helpers shared by the CLI command modules."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from breakwatch import config as config_module
from breakwatch.config import CONFIG_PATH, ConfigError, build_service, default_config, load_config
from breakwatch.db.store import DataStore
from breakwatch.service import BreakoutService

console = Console()


def fail(message: str, error: Exception | None = None) -> None:
    """Print an error panel and exit with status 1."""
    body = f"[red]{message}[/red]"
    if error is not None:
        body += f"\n\n{escape(str(error))}"
    console.print(Panel(body, title="[bold red]Error[/bold red]", border_style="red"))
    raise SystemExit(1)


def get_service() -> BreakoutService:
    """Build the service from the config file, exiting if it is missing."""
    try:
        config = load_config()
        if config is None:
            fail(
                "Configuration not found.\n\n"
                f"Create [cyan]{CONFIG_PATH}[/cyan] with an \\[angelone] section, "
                "or set \\[data] source = \"replay\"."
            )
        return build_service(config)
    except ConfigError as e:
        fail("Invalid configuration.", e)


def get_data_store() -> DataStore:
    """Open the data store; works without a config file."""
    try:
        config = load_config() or default_config()
    except ConfigError as e:
        fail("Invalid configuration.", e)
    return config_module.get_data_store(config)


def format_volume(volume: int) -> str:
    if volume >= 10_000_000:
        return f"{volume / 10_000_000:.2f}Cr"
    if volume >= 100_000:
        return f"{volume / 100_000:.2f}L"
    return f"{volume:,}"


def format_percent(value: float) -> str:
    color = "green" if value > 0 else "red" if value < 0 else "white"
    return f"[{color}]{value:+.2f}%[/{color}]"
