"""Watchlist management commands for BreakWatch CLI.

Handles add, remove, list and close-watch operations on named
watchlists. Scans read the 'default' list.
"""

import click
from rich.panel import Panel
from rich.table import Table

from breakwatch.cli.common import console, fail, get_data_store
from breakwatch.universe import NIFTY50

LIST_OPTION = click.option(
    "--list", "list_name",
    default="default",
    help="Name of the watchlist (default: 'default').",
)


@click.group()
def watch() -> None:
    """Manage watchlists.

    \b
    Examples:
      breakwatch watch add RELIANCE                # Add to default watchlist
      breakwatch watch add INFY --close-watch      # Add and mark for close watch
      breakwatch watch close INFY --off            # Clear the close-watch mark
      breakwatch watch list                        # Show default watchlist
    """


@watch.command("add")
@click.argument("symbol")
@click.option("--name", default=None, help="Display name (defaults to the NIFTY 50 name).")
@click.option("--close-watch", is_flag=True, default=False, help="Mark for close watch.")
@LIST_OPTION
def add_symbol(symbol: str, name: str | None, close_watch: bool, list_name: str) -> None:
    """Add a symbol to a watchlist.

    SYMBOL is the trading symbol to add (e.g., RELIANCE, INFY, TCS).
    """
    symbol = symbol.upper()
    store = get_data_store()

    try:
        added = store.add_to_watchlist(
            symbol,
            name=name or NIFTY50.get(symbol, symbol),
            close_watch=close_watch,
            list_name=list_name,
        )
    except Exception as e:
        fail("Failed to add symbol.", e)

    if not added:
        console.print(f"[yellow]{symbol} is already in watchlist '{list_name}'[/yellow]")
        return
    console.print(f"[green]✓ Added {symbol} to watchlist '{list_name}'[/green]")


@watch.command("remove")
@click.argument("symbol")
@LIST_OPTION
def remove_symbol(symbol: str, list_name: str) -> None:
    """Remove a symbol from a watchlist."""
    symbol = symbol.upper()
    store = get_data_store()

    try:
        if symbol not in store.get_watchlist(list_name):
            console.print(f"[yellow]{symbol} is not in watchlist '{list_name}'[/yellow]")
            return
        store.remove_from_watchlist(symbol, list_name)
    except Exception as e:
        fail("Failed to remove symbol.", e)

    console.print(f"[green]✓ Removed {symbol} from watchlist '{list_name}'[/green]")


@watch.command("close")
@click.argument("symbol")
@click.option("--on/--off", "enabled", default=True, help="Set or clear the close-watch mark.")
@LIST_OPTION
def close_watch(symbol: str, enabled: bool, list_name: str) -> None:
    """Mark or unmark a symbol for close watch."""
    symbol = symbol.upper()
    store = get_data_store()

    try:
        if symbol not in store.get_watchlist(list_name):
            console.print(f"[yellow]{symbol} is not in watchlist '{list_name}'[/yellow]")
            return
        store.set_close_watch(symbol, enabled, list_name)
    except Exception as e:
        fail("Failed to update symbol.", e)

    state = "marked for" if enabled else "removed from"
    console.print(f"[green]✓ {symbol} {state} close watch[/green]")


@watch.command("list")
@LIST_OPTION
def list_watchlist(list_name: str) -> None:
    """Display the symbols of a watchlist."""
    store = get_data_store()

    try:
        targets = store.get_watch_targets(list_name)
    except Exception as e:
        fail("Failed to list watchlist.", e)

    if not targets:
        console.print(Panel(
            f"[dim]Watchlist '{list_name}' is empty. "
            "Use 'breakwatch watch add SYMBOL' to add one.[/dim]",
            title=f"[bold]Watchlist: {list_name}[/bold]",
            border_style="dim",
        ))
        return

    table = Table(title=f"Watchlist: {list_name}", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Symbol", style="bold")
    table.add_column("Name")
    table.add_column("Close Watch", justify="center")

    for i, target in enumerate(targets, 1):
        table.add_row(
            str(i),
            target.symbol,
            target.name,
            "[yellow]★[/yellow]" if target.close_watch else "",
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(targets)} symbols[/dim]")
