"""Scan command for BreakWatch CLI.

Scans watchlist stocks for high+volume breakouts.
"""

import click
from rich.panel import Panel
from rich.table import Table

from breakwatch.cli.common import console, fail, format_percent, format_volume, get_service
from breakwatch.errors import BreakwatchError
from breakwatch.models import ScanResult

SOURCE_STYLES = {
    "live": "[green]live[/green]",
    "historical": "[cyan]historical[/cyan]",
    "stale": "[yellow]stale[/yellow]",
}


def _result_row(result: ScanResult) -> tuple[str, ...]:
    if result.skipped:
        return (
            result.symbol,
            "-", "-", "-", "-", "-",
            SOURCE_STYLES[result.data_source],
            f"[dim]{result.error}[/dim]",
        )

    if result.triggered:
        status = "[bold green]BREAKOUT[/bold green]"
    elif result.low_break_triggered:
        status = "[bold red]LOW BREAK[/bold red]"
    else:
        status = "[dim]-[/dim]"

    return (
        result.symbol,
        f"₹{result.today_close:,.2f}",
        format_percent(result.today_change),
        f"₹{result.today_high:,.2f} / ₹{result.prev_max_high:,.2f}",
        format_percent(result.high_break_percent),
        f"{format_volume(result.today_volume)} ({result.volume_break_percent:+.2f}%)",
        SOURCE_STYLES[result.data_source],
        status,
    )


@click.command()
@click.option(
    "--intraday/--no-intraday",
    default=False,
    help="Use live current-day data when available.",
)
@click.option(
    "--close-watch",
    is_flag=True,
    default=False,
    help="Only scan symbols marked for close watch.",
)
def scan(intraday: bool, close_watch: bool) -> None:
    """Scan the watchlist for breakouts.

    A breakout needs today's high above the 5-day max high AND today's
    volume above the 5-day max volume.

    \b
    Examples:
      breakwatch scan                  # Evaluate the last completed day
      breakwatch scan --intraday       # Use live data during the session
      breakwatch scan --close-watch    # Only close-watch symbols
    """
    service = get_service()

    console.print("[dim]Scanning watchlist...[/dim]")
    try:
        report = service.run_watchlist_scan(use_intraday=intraday, close_watch_only=close_watch)
    except BreakwatchError as e:
        fail("Scan failed.", e)

    if not report.results:
        console.print(Panel(
            "[yellow]Watchlist is empty.[/yellow]\n\n"
            "Add symbols with [cyan]breakwatch watch add SYMBOL[/cyan].",
            title="[bold]Scan[/bold]",
            border_style="yellow",
        ))
        return

    table = Table(
        title=f"Watchlist Scan ({'market open' if report.market_open else 'market closed'})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Symbol", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("High / 5D Max", justify="right")
    table.add_column("High Break", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Source")
    table.add_column("Status")

    # Breakouts first, then by how far the high broke out
    ordered = sorted(
        report.results,
        key=lambda r: (not r.triggered, r.skipped, -r.high_break_percent),
    )
    for result in ordered:
        table.add_row(*_result_row(result))

    console.print(table)

    if report.new_alerts:
        symbols = ", ".join(a.symbol for a in report.new_alerts)
        console.print(f"\n[bold green]{len(report.new_alerts)} new alert(s):[/bold green] {symbols}")
