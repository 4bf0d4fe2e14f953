"""Alert commands for BreakWatch CLI.

Lists breakout alerts and acknowledges them.
"""

import click
from rich.table import Table

from breakwatch.cli.common import console, fail, format_percent, format_volume, get_data_store


@click.group()
def alerts() -> None:
    """Review breakout alerts.

    \b
    Examples:
      breakwatch alerts list              # All alerts, newest first
      breakwatch alerts list --unread     # Only unacknowledged alerts
      breakwatch alerts read ID           # Acknowledge one alert
      breakwatch alerts read --all        # Acknowledge everything
    """


@alerts.command("list")
@click.option("--unread", is_flag=True, default=False, help="Only show unread alerts.")
@click.option("-n", "--limit", default=50, type=int, help="Maximum alerts to show (default: 50).")
def list_alerts(unread: bool, limit: int) -> None:
    """List alerts, newest first."""
    store = get_data_store()

    try:
        items = store.list_alerts()
        unread_count = store.get_unread_alert_count()
    except Exception as e:
        fail("Failed to load alerts.", e)

    if unread:
        items = [a for a in items if not a.read]

    if not items:
        console.print("[dim]No alerts.[/dim]")
        return

    table = Table(title="Alerts", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Time")
    table.add_column("Symbol", style="bold")
    table.add_column("Type")
    table.add_column("High", justify="right")
    table.add_column("High Break", justify="right")
    table.add_column("Volume", justify="right")
    table.add_column("Vol Break", justify="right")

    for alert in items[:limit]:
        kind = "[green]breakout[/green]" if alert.alert_type == "breakout" else "[red]low-break[/red]"
        marker = "" if alert.read else "[bold yellow]● [/bold yellow]"
        table.add_row(
            alert.id,
            f"{alert.triggered_at:%Y-%m-%d %H:%M}",
            f"{marker}{alert.symbol}",
            kind,
            f"₹{alert.today_high:,.2f}",
            format_percent(alert.high_break_percent),
            format_volume(alert.today_volume),
            format_percent(alert.volume_break_percent),
        )

    console.print(table)
    shown = min(limit, len(items))
    console.print(f"\n[dim]Showing {shown} of {len(items)} ({unread_count} unread in total)[/dim]")


@alerts.command("read")
@click.argument("alert_id", required=False)
@click.option("--all", "mark_all", is_flag=True, default=False, help="Acknowledge every alert.")
def read_alerts(alert_id: str | None, mark_all: bool) -> None:
    """Acknowledge one alert, or all of them with --all."""
    if not alert_id and not mark_all:
        fail("Give an alert ID or --all.")

    store = get_data_store()
    try:
        if mark_all:
            count = store.mark_all_alerts_read()
            console.print(f"[green]✓ Marked {count} alert(s) as read[/green]")
            return
        found = store.mark_alert_read(alert_id)
    except Exception as e:
        fail("Failed to update alerts.", e)

    if not found:
        console.print(f"[yellow]Alert '{alert_id}' not found[/yellow]")
        return
    console.print(f"[green]✓ Marked {alert_id} as read[/green]")
