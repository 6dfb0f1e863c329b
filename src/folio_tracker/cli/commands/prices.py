"""Live price refresh commands."""

from typing import Optional

import typer
from rich.table import Table

from ...core.config import get_config
from ...services.price_refresh import PriceRefresher, RefreshReport
from ..parsing import console, fail

app = typer.Typer(help="Fetch live prices")


def _print_report(report: RefreshReport) -> None:
    if report.deduplicated:
        console.print("[yellow]A refresh of the same tickers is already running[/yellow]")
        return

    table = Table(title=f"Price refresh {report.started_at:%Y-%m-%d %H:%M:%S}")
    table.add_column("Ticker", style="bold")
    table.add_column("Status")
    for ticker in report.updated:
        table.add_row(ticker, "[green]OK[/green]")
    for ticker in sorted(set(report.overridden)):
        table.add_row(ticker, "[yellow]MANUAL[/yellow]")
    for ticker in report.failed:
        table.add_row(ticker, "[red]FAILED[/red]")
    if table.row_count:
        console.print(table)
    else:
        console.print("[yellow]Nothing to refresh[/yellow]")


@app.command("refresh")
def refresh():
    """Fetch one quote per ticker and update holdings, RSUs and ESPP purchases."""
    report = PriceRefresher().refresh()
    _print_report(report)
    if report.failed:
        raise typer.Exit(1)


@app.command("watch")
def watch(
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", help="Seconds between refreshes (default from config)"
    ),
    iterations: Optional[int] = typer.Option(
        None, "--iterations", "-n", help="Stop after N passes (default: run until Ctrl+C)"
    ),
):
    """Refresh prices periodically."""
    seconds = interval if interval is not None else get_config().refresh_interval_seconds
    if seconds <= 0:
        fail("Interval must be a positive number of seconds")

    console.print(f"Refreshing prices every {seconds}s. Press Ctrl+C to stop.")
    try:
        passes = PriceRefresher().run_periodic(seconds, iterations, on_refresh=_print_report)
    except KeyboardInterrupt:
        console.print("\nStopped.")
        return
    console.print(f"[green]Completed {passes} refresh pass(es)[/green]")
