"""RSU grant commands."""

from datetime import date
from decimal import Decimal
from typing import Optional

import typer
from rich.table import Table

from ...core import valuation
from ...core.config import get_config
from ...core.exceptions import FolioTrackerError
from ...core.fx import CurrencyConverter, format_currency
from ...core.models import RsuGrant, VestingEntry
from ...data.repositories.rsu_repo import RsuRepository
from ..parsing import console, fail, parse_date, parse_decimal, split_spec

app = typer.Typer(help="Track RSU grants and vesting")
repo = RsuRepository()


def _parse_vest(raw: str) -> VestingEntry:
    """YYYY-MM-DD:QTY[:vested] → VestingEntry."""
    parts = split_spec(raw, "vesting entry", 2, 3)
    vested = len(parts) == 3 and parts[2].lower() in ("vested", "yes", "y", "1", "true")
    return VestingEntry(
        vest_date=parse_date(parts[0], "vest date"),
        quantity=parse_decimal(parts[1], "vest quantity"),
        is_vested=vested,
    )


@app.command("add")
def add(
    ticker: str = typer.Argument(..., help="Ticker symbol"),
    company: str = typer.Argument(..., help="Company name"),
    grant_date: str = typer.Argument(..., help="Grant date YYYY-MM-DD"),
    total: str = typer.Argument(..., help="Total shares granted"),
    vests: Optional[list[str]] = typer.Option(
        None, "--vest", "-v", help="Vesting entry YYYY-MM-DD:QTY[:vested] (repeatable)"
    ),
    currency: str = typer.Option("USD", "--currency", "-c"),
):
    """Add an RSU grant. The vesting entries must add up to the total granted."""
    grant = RsuGrant(
        ticker=ticker,
        company_name=company,
        grant_date=parse_date(grant_date, "grant date"),
        total_granted=parse_decimal(total, "total granted"),
        vesting_schedule=[_parse_vest(raw) for raw in vests or []],
        currency=currency,
    )
    try:
        g = repo.create(grant)
    except FolioTrackerError as e:
        fail(str(e))
    console.print(
        f"[green]Added {g.company_name} ({g.ticker}) grant of {g.total_granted} shares "
        f"in {len(g.vesting_schedule)} tranche(s) (Grant ID: {g.id})[/green]"
    )


@app.command("list")
def list_grants(
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Reporting currency"),
):
    """List RSU grants with vesting progress."""
    target = (currency or get_config().reporting_currency).upper()
    grants = repo.list_all()
    if not grants:
        console.print("[yellow]No RSU grants yet.[/yellow]")
        return

    fx = CurrencyConverter()
    today = date.today()
    table = Table(title=f"RSU Grants ({target})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Ticker", style="bold")
    table.add_column("Company")
    table.add_column("Granted", justify="right")
    table.add_column("Vested", justify="right")
    table.add_column("Vested %", justify="right")
    table.add_column("Next Vest")
    table.add_column("Price", justify="right")
    table.add_column("Vested Value", justify="right")

    total_value = Decimal("0")
    for g in grants:
        nxt = valuation.next_vesting(g, today)
        value = valuation.vested_value(g, target, fx)
        total_value += value
        table.add_row(
            str(g.id),
            g.ticker,
            g.company_name,
            f"{g.total_granted:,}",
            f"{valuation.vested_shares(g):,}",
            f"{valuation.vested_percentage(g)}%",
            f"{nxt.vest_date} ({nxt.quantity})" if nxt else "—",
            format_currency(g.current_price, g.currency),
            format_currency(value, target),
        )
    table.add_row("", "", "", "", "", "", "", "", f"[bold]{format_currency(total_value, target)}[/bold]")
    console.print(table)


@app.command("show")
def show(grant_id: int = typer.Argument(..., help="Grant ID")):
    """Show the vesting schedule of a grant."""
    g = repo.get_by_id(grant_id)
    if not g:
        fail(f"RSU grant {grant_id} not found")

    table = Table(title=f"{g.company_name} ({g.ticker}) granted {g.grant_date}")
    table.add_column("Entry ID", style="cyan", justify="right")
    table.add_column("Vest Date")
    table.add_column("Quantity", justify="right")
    table.add_column("Status")
    for e in g.vesting_schedule:
        status = "[green]vested[/green]" if e.is_vested else "[dim]pending[/dim]"
        table.add_row(str(e.id), e.vest_date.isoformat(), f"{e.quantity:,}", status)
    console.print(table)


@app.command("vest")
def vest(
    entry_id: int = typer.Argument(..., help="Vesting entry ID"),
    undo: bool = typer.Option(False, "--undo", help="Mark the entry as not vested"),
):
    """Mark a vesting entry as vested."""
    try:
        entry = repo.set_vested(entry_id, not undo)
    except FolioTrackerError as e:
        fail(str(e))
    state = "not vested" if undo else "vested"
    console.print(f"[green]{entry.quantity} shares on {entry.vest_date} marked {state}[/green]")


@app.command("remove")
def remove(
    grant_id: int = typer.Argument(..., help="Grant ID"),
    force: bool = typer.Option(False, "--force", "-f"),
):
    """Remove a grant and its vesting schedule."""
    g = repo.get_by_id(grant_id)
    if not g:
        fail(f"RSU grant {grant_id} not found")

    if not force:
        confirm = typer.confirm(f"Remove {g.company_name} ({g.ticker}) grant of {g.grant_date}?")
        if not confirm:
            console.print("Cancelled.")
            return

    repo.delete(grant_id)
    console.print(f"[green]Removed RSU grant {grant_id}[/green]")
