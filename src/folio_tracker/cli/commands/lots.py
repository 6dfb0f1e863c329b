"""Purchase lot commands."""

from typing import Optional

import typer

from ...core.exceptions import FolioTrackerError
from ...core.fx import format_currency
from ...data.repositories.holdings_repo import HoldingsRepository
from ..parsing import console, fail
from .holdings import parse_lot

app = typer.Typer(help="Record purchase lots")
repo = HoldingsRepository()


@app.command("add")
def add(
    holding_id: int = typer.Argument(..., help="Holding ID"),
    lot: str = typer.Argument(..., help="PRICE:QTY[:YYYY-MM-DD[:CCY]]"),
):
    """Record a purchase lot. Currency defaults to the holding's trading currency."""
    h = repo.get_by_id(holding_id)
    if not h:
        fail(f"Holding {holding_id} not found")
    try:
        created = repo.add_lot(holding_id, parse_lot(lot, h.trading_currency))
    except FolioTrackerError as e:
        fail(str(e))
    console.print(
        f"[green]Added {created.quantity} × {h.ticker} @ "
        f"{format_currency(created.price, created.currency)} (Lot ID: {created.id})[/green]"
    )


@app.command("replace")
def replace(
    holding_id: int = typer.Argument(..., help="Holding ID"),
    lots: Optional[list[str]] = typer.Option(
        None, "--lot", "-l", help="PRICE:QTY[:YYYY-MM-DD[:CCY]] (repeatable)"
    ),
):
    """Replace every lot of a holding with the given list."""
    h = repo.get_by_id(holding_id)
    if not h:
        fail(f"Holding {holding_id} not found")
    try:
        h = repo.replace_lots(holding_id, [parse_lot(raw, h.trading_currency) for raw in lots or []])
    except FolioTrackerError as e:
        fail(str(e))
    console.print(f"[green]{h.ticker} now has {len(h.lots)} lot(s)[/green]")


@app.command("remove")
def remove(lot_id: int = typer.Argument(..., help="Lot ID")):
    """Delete a single lot."""
    if not repo.lots.delete(lot_id):
        fail(f"Lot {lot_id} not found")
    console.print(f"[green]Removed lot {lot_id}[/green]")
