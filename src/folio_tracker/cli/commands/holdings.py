"""Holdings management commands."""

from datetime import date
from typing import Optional

import typer
from rich.table import Table

from ...core import valuation
from ...core.config import get_config
from ...core.exceptions import FolioTrackerError
from ...core.fx import CurrencyConverter, format_currency
from ...core.models import Exchange, Holding, Lot
from ...data.repositories.holdings_repo import HoldingsRepository
from ..parsing import console, fail, parse_date, parse_decimal, pct, signed, split_spec

app = typer.Typer(help="Manage holdings")
repo = HoldingsRepository()

EXCHANGES = [e.value for e in Exchange]


def _display_name(h: Holding) -> str:
    return f"{h.name} ({h.ticker})" if h.name else h.ticker


def _parse_exchange(raw: str) -> Exchange:
    try:
        return Exchange(raw.upper())
    except ValueError:
        fail(f"Invalid exchange. Choose from: {', '.join(EXCHANGES)}")


def parse_lot(raw: str, default_currency: str) -> Lot:
    """PRICE:QTY[:YYYY-MM-DD[:CCY]] → Lot."""
    parts = split_spec(raw, "lot", 2, 4)
    price = parse_decimal(parts[0], "lot price")
    quantity = parse_decimal(parts[1], "lot quantity")
    purchase_date = parse_date(parts[2], "lot date") if len(parts) > 2 and parts[2] else date.today()
    currency = parts[3] if len(parts) > 3 else default_currency
    return Lot(price=price, quantity=quantity, purchase_date=purchase_date, currency=currency)


@app.command("add")
def add(
    ticker: str = typer.Argument(..., help="Ticker symbol (e.g. AAPL, TEVA)"),
    name: str = typer.Argument(..., help="Human-readable name"),
    currency: str = typer.Option("USD", "--currency", "-c", help="Trading currency"),
    exchange: str = typer.Option("NASDAQ", "--exchange", "-e", help=f"One of: {', '.join(EXCHANGES)}"),
    broker: str = typer.Option("", "--broker", "-b", help="Broker holding the position"),
    lots: Optional[list[str]] = typer.Option(
        None, "--lot", "-l", help="Purchase lot PRICE:QTY[:YYYY-MM-DD[:CCY]] (repeatable)"
    ),
):
    """Add a holding, optionally with its purchase lots."""
    holding = Holding(
        ticker=ticker, name=name, trading_currency=currency,
        exchange=_parse_exchange(exchange), broker=broker,
        lots=[parse_lot(raw, currency.upper()) for raw in lots or []],
    )
    try:
        h = repo.create(holding)
    except FolioTrackerError as e:
        fail(str(e))
    console.print(
        f"[green]Added {_display_name(h)} with {len(h.lots)} lot(s) (Holding ID: {h.id})[/green]"
    )


@app.command("list")
def list_holdings(
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Reporting currency"),
):
    """List holdings valued in the reporting currency."""
    target = (currency or get_config().reporting_currency).upper()
    holdings = repo.list_all()
    if not holdings:
        console.print("[yellow]No holdings yet. Add one with: ft holdings add <TICKER> <NAME>[/yellow]")
        return

    fx = CurrencyConverter()
    table = Table(title=f"Holdings ({target})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Ticker", style="bold")
    table.add_column("Name")
    table.add_column("Exchange")
    table.add_column("Broker")
    table.add_column("Shares", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("P&L %", justify="right")
    table.add_column("Day", justify="right")

    for h in holdings:
        pl = valuation.profit_loss(h, target, fx)
        price = format_currency(h.current_price, h.trading_currency)
        if h.price_overridden:
            price += " [dim](manual)[/dim]"
        table.add_row(
            str(h.id),
            h.ticker,
            h.name,
            h.exchange.value,
            h.broker or "—",
            f"{valuation.total_shares(h):,.4f}",
            format_currency(valuation.average_cost(h, target, fx), target),
            price,
            format_currency(valuation.market_value(h, target, fx), target),
            signed(pl.absolute, format_currency(pl.absolute, target)),
            pct(pl.percentage),
            pct(valuation.price_change_pct(h)),
        )

    summary = valuation.summarize(holdings, target, fx)
    table.add_row(
        "", "", "", "", "", "", "", "",
        f"[bold]{format_currency(summary.total_value, target)}[/bold]",
        signed(summary.total_gain, f"[bold]{format_currency(summary.total_gain, target)}[/bold]"),
        pct(summary.total_gain_pct),
        pct(summary.daily_change_pct),
    )
    console.print(table)


@app.command("show")
def show(
    holding_id: int = typer.Argument(..., help="Holding ID"),
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Reporting currency"),
):
    """Show one holding with its lots."""
    target = (currency or get_config().reporting_currency).upper()
    h = repo.get_by_id(holding_id)
    if not h:
        fail(f"Holding {holding_id} not found")

    fx = CurrencyConverter()
    pl = valuation.profit_loss(h, target, fx)
    updated = h.last_updated.strftime("%Y-%m-%d %H:%M") if h.last_updated else "never"
    console.print(f"\n[bold]{_display_name(h)}[/bold]  {h.exchange.value}  {h.broker}")
    console.print(
        f"  Price {format_currency(h.current_price, h.trading_currency)}"
        f" (prev {format_currency(h.previous_price, h.trading_currency)}, updated {updated})"
        + ("  [yellow]manual override[/yellow]" if h.price_overridden else "")
    )
    console.print(
        f"  Value {format_currency(valuation.market_value(h, target, fx), target)}  "
        f"P&L {signed(pl.absolute, format_currency(pl.absolute, target))} ({pct(pl.percentage)})\n"
    )

    table = Table(title="Lots")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Date")
    table.add_column("Quantity", justify="right")
    table.add_column("Price", justify="right")
    table.add_column(f"Price ({target})", justify="right")
    for lot in h.lots:
        table.add_row(
            str(lot.id),
            lot.purchase_date.isoformat(),
            f"{lot.quantity:,.4f}",
            format_currency(lot.price, lot.currency),
            format_currency(fx.convert(lot.price, lot.currency, target), target),
        )
    console.print(table)


@app.command("edit")
def edit(
    holding_id: int = typer.Argument(..., help="Holding ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    broker: Optional[str] = typer.Option(None, "--broker", "-b"),
    exchange: Optional[str] = typer.Option(None, "--exchange", "-e"),
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Trading currency"),
):
    """Edit descriptive fields of a holding."""
    h = repo.get_by_id(holding_id)
    if not h:
        fail(f"Holding {holding_id} not found")
    if name is not None:
        h.name = name
    if broker is not None:
        h.broker = broker
    if exchange is not None:
        h.exchange = _parse_exchange(exchange)
    if currency is not None:
        h.trading_currency = currency
    try:
        h = repo.update(h)
    except FolioTrackerError as e:
        fail(str(e))
    console.print(f"[green]Updated {_display_name(h)}[/green]")


@app.command("override")
def override(
    holding_id: int = typer.Argument(..., help="Holding ID"),
    price: str = typer.Argument(..., help="Manual price in the trading currency"),
):
    """Pin the current price; refreshes will no longer overwrite it."""
    value = parse_decimal(price, "price")
    if value <= 0:
        fail("Price must be greater than 0")
    try:
        h = repo.set_price_override(holding_id, value)
    except FolioTrackerError as e:
        fail(str(e))
    console.print(
        f"[green]{h.ticker} pinned at {format_currency(h.current_price, h.trading_currency)}[/green]"
    )


@app.command("clear-override")
def clear_override(holding_id: int = typer.Argument(..., help="Holding ID")):
    """Let the periodic refresh update this holding's price again."""
    try:
        h = repo.clear_price_override(holding_id)
    except FolioTrackerError as e:
        fail(str(e))
    console.print(f"[green]{h.ticker} will follow live quotes again[/green]")


@app.command("remove")
def remove(
    holding_id: int = typer.Argument(..., help="Holding ID"),
    force: bool = typer.Option(False, "--force", "-f"),
):
    """Remove a holding and all its lots."""
    h = repo.get_by_id(holding_id)
    if not h:
        fail(f"Holding {holding_id} not found")

    if not force:
        confirm = typer.confirm(f"Remove {_display_name(h)} and all its lots?")
        if not confirm:
            console.print("Cancelled.")
            return

    repo.delete(holding_id)
    console.print(f"[green]Removed {_display_name(h)}[/green]")
