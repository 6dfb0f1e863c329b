"""ESPP purchase commands."""

import typer
from rich.table import Table

from ...core import valuation
from ...core.exceptions import FolioTrackerError
from ...core.fx import format_currency
from ...core.models import EsppPurchase
from ...data.repositories.espp_repo import EsppRepository
from ..parsing import console, fail, parse_date, parse_decimal, pct, signed

app = typer.Typer(help="Track ESPP purchases")
repo = EsppRepository()


@app.command("add")
def add(
    ticker: str = typer.Argument(..., help="Ticker symbol"),
    company: str = typer.Argument(..., help="Company name"),
    purchase_price: str = typer.Option(..., "--purchase-price", "-p", help="Discounted price paid"),
    market_price: str = typer.Option(..., "--market-price", "-m", help="Market price on purchase date"),
    quantity: str = typer.Option(..., "--quantity", "-q"),
    cycle_start: str = typer.Option(..., "--cycle-start", help="Offering period start YYYY-MM-DD"),
    cycle_end: str = typer.Option(..., "--cycle-end", help="Offering period end YYYY-MM-DD"),
    grant_date: str = typer.Option("", "--grant-date", help="Purchase date; defaults to cycle end"),
    discount: str = typer.Option("15", "--discount", "-d", help="Plan discount in percent"),
    broker: str = typer.Option("", "--broker", "-b"),
    currency: str = typer.Option("USD", "--currency", "-c"),
):
    """Record an ESPP purchase."""
    end = parse_date(cycle_end, "cycle end")
    purchase = EsppPurchase(
        ticker=ticker,
        company_name=company,
        grant_date=parse_date(grant_date, "grant date") if grant_date else end,
        purchase_price=parse_decimal(purchase_price, "purchase price"),
        market_price=parse_decimal(market_price, "market price"),
        quantity=parse_decimal(quantity, "quantity"),
        discount=parse_decimal(discount, "discount"),
        cycle_start_date=parse_date(cycle_start, "cycle start"),
        cycle_end_date=end,
        broker=broker,
        currency=currency,
    )
    try:
        p = repo.create(purchase)
    except FolioTrackerError as e:
        fail(str(e))
    console.print(
        f"[green]Added ESPP purchase of {p.quantity} {p.ticker} "
        f"(profit at purchase {format_currency(valuation.espp_profit(p), p.currency)}, ID: {p.id})[/green]"
    )


@app.command("list")
def list_purchases():
    """List ESPP purchases with the discount gain and the gain at today's price."""
    purchases = repo.list_all()
    if not purchases:
        console.print("[yellow]No ESPP purchases yet.[/yellow]")
        return

    table = Table(title="ESPP Purchases")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Ticker", style="bold")
    table.add_column("Cycle")
    table.add_column("Qty", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Market", justify="right")
    table.add_column("Discount", justify="right")
    table.add_column("Profit", justify="right")
    table.add_column("Profit %", justify="right")
    table.add_column("Unrealized", justify="right")
    table.add_column("Broker")

    for p in purchases:
        profit = valuation.espp_profit(p)
        unrealized = valuation.espp_unrealized(p)
        table.add_row(
            str(p.id),
            p.ticker,
            f"{p.cycle_start_date} → {p.cycle_end_date}",
            f"{p.quantity:,}",
            format_currency(p.purchase_price, p.currency),
            format_currency(p.market_price, p.currency),
            f"{p.discount}%",
            signed(profit, format_currency(profit, p.currency)),
            pct(valuation.espp_profit_pct(p)),
            signed(unrealized, format_currency(unrealized, p.currency)) if p.current_price > 0 else "—",
            p.broker or "—",
        )
    console.print(table)


@app.command("remove")
def remove(
    purchase_id: int = typer.Argument(..., help="Purchase ID"),
    force: bool = typer.Option(False, "--force", "-f"),
):
    """Remove an ESPP purchase."""
    p = repo.get_by_id(purchase_id)
    if not p:
        fail(f"ESPP purchase {purchase_id} not found")

    if not force:
        confirm = typer.confirm(f"Remove ESPP purchase of {p.quantity} {p.ticker}?")
        if not confirm:
            console.print("Cancelled.")
            return

    repo.delete(purchase_id)
    console.print(f"[green]Removed ESPP purchase {purchase_id}[/green]")
