"""Portfolio summary commands."""

from decimal import Decimal
from typing import Optional

import typer
from rich.table import Table

from ...core import valuation
from ...core.config import get_config
from ...core.fx import CurrencyConverter, format_currency
from ...core.valuation.portfolio import ALLOCATION_KEYS
from ...data.repositories.espp_repo import EsppRepository
from ...data.repositories.holdings_repo import HoldingsRepository
from ...data.repositories.rsu_repo import RsuRepository
from ..parsing import console, fail, pct, signed

app = typer.Typer(help="Portfolio summary and analytics")
holdings_repo = HoldingsRepository()
rsu_repo = RsuRepository()
espp_repo = EsppRepository()


def _target(currency: Optional[str]) -> str:
    return (currency or get_config().reporting_currency).upper()


@app.command("show")
def show(currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Reporting currency")):
    """Total value, gain and daily change, plus equity compensation."""
    target = _target(currency)
    fx = CurrencyConverter()
    s = valuation.summarize(holdings_repo.list_all(), target, fx)
    grants = rsu_repo.list_all()
    purchases = espp_repo.list_all()

    rsu_value = sum((valuation.vested_value(g, target, fx) for g in grants), Decimal("0"))
    espp_value = sum(
        (fx.convert(p.current_price * p.quantity, p.currency, target) for p in purchases),
        Decimal("0"),
    )

    console.print(f"\n[bold]Portfolio summary ({target})[/bold]\n")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Label", style="dim")
    table.add_column("Value", justify="right")

    table.add_row("Total Cost Basis", format_currency(s.total_cost, target))
    table.add_row("[bold]Holdings Value[/bold]", f"[bold]{format_currency(s.total_value, target)}[/bold]")
    table.add_row(
        "Total Gain",
        f"{signed(s.total_gain, format_currency(s.total_gain, target))} ({pct(s.total_gain_pct)})",
    )
    table.add_row(
        "Today",
        f"{signed(s.daily_change, format_currency(s.daily_change, target))} ({pct(s.daily_change_pct)})",
    )
    if grants:
        table.add_row("Vested RSUs", format_currency(rsu_value, target))
    if purchases:
        table.add_row("ESPP Shares", format_currency(espp_value, target))
    if grants or purchases:
        table.add_row(
            "[bold]Net Worth[/bold]",
            f"[bold]{format_currency(s.total_value + rsu_value + espp_value, target)}[/bold]",
        )
    console.print(table)


@app.command("allocation")
def allocation(
    by: str = typer.Option("asset", "--by", "-b", help=f"Group by: {', '.join(ALLOCATION_KEYS)}"),
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Reporting currency"),
):
    """Share of portfolio value per asset, broker or exchange."""
    if by not in ALLOCATION_KEYS:
        fail(f"Invalid grouping. Choose from: {', '.join(ALLOCATION_KEYS)}")
    target = _target(currency)
    slices = valuation.allocation(holdings_repo.list_all(), target, by)
    if not slices:
        console.print("[yellow]Nothing to allocate yet.[/yellow]")
        return

    table = Table(title=f"Allocation by {by} ({target})")
    table.add_column(by.capitalize(), style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Share", justify="right")
    for s in slices:
        table.add_row(s.label, format_currency(s.value, target), f"{s.percentage}%")
    console.print(table)


@app.command("movers")
def movers(limit: int = typer.Option(5, "--limit", "-n", help="How many to show")):
    """Biggest price moves since the previous close."""
    top = valuation.top_movers(holdings_repo.list_all(), limit)
    if not top:
        console.print("[yellow]No holdings yet.[/yellow]")
        return

    table = Table(title="Top movers")
    table.add_column("Ticker", style="bold")
    table.add_column("Name")
    table.add_column("Change", justify="right")
    table.add_column("Change %", justify="right")
    for m in top:
        table.add_row(
            m.ticker,
            m.name,
            signed(m.absolute_change, format_currency(m.absolute_change, m.currency)),
            pct(m.percent_change),
        )
    console.print(table)
