"""Exchange rate commands."""

from typing import Optional

import typer
from rich.table import Table

from ...core.config import get_config
from ...core.exceptions import UnknownCurrencyError
from ...core.fx import CurrencyConverter, format_currency, get_rate_cache
from ...core.models import RateSource
from ..parsing import console, fail, parse_decimal

app = typer.Typer(help="Exchange rates")

_SOURCE_STYLE = {
    RateSource.LIVE: "[green]live[/green]",
    RateSource.CACHED: "[cyan]cached[/cyan]",
    RateSource.DEFAULT: "[yellow]default (offline)[/yellow]",
}


@app.command("show")
def show(
    refresh: bool = typer.Option(False, "--refresh", "-r", help="Ignore the cache and refetch"),
    currencies: Optional[list[str]] = typer.Argument(None, help="Only these codes"),
):
    """Show the current rate table against the base currency."""
    cache = get_rate_cache()
    result = cache.refresh() if refresh else cache.get()
    wanted = {c.upper() for c in currencies or []}

    fetched = f" fetched {result.fetched_at:%Y-%m-%d %H:%M}" if result.fetched_at else ""
    table = Table(title=f"Rates per 1 {cache.base_currency}")
    table.add_column("Currency", style="bold")
    table.add_column("Rate", justify="right")
    for code, rate in sorted(result.rates.items()):
        if wanted and code not in wanted:
            continue
        table.add_row(code, f"{rate:,.4f}")
    console.print(table)
    console.print(f"Source: {_SOURCE_STYLE[result.source]}{fetched}")


@app.command("convert")
def convert(
    amount: str = typer.Argument(..., help="Amount to convert"),
    from_currency: str = typer.Argument(..., help="Source currency"),
    to_currency: Optional[str] = typer.Argument(None, help="Target currency (default: reporting currency)"),
):
    """Convert an amount between two currencies."""
    value = parse_decimal(amount, "amount")
    target = (to_currency or get_config().reporting_currency).upper()
    try:
        result = CurrencyConverter().convert_checked(value, from_currency, target)
    except UnknownCurrencyError as e:
        fail(str(e))
    source = _SOURCE_STYLE[result.source] if result.source else "identity"
    console.print(
        f"{format_currency(value, from_currency.upper())} = "
        f"[bold]{format_currency(result.amount, target)}[/bold]  ({source})"
    )
