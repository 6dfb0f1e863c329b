"""Configuration commands."""

import dataclasses
import logging
from typing import Optional

import typer
from rich.table import Table

from ...core.config import get_config, save_config
from ...core.exceptions import ValidationError
from ...core.validation import validate_currency
from ..parsing import console, fail

app = typer.Typer(help="View and change settings")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@app.command("show")
def show():
    """Print the active configuration."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value")
    cfg = get_config()
    for f in dataclasses.fields(cfg):
        table.add_row(f.name, str(getattr(cfg, f.name)))
    console.print(table)


@app.command("set")
def set_(
    owner: Optional[str] = typer.Option(None, "--owner", help="Whose records the CLI reads and writes"),
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Reporting currency"),
    rates_url: Optional[str] = typer.Option(None, "--rates-url"),
    rates_ttl: Optional[int] = typer.Option(None, "--rates-ttl", help="Seconds to cache exchange rates"),
    interval: Optional[int] = typer.Option(None, "--interval", help="Seconds between price refreshes"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help=f"One of: {', '.join(LOG_LEVELS)}"),
):
    """Update one or more settings in config.json."""
    changes = {}
    if owner is not None:
        if not owner.strip():
            fail("Owner must not be empty")
        changes["owner"] = owner.strip()
    if currency is not None:
        try:
            validate_currency(currency)
        except ValidationError as e:
            fail(str(e))
        changes["reporting_currency"] = currency.upper()
    if rates_url is not None:
        changes["rates_url"] = rates_url
    for key, value in (("rates_ttl_seconds", rates_ttl), ("refresh_interval_seconds", interval)):
        if value is not None:
            if value <= 0:
                fail(f"{key} must be positive")
            changes[key] = value
    if timeout is not None:
        if timeout <= 0:
            fail("Timeout must be positive")
        changes["http_timeout_seconds"] = timeout
    if log_level is not None:
        if log_level.upper() not in LOG_LEVELS:
            fail(f"Invalid log level. Choose from: {', '.join(LOG_LEVELS)}")
        changes["log_level"] = log_level.upper()

    if not changes:
        console.print("[yellow]Nothing to change.[/yellow]")
        return
    save_config(dataclasses.replace(get_config(), **changes))
    logging.getLogger(__name__).debug("Config updated: %s", changes)
    for key, value in changes.items():
        console.print(f"[green]{key} = {value}[/green]")
