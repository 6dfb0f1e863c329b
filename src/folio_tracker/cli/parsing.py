"""Argument parsing and display helpers shared by the CLI commands."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import typer
from rich.console import Console

console = Console()


def fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def parse_decimal(raw: str, label: str) -> Decimal:
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        fail(f"Invalid {label}: {raw!r} is not a number")
    if not value.is_finite():
        fail(f"Invalid {label}: {raw!r}")
    return value


def parse_date(raw: str, label: str = "date") -> date:
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        fail(f"Invalid {label} {raw!r}, expected YYYY-MM-DD")


def split_spec(raw: str, label: str, min_parts: int, max_parts: int) -> list[str]:
    """Split a colon-separated option value such as ``PRICE:QTY:DATE``."""
    parts = raw.split(":")
    if not min_parts <= len(parts) <= max_parts:
        fail(f"Invalid {label} {raw!r}")
    return parts


def signed(value: Decimal, text: str) -> str:
    color = "green" if value >= 0 else "red"
    return f"[{color}]{text}[/{color}]"


def pct(value: Decimal) -> str:
    return signed(value, f"{value:+.2f}%")
