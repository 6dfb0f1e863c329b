"""Folio Tracker CLI entry point."""

import logging

import typer

from ..core.config import get_config
from ..data.database import get_db
from .commands import config, espp, holdings, lots, prices, rates, rsu, summary

app = typer.Typer(
    name="ft",
    help="Personal portfolio tracker: stocks on several exchanges, RSUs and ESPP in one currency",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

app.add_typer(holdings.app, name="holdings", help="Manage holdings")
app.add_typer(lots.app, name="lots", help="Record purchase lots")
app.add_typer(rsu.app, name="rsu", help="RSU grants and vesting")
app.add_typer(espp.app, name="espp", help="ESPP purchases")
app.add_typer(prices.app, name="prices", help="Fetch live prices")
app.add_typer(rates.app, name="rates", help="Exchange rates")
app.add_typer(summary.app, name="summary", help="Portfolio summary & analytics")
app.add_typer(config.app, name="config", help="Settings")


@app.callback()
def startup(verbose: bool = typer.Option(False, "--verbose", help="Log debug output")):
    """Configure logging and initialize the database on first run."""
    level = logging.DEBUG if verbose else getattr(logging, get_config().log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    get_db()


if __name__ == "__main__":
    app()
