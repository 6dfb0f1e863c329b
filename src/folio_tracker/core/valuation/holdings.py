"""Per-holding valuation: shares, average cost, market value and P/L.

All functions are pure given the converter's rate table snapshot. Amounts
are expressed in the caller's target (reporting) currency unless noted.
"""

from decimal import Decimal
from typing import Optional

from ..fx.converter import CENTS, CurrencyConverter
from ..models import Holding, ProfitLoss


def _converter(converter: Optional[CurrencyConverter]) -> CurrencyConverter:
    return converter if converter is not None else CurrencyConverter()


def total_shares(holding: Holding) -> Decimal:
    """Sum of lot quantities; 0 for a holding without lots."""
    return sum((lot.quantity for lot in holding.lots), Decimal("0"))


def cost_basis(
    holding: Holding, target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    """Total purchase cost, each lot's price converted from the lot's currency."""
    fx = _converter(converter)
    return sum(
        (fx.convert(lot.price, lot.currency, target) * lot.quantity for lot in holding.lots),
        Decimal("0"),
    )


def average_cost(
    holding: Holding, target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    """Quantity-weighted average purchase price in ``target``.

    Returns 0 when there are no lots.
    """
    shares = total_shares(holding)
    if shares == 0:
        return Decimal("0")
    return (cost_basis(holding, target, converter) / shares).quantize(CENTS)


def market_value(
    holding: Holding, target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    value = holding.current_price * total_shares(holding)
    return _converter(converter).convert(value, holding.trading_currency, target)


def profit_loss(
    holding: Holding, target: str, converter: Optional[CurrencyConverter] = None
) -> ProfitLoss:
    """Unrealized P/L of the whole position, absolute and in percent.

    Uses ``current_price`` as stored, which may be a manual override.
    """
    shares = total_shares(holding)
    if shares == 0:
        return ProfitLoss()

    fx = _converter(converter)
    avg = average_cost(holding, target, fx)
    current = fx.convert(holding.current_price, holding.trading_currency, target)

    absolute = ((current - avg) * shares).quantize(CENTS)
    percentage = ((current - avg) / avg * 100).quantize(CENTS) if avg > 0 else Decimal("0")
    return ProfitLoss(absolute=absolute, percentage=percentage)


def price_change(holding: Holding) -> Decimal:
    """Per-share move since previous close, in the trading currency."""
    return holding.current_price - holding.previous_price


def price_change_pct(holding: Holding) -> Decimal:
    if holding.previous_price <= 0:
        return Decimal("0")
    return (price_change(holding) / holding.previous_price * 100).quantize(CENTS)


def daily_change(
    holding: Holding, target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    move = price_change(holding) * total_shares(holding)
    return _converter(converter).convert(move, holding.trading_currency, target)
