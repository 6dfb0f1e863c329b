"""Portfolio-wide aggregation.

Every per-holding amount is converted into the target currency first and
only then summed (convert-then-sum), for totals and daily change alike.
"""

from decimal import Decimal
from typing import Optional

from ..fx.converter import CENTS, CurrencyConverter
from ..models import AllocationSlice, Holding, Mover, PortfolioSummary
from . import holdings as hv

ALLOCATION_KEYS = ("asset", "broker", "exchange")


def _converter(converter: Optional[CurrencyConverter]) -> CurrencyConverter:
    return converter if converter is not None else CurrencyConverter()


def portfolio_total(
    holdings: list[Holding], target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    """Sum of converted market values. Zero-lot holdings contribute 0."""
    fx = _converter(converter)
    return sum((hv.market_value(h, target, fx) for h in holdings), Decimal("0"))


def total_cost(
    holdings: list[Holding], target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    fx = _converter(converter)
    return sum((hv.cost_basis(h, target, fx) for h in holdings), Decimal("0"))


def daily_change(
    holdings: list[Holding], target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    """Σ (current - previous) × shares, each converted before summing."""
    fx = _converter(converter)
    return sum((hv.daily_change(h, target, fx) for h in holdings), Decimal("0"))


def daily_change_pct(
    holdings: list[Holding], target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    fx = _converter(converter)
    total = portfolio_total(holdings, target, fx)
    if total <= 0:
        return Decimal("0")
    return (daily_change(holdings, target, fx) / total * 100).quantize(CENTS)


def allocation(
    holdings: list[Holding],
    target: str,
    by: str = "asset",
    converter: Optional[CurrencyConverter] = None,
) -> list[AllocationSlice]:
    """Converted market value grouped by ticker, broker or exchange.

    Slices are sorted by value, largest first. Empty when nothing has value.
    """
    if by not in ALLOCATION_KEYS:
        raise ValueError(f"Unknown allocation key {by!r}, expected one of {ALLOCATION_KEYS}")

    fx = _converter(converter)
    grouped: dict[str, Decimal] = {}
    for h in holdings:
        if by == "asset":
            label = h.ticker
        elif by == "broker":
            label = h.broker or "—"
        else:
            label = h.exchange.value
        grouped[label] = grouped.get(label, Decimal("0")) + hv.market_value(h, target, fx)

    total = sum(grouped.values(), Decimal("0"))
    if total == 0:
        return []
    slices = [
        AllocationSlice(label=label, value=value, percentage=(value / total * 100).quantize(CENTS))
        for label, value in grouped.items()
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def top_movers(holdings: list[Holding], limit: int = 5) -> list[Mover]:
    """Holdings with the largest percent move since previous close, either direction."""
    movers = [
        Mover(
            ticker=h.ticker,
            name=h.name,
            percent_change=hv.price_change_pct(h),
            absolute_change=hv.price_change(h),
            currency=h.trading_currency,
        )
        for h in holdings
    ]
    movers.sort(key=lambda m: abs(m.percent_change), reverse=True)
    return movers[:limit]


def summarize(
    holdings: list[Holding], target: str, converter: Optional[CurrencyConverter] = None
) -> PortfolioSummary:
    fx = _converter(converter)
    value = portfolio_total(holdings, target, fx)
    cost = total_cost(holdings, target, fx)
    gain = value - cost
    change = daily_change(holdings, target, fx)
    return PortfolioSummary(
        currency=target.upper(),
        total_value=value,
        total_cost=cost.quantize(CENTS),
        total_gain=gain.quantize(CENTS),
        total_gain_pct=(gain / cost * 100).quantize(CENTS) if cost > 0 else Decimal("0"),
        daily_change=change,
        daily_change_pct=(change / value * 100).quantize(CENTS) if value > 0 else Decimal("0"),
    )
