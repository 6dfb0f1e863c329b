"""Valuation engine.

Pure functions for holding valuation, portfolio aggregation and equity
compensation. No database access; network only through the converter's
rate cache.

Usage:
    from folio_tracker.core.valuation import average_cost, portfolio_total
"""

from .equity import (
    espp_profit,
    espp_profit_pct,
    espp_unrealized,
    next_vesting,
    schedule_gap,
    unvested_shares,
    vested_percentage,
    vested_shares,
    vested_value,
)
from .holdings import (
    average_cost,
    cost_basis,
    market_value,
    price_change,
    price_change_pct,
    profit_loss,
    total_shares,
)
from .portfolio import (
    allocation,
    daily_change,
    daily_change_pct,
    portfolio_total,
    summarize,
    top_movers,
    total_cost,
)

__all__ = [
    "allocation",
    "average_cost",
    "cost_basis",
    "daily_change",
    "daily_change_pct",
    "espp_profit",
    "espp_profit_pct",
    "espp_unrealized",
    "market_value",
    "next_vesting",
    "portfolio_total",
    "price_change",
    "price_change_pct",
    "profit_loss",
    "schedule_gap",
    "summarize",
    "top_movers",
    "total_cost",
    "total_shares",
    "unvested_shares",
    "vested_percentage",
    "vested_shares",
    "vested_value",
]
