"""RSU vesting and ESPP gain calculations."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ..fx.converter import CENTS, CurrencyConverter
from ..models import EsppPurchase, RsuGrant, VestingEntry


def vested_shares(grant: RsuGrant) -> Decimal:
    return sum(
        (e.quantity for e in grant.vesting_schedule if e.is_vested), Decimal("0")
    )


def unvested_shares(grant: RsuGrant) -> Decimal:
    return sum(
        (e.quantity for e in grant.vesting_schedule if not e.is_vested), Decimal("0")
    )


def vested_percentage(grant: RsuGrant) -> Decimal:
    if grant.total_granted <= 0:
        return Decimal("0")
    return (vested_shares(grant) / grant.total_granted * 100).quantize(CENTS)


def schedule_gap(grant: RsuGrant) -> Decimal:
    """Granted quantity not covered by any vesting entry (negative if over-scheduled)."""
    scheduled = sum((e.quantity for e in grant.vesting_schedule), Decimal("0"))
    return grant.total_granted - scheduled


def next_vesting(grant: RsuGrant, today: Optional[date] = None) -> Optional[VestingEntry]:
    """Earliest unvested entry dated after ``today``, or None when all are done."""
    today = today or date.today()
    upcoming = [e for e in grant.vesting_schedule if not e.is_vested and e.vest_date > today]
    return min(upcoming, key=lambda e: e.vest_date, default=None)


def vested_value(
    grant: RsuGrant, target: str, converter: Optional[CurrencyConverter] = None
) -> Decimal:
    fx = converter if converter is not None else CurrencyConverter()
    return fx.convert(grant.current_price * vested_shares(grant), grant.currency, target)


def espp_profit(purchase: EsppPurchase) -> Decimal:
    """Gain locked in at purchase: (market - purchase price) × quantity."""
    return ((purchase.market_price - purchase.purchase_price) * purchase.quantity).quantize(CENTS)


def espp_profit_pct(purchase: EsppPurchase) -> Decimal:
    cost = purchase.purchase_price * purchase.quantity
    if cost <= 0:
        return Decimal("0")
    return (espp_profit(purchase) / cost * 100).quantize(CENTS)


def espp_unrealized(purchase: EsppPurchase) -> Decimal:
    """Gain at the latest quoted price; 0 until a price has been fetched."""
    if purchase.current_price <= 0:
        return Decimal("0")
    return ((purchase.current_price - purchase.purchase_price) * purchase.quantity).quantize(CENTS)
