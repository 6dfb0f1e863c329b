"""Record validation, applied by the repositories on create and update."""

from decimal import Decimal

from .exceptions import ValidationError
from .fx.rates import DEFAULT_RATES
from .models import EsppPurchase, Holding, Lot, RsuGrant, VestingEntry

SUPPORTED_CURRENCIES = frozenset(DEFAULT_RATES)


def validate_currency(code: str, field: str = "currency") -> None:
    if code.upper() not in SUPPORTED_CURRENCIES:
        raise ValidationError(
            f"Unsupported {field} {code!r}. Choose from: {', '.join(sorted(SUPPORTED_CURRENCIES))}"
        )


def _positive(value: Decimal, field: str) -> None:
    if value is None or value <= 0:
        raise ValidationError(f"{field} must be greater than 0 (got {value})")


def validate_lot(lot: Lot) -> None:
    _positive(lot.price, "Purchase price")
    _positive(lot.quantity, "Quantity")
    validate_currency(lot.currency)


def validate_holding(holding: Holding) -> None:
    if not holding.ticker.strip():
        raise ValidationError("Ticker is required")
    if not holding.name.strip():
        raise ValidationError("Name is required")
    validate_currency(holding.trading_currency, "trading currency")
    if holding.current_price < 0 or holding.previous_price < 0:
        raise ValidationError("Prices cannot be negative")
    for lot in holding.lots:
        validate_lot(lot)


def validate_vesting_entry(entry: VestingEntry) -> None:
    _positive(entry.quantity, "Vesting quantity")


def validate_rsu_grant(grant: RsuGrant) -> None:
    if not grant.ticker.strip():
        raise ValidationError("Ticker is required")
    if not grant.company_name.strip():
        raise ValidationError("Company name is required")
    _positive(grant.total_granted, "Total granted")
    validate_currency(grant.currency)
    for entry in grant.vesting_schedule:
        validate_vesting_entry(entry)
    scheduled = sum((e.quantity for e in grant.vesting_schedule), Decimal("0"))
    if scheduled != grant.total_granted:
        raise ValidationError(
            f"Vesting schedule covers {scheduled} shares but {grant.total_granted} were granted"
        )


def validate_espp(purchase: EsppPurchase) -> None:
    if not purchase.ticker.strip():
        raise ValidationError("Ticker is required")
    if not purchase.company_name.strip():
        raise ValidationError("Company name is required")
    _positive(purchase.purchase_price, "Purchase price")
    _positive(purchase.market_price, "Market price")
    _positive(purchase.quantity, "Quantity")
    if purchase.discount < 0 or purchase.discount > 100:
        raise ValidationError(f"Discount must be between 0 and 100 (got {purchase.discount})")
    if purchase.cycle_end_date <= purchase.cycle_start_date:
        raise ValidationError("End date must be after start date")
    validate_currency(purchase.currency)
