"""Data models for the folio tracker."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class Exchange(str, Enum):
    NYSE = "NYSE"
    NASDAQ = "NASDAQ"
    TASE = "TASE"
    LSE = "LSE"
    EURONEXT = "EURONEXT"
    TSE = "TSE"
    SSE = "SSE"
    HKEX = "HKEX"
    SGX = "SGX"


class RateSource(str, Enum):
    LIVE = "live"        # fetched from the provider on this call
    CACHED = "cached"    # served from a fresh cached table
    DEFAULT = "default"  # provider unavailable, static fallback table


@dataclass(frozen=True)
class Lot:
    """One purchase event within a holding. Immutable once recorded."""
    price: Decimal
    quantity: Decimal
    purchase_date: date
    currency: str
    holding_id: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def total_cost(self) -> Decimal:
        return self.price * self.quantity


@dataclass
class Holding:
    ticker: str
    name: str
    trading_currency: str
    exchange: Exchange = Exchange.NASDAQ
    broker: str = ""
    lots: list[Lot] = field(default_factory=list)
    current_price: Decimal = Decimal("0")
    previous_price: Decimal = Decimal("0")
    last_updated: Optional[datetime] = None
    price_overridden: bool = False  # refresh leaves price fields alone
    owner_id: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class VestingEntry:
    vest_date: date
    quantity: Decimal
    is_vested: bool = False
    grant_id: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class RsuGrant:
    ticker: str
    company_name: str
    grant_date: date
    total_granted: Decimal
    vesting_schedule: list[VestingEntry] = field(default_factory=list)
    currency: str = "USD"
    current_price: Decimal = Decimal("0")
    previous_price: Decimal = Decimal("0")
    last_updated: Optional[datetime] = None
    owner_id: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class EsppPurchase:
    ticker: str
    company_name: str
    grant_date: date
    purchase_price: Decimal
    market_price: Decimal
    quantity: Decimal
    discount: Decimal  # percent, 0-100
    cycle_start_date: date
    cycle_end_date: date
    broker: str = ""
    currency: str = "USD"
    current_price: Decimal = Decimal("0")
    previous_price: Decimal = Decimal("0")
    last_updated: Optional[datetime] = None
    owner_id: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class Quote:
    symbol: str
    price: Decimal
    previous_close: Decimal
    timestamp: datetime
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    open: Optional[Decimal] = None
    volume: Optional[int] = None


@dataclass
class RatesResult:
    """A rate table (currency -> units per base currency) and where it came from."""
    rates: dict[str, Decimal]
    source: RateSource
    fetched_at: Optional[datetime] = None


@dataclass
class Conversion:
    amount: Decimal
    source: Optional[RateSource] = None  # None: same currency, no lookup


@dataclass
class ProfitLoss:
    absolute: Decimal = Decimal("0")
    percentage: Decimal = Decimal("0")


@dataclass
class AllocationSlice:
    label: str
    value: Decimal
    percentage: Decimal


@dataclass
class Mover:
    ticker: str
    name: str
    percent_change: Decimal
    absolute_change: Decimal  # in the holding's trading currency
    currency: str


@dataclass
class PortfolioSummary:
    currency: str
    total_value: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    total_gain: Decimal = Decimal("0")
    total_gain_pct: Decimal = Decimal("0")
    daily_change: Decimal = Decimal("0")
    daily_change_pct: Decimal = Decimal("0")
