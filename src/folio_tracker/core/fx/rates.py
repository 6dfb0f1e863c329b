"""Exchange rate table with time-based invalidation and a static fallback.

The cache holds one table of ``currency -> units per base currency`` plus the
time it was fetched. It is an explicit object with an injectable fetcher and
clock, so TTL behaviour can be tested without real timers or network.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from ..models import RateSource, RatesResult

logger = logging.getLogger(__name__)

BASE_CURRENCY = "USD"
DEFAULT_TTL = timedelta(hours=1)

# Fallback table (vs USD) served whenever the provider is unreachable
DEFAULT_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "ILS": Decimal("3.65"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "JPY": Decimal("110"),
    "CHF": Decimal("0.92"),
    "CAD": Decimal("1.25"),
    "AUD": Decimal("1.35"),
    "CNY": Decimal("6.45"),
    "HKD": Decimal("7.78"),
    "SGD": Decimal("1.35"),
}

RatesProvider = Callable[[str], dict[str, Decimal]]


class CacheState(str, Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


class RateCache:
    """Process-wide exchange rate table, refreshed lazily once older than ``ttl``.

    There is no lock around the refresh: concurrent callers that all see a
    stale table will each fetch. Every fetch overwrites the whole table, so the
    worst case is a duplicate request.
    """

    def __init__(
        self,
        fetcher: RatesProvider,
        ttl: timedelta = DEFAULT_TTL,
        base_currency: str = BASE_CURRENCY,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._fetcher = fetcher
        self.ttl = ttl
        self.base_currency = base_currency.upper()
        self._clock = clock
        self._rates: Optional[dict[str, Decimal]] = None
        self._fetched_at: Optional[datetime] = None

    @property
    def state(self) -> CacheState:
        if self._rates is None or self._fetched_at is None:
            return CacheState.EMPTY
        if self._clock() - self._fetched_at < self.ttl:
            return CacheState.FRESH
        return CacheState.STALE

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._fetched_at

    def get(self) -> RatesResult:
        """Return the cached table while fresh, otherwise refetch."""
        if self.state is CacheState.FRESH:
            logger.debug("Exchange rates served from cache (fetched %s)", self._fetched_at)
            return RatesResult(dict(self._rates), RateSource.CACHED, self._fetched_at)
        return self.refresh()

    def get_rates(self) -> dict[str, Decimal]:
        return self.get().rates

    def refresh(self) -> RatesResult:
        """Fetch a new table unconditionally.

        On failure the cached table (if any) is left as it was and the static
        DEFAULT_RATES are returned instead. Never raises.
        """
        try:
            rates = dict(self._fetcher(self.base_currency))
        except Exception as e:  # RateFetchError, or anything an injected fetcher raises
            logger.warning(
                "Exchange rate provider failed (%s), using default rates: %s", type(e).__name__, e
            )
            return RatesResult(dict(DEFAULT_RATES), RateSource.DEFAULT)

        now = self._clock()
        self._rates = rates
        self._fetched_at = now
        logger.debug("Fetched %d exchange rates vs %s", len(rates), self.base_currency)
        return RatesResult(dict(rates), RateSource.LIVE, now)

    def invalidate(self) -> None:
        self._rates = None
        self._fetched_at = None


# Global cache instance, built from AppConfig on first use
_cache: Optional[RateCache] = None


def get_rate_cache() -> RateCache:
    global _cache
    if _cache is None:
        from ...external.rates_fetcher import RatesFetcher
        from ..config import get_config

        cfg = get_config()
        fetcher = RatesFetcher(cfg.rates_url, timeout=cfg.http_timeout_seconds)
        _cache = RateCache(fetcher.fetch, ttl=timedelta(seconds=cfg.rates_ttl_seconds))
    return _cache


def set_rate_cache(cache: Optional[RateCache]) -> None:
    global _cache
    _cache = cache
