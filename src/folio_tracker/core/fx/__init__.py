"""Exchange rates and currency conversion.

Usage:
    from folio_tracker.core.fx import CurrencyConverter, RateCache
"""

from .converter import CurrencyConverter, currency_symbol, format_currency
from .rates import (
    BASE_CURRENCY,
    DEFAULT_RATES,
    CacheState,
    RateCache,
    get_rate_cache,
    set_rate_cache,
)

__all__ = [
    "BASE_CURRENCY",
    "DEFAULT_RATES",
    "CacheState",
    "CurrencyConverter",
    "RateCache",
    "currency_symbol",
    "format_currency",
    "get_rate_cache",
    "set_rate_cache",
]
