"""Currency conversion through the base currency, plus display helpers."""

import logging
from decimal import Decimal
from typing import Optional

from ..exceptions import UnknownCurrencyError
from ..models import Conversion, RateSource
from .rates import DEFAULT_RATES, RateCache, get_rate_cache

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "USD": "$",
    "ILS": "₪",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CHF": "CHF",
    "CAD": "C$",
    "AUD": "A$",
    "CNY": "¥",
    "HKD": "HK$",
    "SGD": "S$",
}


class CurrencyConverter:
    """Converts amounts between currency codes using a RateCache.

    ``convert`` is best effort and never raises: display code always gets a
    number back. ``convert_checked`` reports which table was used and raises
    UnknownCurrencyError for a code no table knows.
    """

    def __init__(self, cache: Optional[RateCache] = None):
        self._cache = cache

    @property
    def cache(self) -> RateCache:
        # Resolved lazily so identity conversions never build the global cache
        if self._cache is None:
            self._cache = get_rate_cache()
        return self._cache

    def convert_checked(self, amount: Decimal, from_ccy: str, to_ccy: str) -> Conversion:
        from_ccy, to_ccy = from_ccy.upper(), to_ccy.upper()
        if from_ccy == to_ccy:
            return Conversion(amount)

        result = self.cache.get()
        rates, source = result.rates, result.source
        if from_ccy not in rates or to_ccy not in rates:
            unknown = [c for c in (from_ccy, to_ccy) if c not in DEFAULT_RATES]
            if unknown:
                raise UnknownCurrencyError(f"No exchange rate for {', '.join(unknown)}")
            logger.warning(
                "Rate table lacks %s or %s, converting with default rates", from_ccy, to_ccy
            )
            rates, source = DEFAULT_RATES, RateSource.DEFAULT

        base = self.cache.base_currency
        amount_in_base = amount if from_ccy == base else amount / rates[from_ccy]
        converted = amount_in_base if to_ccy == base else amount_in_base * rates[to_ccy]
        return Conversion(converted.quantize(CENTS), source)

    def convert(self, amount: Decimal, from_ccy: str, to_ccy: str) -> Decimal:
        """Convert ``amount``; on any failure return it unconverted."""
        try:
            return self.convert_checked(amount, from_ccy, to_ccy).amount
        except (UnknownCurrencyError, ArithmeticError) as e:
            logger.warning(
                "Currency conversion %s -> %s failed, using unconverted amount: %s",
                from_ccy, to_ccy, e,
            )
            return amount


def currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get(code.upper(), "$")


def format_currency(amount: Decimal, code: str) -> str:
    """Format for display with two decimals, e.g. ``-$1,234.56``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol(code)}{abs(amount):,.2f}"
