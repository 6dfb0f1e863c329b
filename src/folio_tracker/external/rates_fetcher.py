"""Exchange rate fetching via the exchangerate-api.com free endpoint."""

from decimal import Decimal, InvalidOperation

import requests

from ..core.config import RATES_URL
from ..core.exceptions import RateFetchError


class RatesFetcher:
    """Fetches a ``{currency: rate}`` table relative to a base currency.

    Expects ``GET {url}/{base}`` to answer ``{"rates": {"EUR": 0.85, ...}}``.
    Any other outcome raises RateFetchError.
    """

    def __init__(self, url: str = RATES_URL, timeout: float = 10):
        self.url = url.rstrip("/")
        self.timeout = timeout

    def fetch(self, base: str = "USD") -> dict[str, Decimal]:
        try:
            resp = requests.get(f"{self.url}/{base.upper()}", timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise RateFetchError(f"Failed to fetch exchange rates: {e}") from e

        rates = data.get("rates") if isinstance(data, dict) else None
        if not isinstance(rates, dict) or not rates:
            raise RateFetchError("Invalid exchange rates data format")

        table: dict[str, Decimal] = {}
        for code, rate in rates.items():
            if isinstance(rate, bool):
                continue
            try:
                value = Decimal(str(rate))
            except InvalidOperation as e:
                raise RateFetchError(f"Non-numeric exchange rate for {code}: {rate!r}") from e
            # Conversion divides by these, only finite positive rates are usable
            if not value.is_finite() or value <= 0:
                raise RateFetchError(f"Invalid exchange rate for {code}: {rate!r}")
            table[code.upper()] = value
        return table
