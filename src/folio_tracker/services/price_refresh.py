"""Periodic and on-demand refresh of live prices.

One quote is fetched per distinct ticker per pass and written to every
holding, RSU grant and ESPP purchase on that ticker. Holdings with a manual
price override keep their price. A failed quote leaves records untouched.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..core.models import Exchange, Quote
from ..data.repositories.espp_repo import EsppRepository
from ..data.repositories.holdings_repo import HoldingsRepository
from ..data.repositories.rsu_repo import RsuRepository

logger = logging.getLogger(__name__)

QuoteProvider = Callable[[str, Optional[Exchange]], Optional[Quote]]


@dataclass
class RefreshReport:
    started_at: datetime
    updated: list[str] = field(default_factory=list)
    overridden: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    deduplicated: bool = False  # an identical refresh was already running

    @property
    def ok(self) -> bool:
        return not self.failed and not self.deduplicated


class PriceRefresher:
    """Writes fresh quotes to the owner's records.

    Concurrent refreshes over the same ticker set are collapsed: while one is
    in flight, another call with the same set returns a ``deduplicated``
    report without touching the quote provider.
    """

    def __init__(
        self,
        get_quote: Optional[QuoteProvider] = None,
        holdings_repo: Optional[HoldingsRepository] = None,
        rsu_repo: Optional[RsuRepository] = None,
        espp_repo: Optional[EsppRepository] = None,
    ):
        if get_quote is None:
            from ..external.quote_fetcher import QuoteFetcher
            get_quote = QuoteFetcher().get_quote
        self._get_quote = get_quote
        self.holdings_repo = holdings_repo or HoldingsRepository()
        owner = self.holdings_repo.owner_id
        self.rsu_repo = rsu_repo or RsuRepository(owner)
        self.espp_repo = espp_repo or EsppRepository(owner)
        self._lock = threading.Lock()
        self._in_flight: set[frozenset] = set()

    def _fetch(self, ticker: str, exchange: Optional[Exchange]) -> Optional[Quote]:
        try:
            return self._get_quote(ticker, exchange)
        except Exception as e:
            logger.warning("Quote provider failed for %s: %s", ticker, e)
            return None

    def refresh(self) -> RefreshReport:
        report = RefreshReport(started_at=datetime.now())
        holdings = self.holdings_repo.list_all()
        grants = self.rsu_repo.list_all()
        purchases = self.espp_repo.list_all()

        # Exchange is known for holdings only; equity plans default to US listings
        exchanges: dict[str, Optional[Exchange]] = {}
        for rec in [*grants, *purchases]:
            exchanges.setdefault(rec.ticker, None)
        for h in holdings:
            if not h.price_overridden:
                exchanges[h.ticker] = h.exchange

        key = frozenset(exchanges)
        with self._lock:
            if key in self._in_flight:
                logger.info("Refresh for %d tickers already running, skipping", len(key))
                report.deduplicated = True
                return report
            self._in_flight.add(key)

        try:
            quotes = {t: self._fetch(t, ex) for t, ex in sorted(exchanges.items(), key=lambda i: i[0])}
            now = datetime.now()

            for h in holdings:
                quote = quotes.get(h.ticker)
                if h.price_overridden:
                    report.overridden.append(h.ticker)
                elif quote is None:
                    report.failed.append(h.ticker)
                elif self.holdings_repo.update_prices(h.id, quote.price, quote.previous_close, now):
                    report.updated.append(h.ticker)

            for repo, records in ((self.rsu_repo, grants), (self.espp_repo, purchases)):
                for rec in records:
                    quote = quotes.get(rec.ticker)
                    if quote is None:
                        report.failed.append(rec.ticker)
                    elif repo.update_prices(rec.id, quote.price, quote.previous_close, now):
                        report.updated.append(rec.ticker)
        finally:
            with self._lock:
                self._in_flight.discard(key)

        report.updated = sorted(set(report.updated))
        report.failed = sorted(set(report.failed))
        if report.failed:
            logger.warning("No quote for: %s", ", ".join(report.failed))
        return report

    def run_periodic(
        self,
        interval: float = 60,
        iterations: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_refresh: Optional[Callable[[RefreshReport], None]] = None,
    ) -> int:
        """Refresh every ``interval`` seconds; forever unless ``iterations`` is given.

        Returns the number of passes completed.
        """
        done = 0
        while iterations is None or done < iterations:
            report = self.refresh()
            done += 1
            if on_refresh is not None:
                on_refresh(report)
            if iterations is None or done < iterations:
                sleep(interval)
        return done
