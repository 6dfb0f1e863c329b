"""End-to-end integration test.

Simulates the full user journey without network access:
  1. Holdings on two exchanges in two currencies, one with two lots
  2. An RSU grant and an ESPP purchase
  3. A price refresh from a fake quote provider
  4. Portfolio valuation in the reporting currency (ILS)
  5. A manual override surviving the next refresh

Demo portfolio
--------------
  AAPL (NASDAQ, USD)  10 @ $100 + 5 @ $130   → avg $110
  TEVA (TASE, ILS)    20 @ ₪40

Quotes after refresh:
  AAPL $150 (prev $140)    TEVA ₪45 (prev ₪44)

Rates (default table): 1 USD = 3.65 ILS
  AAPL value  15 × 150 × 3.65 = ₪8,212.50
  TEVA value  20 × 45         =   ₪900.00
  Total                         ₪9,112.50
"""

from datetime import date, datetime
from decimal import Decimal

from folio_tracker.core import valuation
from folio_tracker.core.fx import CurrencyConverter
from folio_tracker.core.models import EsppPurchase, Exchange, Holding, Lot, Quote, RsuGrant, VestingEntry
from folio_tracker.data.repositories.espp_repo import EsppRepository
from folio_tracker.data.repositories.holdings_repo import HoldingsRepository
from folio_tracker.data.repositories.rsu_repo import RsuRepository
from folio_tracker.services.price_refresh import PriceRefresher

QUOTES = {
    "AAPL": (Decimal("150"), Decimal("140")),
    "TEVA": (Decimal("45"), Decimal("44")),
    "MSFT": (Decimal("400"), Decimal("390")),
    "INTC": (Decimal("30"), Decimal("31")),
}


def fake_quote(ticker, exchange):
    price, prev = QUOTES[ticker]
    return Quote(symbol=ticker, price=price, previous_close=prev, timestamp=datetime(2024, 5, 1, 16))


def _lot(price, qty, when, currency):
    return Lot(price=Decimal(price), quantity=Decimal(qty), purchase_date=when, currency=currency)


def test_full_journey(isolated_db, offline_rates):
    holdings_repo = HoldingsRepository()
    apple = holdings_repo.create(Holding(
        ticker="AAPL", name="Apple", trading_currency="USD", exchange=Exchange.NASDAQ, broker="IBKR",
        lots=[_lot("100", "10", date(2023, 1, 5), "USD"), _lot("130", "5", date(2023, 6, 1), "USD")],
    ))
    teva = holdings_repo.create(Holding(
        ticker="TEVA", name="Teva", trading_currency="ILS", exchange=Exchange.TASE, broker="Leumi",
        lots=[_lot("40", "20", date(2023, 2, 1), "ILS")],
    ))
    grant = RsuRepository().create(RsuGrant(
        ticker="MSFT", company_name="Microsoft", grant_date=date(2023, 1, 1), total_granted=Decimal("8"),
        vesting_schedule=[
            VestingEntry(vest_date=date(2024, 1, 1), quantity=Decimal("4"), is_vested=True),
            VestingEntry(vest_date=date(2025, 1, 1), quantity=Decimal("4")),
        ],
    ))
    purchase = EsppRepository().create(EsppPurchase(
        ticker="INTC", company_name="Intel", grant_date=date(2024, 6, 30),
        purchase_price=Decimal("25.5"), market_price=Decimal("30"), quantity=Decimal("10"),
        discount=Decimal("15"), cycle_start_date=date(2024, 1, 1), cycle_end_date=date(2024, 6, 30),
    ))

    # --- Refresh -----------------------------------------------------------
    report = PriceRefresher(fake_quote).refresh()
    assert report.ok
    assert report.updated == ["AAPL", "INTC", "MSFT", "TEVA"]

    holdings = holdings_repo.list_all()
    fx = CurrencyConverter()

    # --- Per holding ---------------------------------------------------------
    apple = holdings_repo.get_by_id(apple.id)
    assert valuation.average_cost(apple, "USD", fx) == Decimal("110.00")
    assert valuation.profit_loss(apple, "USD", fx).absolute == Decimal("600.00")
    assert valuation.market_value(apple, "ILS", fx) == Decimal("8212.50")

    # --- Portfolio -----------------------------------------------------------
    summary = valuation.summarize(holdings, "ILS", fx)
    assert summary.total_value == Decimal("9112.50")
    # AAPL 10×3.65×15 = 547.50, TEVA 1×20 = 20
    assert summary.daily_change == Decimal("567.50")
    assert [s.label for s in valuation.allocation(holdings, "ILS", "exchange", fx)] == ["NASDAQ", "TASE"]

    # --- Equity compensation ------------------------------------------------
    grant = RsuRepository().get_by_id(grant.id)
    assert valuation.vested_value(grant, "USD", fx) == Decimal("1600")
    purchase = EsppRepository().get_by_id(purchase.id)
    assert valuation.espp_profit(purchase) == Decimal("45.00")
    assert valuation.espp_unrealized(purchase) == Decimal("45.00")

    # --- Manual override survives the next refresh ---------------------------
    holdings_repo.set_price_override(teva.id, Decimal("50"))
    report = PriceRefresher(fake_quote).refresh()
    assert report.overridden == ["TEVA"]
    assert holdings_repo.get_by_id(teva.id).current_price == Decimal("50")

    # Rates were fetched once and then served from cache
    assert offline_rates.calls == ["USD"]
