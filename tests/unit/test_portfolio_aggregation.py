"""Tests for portfolio-wide totals, allocation and movers."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from folio_tracker.core.fx import CurrencyConverter, RateCache
from folio_tracker.core.models import Exchange, Holding, Lot
from folio_tracker.core.valuation import (
    allocation,
    daily_change,
    daily_change_pct,
    portfolio_total,
    summarize,
    top_movers,
    total_cost,
)

RATES = {"USD": Decimal("1"), "ILS": Decimal("4"), "EUR": Decimal("0.8")}
FX = CurrencyConverter(RateCache(lambda base: dict(RATES), clock=lambda: datetime(2024, 1, 1)))


def _holding(ticker, price, qty, current, previous=None, currency="USD",
             exchange=Exchange.NASDAQ, broker="IBKR"):
    lots = [] if qty == "0" else [
        Lot(price=Decimal(price), quantity=Decimal(qty), purchase_date=date(2024, 1, 2), currency=currency)
    ]
    return Holding(
        ticker=ticker,
        name=ticker.title(),
        trading_currency=currency,
        exchange=exchange,
        broker=broker,
        lots=lots,
        current_price=Decimal(current),
        previous_price=Decimal(previous if previous is not None else current),
    )


@pytest.fixture
def book():
    return [
        _holding("AAPL", "100", "10", "150", "140"),
        # 400 ILS/share = 100 USD
        _holding("TEVA", "200", "5", "400", "380", currency="ILS", exchange=Exchange.TASE, broker="Leumi"),
        _holding("EMPTY", "0", "0", "999"),
    ]


class TestTotals:
    def test_empty_portfolio(self):
        assert portfolio_total([], "USD", FX) == Decimal("0")
        assert daily_change_pct([], "USD", FX) == Decimal("0")

    def test_zero_lot_holding_contributes_nothing(self, book):
        # 1500 USD + 2000 ILS (500 USD)
        assert portfolio_total(book, "USD", FX) == Decimal("2000.00")

    def test_total_in_other_currency(self, book):
        assert portfolio_total(book, "ILS", FX) == Decimal("8000.00")

    def test_total_cost(self, book):
        # 1000 USD + 1000 ILS (250 USD)
        assert total_cost(book, "USD", FX) == Decimal("1250.00")

    def test_daily_change_converts_each_holding(self, book):
        # AAPL +10×10 = 100 USD; TEVA +20×5 = 100 ILS = 25 USD
        assert daily_change(book, "USD", FX) == Decimal("125.00")

    def test_daily_change_pct_against_current_value(self, book):
        assert daily_change_pct(book, "USD", FX) == Decimal("6.25")

    def test_single_holding_daily_change(self):
        h = _holding("AAPL", "150", "15", "187.32", "185.92")
        assert daily_change([h], "USD", FX) == Decimal("21.00")


class TestSummary:
    def test_summarize(self, book):
        s = summarize(book, "usd", FX)
        assert s.currency == "USD"
        assert s.total_value == Decimal("2000.00")
        assert s.total_cost == Decimal("1250.00")
        assert s.total_gain == Decimal("750.00")
        assert s.total_gain_pct == Decimal("60.00")
        assert s.daily_change == Decimal("125.00")
        assert s.daily_change_pct == Decimal("6.25")

    def test_summarize_empty(self):
        s = summarize([], "ILS", FX)
        assert s.total_value == 0
        assert s.total_gain_pct == 0


class TestAllocation:
    def test_by_asset_sorted_by_value(self, book):
        slices = allocation(book, "USD", "asset", FX)
        assert [s.label for s in slices] == ["AAPL", "TEVA", "EMPTY"]
        assert slices[0].percentage == Decimal("75.00")
        assert slices[1].percentage == Decimal("25.00")
        assert slices[2].value == Decimal("0")

    def test_by_broker(self, book):
        slices = allocation(book, "USD", "broker", FX)
        assert {s.label: s.value for s in slices} == {"IBKR": Decimal("1500"), "Leumi": Decimal("500.00")}

    def test_by_exchange(self, book):
        labels = [s.label for s in allocation(book, "USD", "exchange", FX)]
        assert labels == ["NASDAQ", "TASE"]

    def test_nothing_of_value(self):
        assert allocation([_holding("EMPTY", "0", "0", "10")], "USD", "asset", FX) == []

    def test_unknown_key(self, book):
        with pytest.raises(ValueError):
            allocation(book, "USD", "sector", FX)


class TestMovers:
    def test_ranked_by_absolute_percent(self):
        holdings = [
            _holding("UP", "10", "1", "102", "100"),
            _holding("DOWN", "10", "1", "90", "100"),
            _holding("FLAT", "10", "1", "100", "100"),
        ]
        movers = top_movers(holdings, limit=2)
        assert [m.ticker for m in movers] == ["DOWN", "UP"]
        assert movers[0].percent_change == Decimal("-10.00")
        assert movers[0].absolute_change == Decimal("-10")

    def test_currency_is_trading_currency(self):
        movers = top_movers([_holding("TEVA", "10", "1", "44", "40", currency="ILS")])
        assert movers[0].currency == "ILS"
