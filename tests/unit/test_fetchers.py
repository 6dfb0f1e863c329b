"""Tests for the exchange rate and quote fetchers (network replaced by fakes)."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
import requests

from folio_tracker.core.exceptions import RateFetchError
from folio_tracker.core.fx import CurrencyConverter, RateCache
from folio_tracker.core.models import Exchange, RateSource
from folio_tracker.external import quote_fetcher
from folio_tracker.external.quote_fetcher import QuoteFetcher, format_yahoo_symbol
from folio_tracker.external.rates_fetcher import RatesFetcher


class FakeResponse:
    def __init__(self, payload=None, status=200, json_error=None):
        self.payload = payload
        self.status = status
        self.json_error = json_error

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.json_error:
            raise self.json_error
        return self.payload


class TestRatesFetcher:
    def test_parses_rates_as_decimal(self, monkeypatch):
        seen = {}

        def fake_get(url, timeout):
            seen["url"], seen["timeout"] = url, timeout
            return FakeResponse({"base": "USD", "rates": {"USD": 1, "ILS": 3.71, "eur": 0.92}})

        monkeypatch.setattr(requests, "get", fake_get)
        rates = RatesFetcher("https://rates.example/v4/latest/", timeout=5).fetch("usd")

        assert seen == {"url": "https://rates.example/v4/latest/USD", "timeout": 5}
        assert rates["ILS"] == Decimal("3.71")
        assert rates["EUR"] == Decimal("0.92")

    def test_http_error(self, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(status=503))
        with pytest.raises(RateFetchError):
            RatesFetcher().fetch()

    def test_connection_error(self, monkeypatch):
        def boom(url, timeout):
            raise requests.ConnectionError("no route")

        monkeypatch.setattr(requests, "get", boom)
        with pytest.raises(RateFetchError, match="no route"):
            RatesFetcher().fetch()

    def test_invalid_json(self, monkeypatch):
        monkeypatch.setattr(
            requests, "get", lambda url, timeout: FakeResponse(json_error=ValueError("bad json"))
        )
        with pytest.raises(RateFetchError):
            RatesFetcher().fetch()

    @pytest.mark.parametrize("payload", [{}, {"rates": {}}, {"rates": []}, ["USD"]])
    def test_missing_rates(self, monkeypatch, payload):
        monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(payload))
        with pytest.raises(RateFetchError, match="Invalid exchange rates"):
            RatesFetcher().fetch()

    def test_non_numeric_rate(self, monkeypatch):
        monkeypatch.setattr(
            requests, "get", lambda url, timeout: FakeResponse({"rates": {"ILS": "n/a"}})
        )
        with pytest.raises(RateFetchError):
            RatesFetcher().fetch()

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf"), 0, -3.65])
    def test_rejects_unusable_rate(self, monkeypatch, bad):
        monkeypatch.setattr(
            requests, "get", lambda url, timeout: FakeResponse({"rates": {"USD": 1, "ILS": bad}})
        )
        with pytest.raises(RateFetchError, match="Invalid exchange rate for ILS"):
            RatesFetcher().fetch()

    def test_unusable_rate_falls_back_to_default_table(self, monkeypatch):
        monkeypatch.setattr(
            requests, "get", lambda url, timeout: FakeResponse({"rates": {"USD": 1, "ILS": float("nan")}})
        )
        fx = CurrencyConverter(RateCache(RatesFetcher().fetch))

        result = fx.convert_checked(Decimal("100"), "USD", "ILS")

        assert result.amount == Decimal("365.00")
        assert result.source is RateSource.DEFAULT


class TestYahooSymbol:
    @pytest.mark.parametrize("ticker,exchange,expected", [
        ("aapl", None, "AAPL"),
        ("AAPL", Exchange.NASDAQ, "AAPL"),
        ("VOD", Exchange.LSE, "VOD.L"),
        ("LON:VOD", Exchange.LSE, "VOD.L"),
        ("VOD.L", Exchange.LSE, "VOD.L"),
        ("TEVA", Exchange.TASE, "TEVA.TA"),
        ("TASE:TEVA", Exchange.TASE, "TEVA.TA"),
        ("BEZQ.B", Exchange.TASE, "BEZQ-B.TA"),
        ("7203", Exchange.TSE, "7203.T"),
        ("0700", Exchange.HKEX, "0700.HK"),
    ])
    def test_format(self, ticker, exchange, expected):
        assert format_yahoo_symbol(ticker, exchange) == expected


class FakeTicker:
    def __init__(self, last=None, prev=None, closes=(), fast_info_error=None):
        self._info = SimpleNamespace(
            last_price=last, previous_close=prev, day_high=None, day_low=None, open=None
        )
        self._closes = list(closes)
        self._fast_info_error = fast_info_error

    @property
    def fast_info(self):
        if self._fast_info_error:
            raise self._fast_info_error
        return self._info

    def history(self, period):
        return FakeHistory(self._closes)


class FakeSeries:
    def __init__(self, values):
        self.iloc = values

    def __len__(self):
        return len(self.iloc)


class FakeHistory:
    def __init__(self, closes):
        self._closes = closes
        self.empty = not closes

    def __getitem__(self, column):
        return FakeSeries(self._closes)


class TestQuoteFetcher:
    def _patch(self, monkeypatch, ticker):
        symbols = []

        def make(symbol):
            symbols.append(symbol)
            return ticker

        monkeypatch.setattr(quote_fetcher.yf, "Ticker", make)
        return symbols

    def test_fast_info_quote(self, monkeypatch):
        symbols = self._patch(monkeypatch, FakeTicker(last=187.32, prev=185.92))
        q = QuoteFetcher().get_quote("aapl")
        assert symbols == ["AAPL"]
        assert q.symbol == "AAPL"
        assert q.price == Decimal("187.3200")
        assert q.previous_close == Decimal("185.9200")

    def test_history_fallback(self, monkeypatch):
        self._patch(monkeypatch, FakeTicker(fast_info_error=KeyError("lastPrice"), closes=[10.0, 11.5]))
        q = QuoteFetcher().get_quote("VOD", Exchange.LSE)
        assert q.price == Decimal("11.5000")
        assert q.previous_close == Decimal("10.0000")

    def test_tase_converted_from_agorot(self, monkeypatch):
        symbols = self._patch(monkeypatch, FakeTicker(last=4120, prev=4080))
        q = QuoteFetcher().get_quote("TEVA", Exchange.TASE)
        assert symbols == ["TEVA.TA"]
        assert q.price == Decimal("41.2000")
        assert q.previous_close == Decimal("40.8000")

    def test_no_data_returns_none(self, monkeypatch):
        self._patch(monkeypatch, FakeTicker())
        assert QuoteFetcher().get_quote("NOPE") is None

    def test_provider_error_returns_none(self, monkeypatch):
        def boom(symbol):
            raise RuntimeError("rate limited")

        monkeypatch.setattr(quote_fetcher.yf, "Ticker", boom)
        assert QuoteFetcher().get_quote("AAPL") is None
