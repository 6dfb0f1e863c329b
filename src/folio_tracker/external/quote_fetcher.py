"""Live quotes via yfinance for stocks listed on the supported exchanges."""

import logging
import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

import yfinance as yf

from ..core.models import Exchange, Quote

logger = logging.getLogger(__name__)

# Yahoo Finance symbol suffix per exchange; US listings need none
EXCHANGE_SUFFIXES = {
    Exchange.LSE: ".L",
    Exchange.TASE: ".TA",
    Exchange.EURONEXT: ".PA",
    Exchange.TSE: ".T",
    Exchange.SSE: ".SS",
    Exchange.HKEX: ".HK",
    Exchange.SGX: ".SI",
}

# Prefixes users paste from broker/Google Finance symbols (e.g. "LON:VOD")
_PREFIX_RE = re.compile(r"^(LSE|TASE|LON|TLV|NASDAQ|NYSE):")

# TASE quotes are in agorot; 100 agorot = 1 shekel
_AGOROT_PER_SHEKEL = Decimal("100")


def format_yahoo_symbol(symbol: str, exchange: Optional[Exchange] = None) -> str:
    """Map a ticker to its Yahoo Finance symbol for the given exchange."""
    symbol = symbol.strip().upper()
    if exchange is None:
        return symbol
    clean = _PREFIX_RE.sub("", symbol)
    suffix = EXCHANGE_SUFFIXES.get(exchange, "")
    if suffix and clean.endswith(suffix):
        clean = clean[: -len(suffix)]
    if exchange == Exchange.TASE:
        clean = clean.replace(".", "-")
    return clean + suffix


def _dec(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        d = Decimal(str(value))
    except ArithmeticError:
        return None
    return d if d.is_finite() else None


class QuoteFetcher:
    """Fetches a current price and previous close per ticker via Yahoo Finance."""

    @staticmethod
    def _fast_info(ticker) -> tuple[Optional[Decimal], Optional[Decimal], dict]:
        info = ticker.fast_info
        price = _dec(getattr(info, "last_price", None))
        prev = _dec(getattr(info, "previous_close", None))
        extra = {
            "high": _dec(getattr(info, "day_high", None)),
            "low": _dec(getattr(info, "day_low", None)),
            "open": _dec(getattr(info, "open", None)),
        }
        return price, prev, extra

    @staticmethod
    def _history(ticker) -> tuple[Optional[Decimal], Optional[Decimal]]:
        hist = ticker.history(period="5d")
        if hist.empty:
            return None, None
        closes = hist["Close"]
        price = _dec(closes.iloc[-1])
        prev = _dec(closes.iloc[-2]) if len(closes) > 1 else price
        return price, prev

    def get_quote(self, ticker: str, exchange: Optional[Exchange] = None) -> Optional[Quote]:
        """Return the latest quote, or None when Yahoo has no usable data.

        Network and parsing errors are logged and reported as None.
        """
        symbol = format_yahoo_symbol(ticker, exchange)
        extra: dict = {}
        try:
            yt = yf.Ticker(symbol)
            try:
                price, prev, extra = self._fast_info(yt)
            except Exception as e:  # yfinance raises a wide variety of errors
                logger.debug("fast_info failed for %s: %s", symbol, e)
                price, prev = None, None
            if price is None or price <= 0:
                price, prev = self._history(yt)
        except Exception as e:
            logger.warning("Quote fetch failed for %s: %s", symbol, e)
            return None

        if price is None or price <= 0:
            logger.info("No quote data returned for %s", symbol)
            return None
        if prev is None:
            prev = price

        if exchange == Exchange.TASE:
            price /= _AGOROT_PER_SHEKEL
            prev /= _AGOROT_PER_SHEKEL
            extra = {k: (v / _AGOROT_PER_SHEKEL if v is not None else None) for k, v in extra.items()}

        q = Decimal("0.0001")
        return Quote(
            symbol=ticker.strip().upper(),
            price=price.quantize(q),
            previous_close=prev.quantize(q),
            timestamp=datetime.now(),
            **{k: (v.quantize(q) if v is not None else None) for k, v in extra.items()},
        )
