"""Tests for record validation."""

from datetime import date
from decimal import Decimal

import pytest

from folio_tracker.core.exceptions import ValidationError
from folio_tracker.core.models import EsppPurchase, Holding, Lot, RsuGrant, VestingEntry
from folio_tracker.core.validation import (
    validate_currency,
    validate_espp,
    validate_holding,
    validate_lot,
    validate_rsu_grant,
)


def _lot(**overrides):
    fields = dict(price=Decimal("10"), quantity=Decimal("1"), purchase_date=date(2024, 1, 1), currency="USD")
    fields.update(overrides)
    return Lot(**fields)


def _espp(**overrides):
    fields = dict(
        ticker="INTC",
        company_name="Intel",
        grant_date=date(2024, 6, 30),
        purchase_price=Decimal("85"),
        market_price=Decimal("100"),
        quantity=Decimal("10"),
        discount=Decimal("15"),
        cycle_start_date=date(2024, 1, 1),
        cycle_end_date=date(2024, 6, 30),
    )
    fields.update(overrides)
    return EsppPurchase(**fields)


def _grant(*quantities, total="100"):
    return RsuGrant(
        ticker="MSFT",
        company_name="Microsoft",
        grant_date=date(2023, 1, 1),
        total_granted=Decimal(total),
        vesting_schedule=[
            VestingEntry(vest_date=date(2024 + i, 1, 1), quantity=Decimal(q))
            for i, q in enumerate(quantities)
        ],
    )


class TestCurrency:
    def test_supported_case_insensitive(self):
        validate_currency("ils")

    def test_unsupported(self):
        with pytest.raises(ValidationError, match="XYZ"):
            validate_currency("XYZ")


class TestLotAndHolding:
    def test_valid_lot(self):
        validate_lot(_lot())

    @pytest.mark.parametrize("field", ["price", "quantity"])
    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_lot_requires_positive(self, field, value):
        with pytest.raises(ValidationError):
            validate_lot(_lot(**{field: Decimal(value)}))

    def test_holding_requires_ticker(self):
        with pytest.raises(ValidationError, match="Ticker"):
            validate_holding(Holding(ticker=" ", name="X", trading_currency="USD"))

    def test_holding_checks_its_lots(self):
        h = Holding(ticker="AAPL", name="Apple", trading_currency="USD", lots=[_lot(currency="XYZ")])
        with pytest.raises(ValidationError):
            validate_holding(h)


class TestRsuGrant:
    def test_schedule_must_cover_total(self):
        validate_rsu_grant(_grant("25", "75"))

    def test_short_schedule_rejected(self):
        with pytest.raises(ValidationError, match="granted"):
            validate_rsu_grant(_grant("25", "25"))

    def test_over_schedule_rejected(self):
        with pytest.raises(ValidationError):
            validate_rsu_grant(_grant("60", "60"))

    def test_empty_schedule_rejected(self):
        with pytest.raises(ValidationError):
            validate_rsu_grant(_grant())


class TestEspp:
    def test_valid(self):
        validate_espp(_espp())

    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError, match="End date must be after start date"):
            validate_espp(_espp(cycle_end_date=date(2024, 1, 1)))

    @pytest.mark.parametrize("discount", ["-1", "100.5"])
    def test_discount_range(self, discount):
        with pytest.raises(ValidationError, match="Discount"):
            validate_espp(_espp(discount=Decimal(discount)))

    def test_discount_bounds_inclusive(self):
        validate_espp(_espp(discount=Decimal("0")))
        validate_espp(_espp(discount=Decimal("100")))

    def test_quantity_positive(self):
        with pytest.raises(ValidationError):
            validate_espp(_espp(quantity=Decimal("0")))
