"""Repository for ESPP purchases."""

import dataclasses

from ...core.exceptions import EsppNotFoundError
from ...core.models import EsppPurchase
from ...core.validation import validate_espp
from ..query import PricedRepository, RowMapper


class EsppRepository(PricedRepository[EsppPurchase]):
    _table = "espp_purchases"
    _mapper = RowMapper(EsppPurchase)
    _order = "grant_date ASC, id ASC"
    _label = "ESPP purchase"
    _not_found = EsppNotFoundError

    @staticmethod
    def _normalize(purchase: EsppPurchase) -> EsppPurchase:
        return dataclasses.replace(
            purchase,
            ticker=purchase.ticker.strip().upper(),
            company_name=purchase.company_name.strip(),
            currency=purchase.currency.strip().upper(),
        )

    def create(self, purchase: EsppPurchase) -> EsppPurchase:
        purchase = self._normalize(purchase)
        validate_espp(purchase)
        return self._insert(purchase)

    def update(self, purchase: EsppPurchase) -> EsppPurchase:
        purchase = self._normalize(purchase)
        validate_espp(purchase)
        saved = self.save(purchase)
        if saved is None:
            raise EsppNotFoundError(f"ESPP purchase {purchase.id} not found")
        return saved
