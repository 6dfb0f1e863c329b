"""Repository for holdings CRUD operations."""

import dataclasses
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ...core.exceptions import HoldingNotFoundError
from ...core.models import Holding, Lot
from ...core.validation import validate_holding
from ..query import PricedRepository, RowMapper
from .lots_repo import LotsRepository


class HoldingsRepository(PricedRepository[Holding]):
    _table = "holdings"
    _mapper = RowMapper(Holding)
    _insert_skip = frozenset({"id", "created_at", "lots"})
    _order = "ticker, id"
    _label = "Holding"
    _not_found = HoldingNotFoundError
    # Manually priced holdings keep their price through refreshes
    _price_guard = "price_overridden = 0"

    def __init__(self, owner_id: Optional[str] = None):
        super().__init__(owner_id)
        self.lots = LotsRepository(self.owner_id)

    @staticmethod
    def _normalize(holding: Holding) -> Holding:
        return dataclasses.replace(
            holding,
            ticker=holding.ticker.strip().upper(),
            name=holding.name.strip(),
            trading_currency=holding.trading_currency.strip().upper(),
        )

    def create(self, holding: Holding) -> Holding:
        """Insert the holding together with its lots, atomically."""
        holding = self._normalize(holding)
        validate_holding(holding)
        with self._db().transaction():
            created = self._insert(holding)
            for lot in holding.lots:
                self.lots.create(dataclasses.replace(lot, holding_id=created.id))
        return self.get(created.id)

    def get_by_id(self, id: int) -> Optional[Holding]:
        holding = super().get_by_id(id)
        if holding is not None:
            holding.lots = self.lots.list_by_holding(holding.id)
        return holding

    def get_by_ticker(self, ticker: str) -> Optional[Holding]:
        row = (
            self._query()
            .where("ticker = ?", ticker.strip().upper())
            .order_by("id")
            .fetch_one(self._db().conn)
        )
        return self.get_by_id(row["id"]) if row else None

    def list_all(self) -> list[Holding]:
        """All holdings of the owner with their lots attached."""
        holdings = super().list_all()
        grouped = self.lots.list_grouped()
        for h in holdings:
            h.lots = grouped.get(h.id, [])
        return holdings

    def update(self, holding: Holding) -> Holding:
        """Update descriptive fields. Lots are left as they are."""
        holding = self._normalize(holding)
        validate_holding(holding)
        saved = self.save(holding)
        if saved is None:
            raise HoldingNotFoundError(f"Holding {holding.id} not found")
        return saved

    def replace_lots(self, holding_id: int, lots: list[Lot]) -> Holding:
        """Swap the whole lot list of a holding (edit form semantics)."""
        self.get(holding_id)
        with self._db().transaction():
            self.lots.delete_by_holding(holding_id)
            for lot in lots:
                self.lots.create(dataclasses.replace(lot, holding_id=holding_id, id=None))
        return self.get(holding_id)

    def add_lot(self, holding_id: int, lot: Lot) -> Lot:
        return self.lots.create(dataclasses.replace(lot, holding_id=holding_id))

    def set_price_override(self, holding_id: int, price: Decimal) -> Holding:
        """Pin current_price to a manual value; refreshes stop overwriting it."""
        holding = self.get(holding_id)
        holding.current_price = price
        holding.price_overridden = True
        holding.last_updated = datetime.now()
        return self.update(holding)

    def clear_price_override(self, holding_id: int) -> Holding:
        holding = self.get(holding_id)
        holding.price_overridden = False
        return self.update(holding)
