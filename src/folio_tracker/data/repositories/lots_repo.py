"""Repository for purchase lots."""

import dataclasses
from collections import defaultdict

from ...core.exceptions import HoldingNotFoundError, ValidationError
from ...core.models import Lot
from ...core.validation import validate_lot
from ..query import BaseRepository, RowMapper


class LotsRepository(BaseRepository[Lot]):
    _table = "lots"
    _mapper = RowMapper(Lot)
    _order = "purchase_date ASC, id ASC"
    _label = "Lot"
    _parent = ("holdings", "holding_id")
    _parent_not_found = HoldingNotFoundError

    def create(self, lot: Lot) -> Lot:
        lot = dataclasses.replace(lot, currency=lot.currency.strip().upper())
        validate_lot(lot)
        return self._insert(lot)

    def save(self, obj: Lot):
        raise ValidationError("Lots are immutable once recorded; remove and add a new lot instead")

    def list_by_holding(self, holding_id: int) -> list[Lot]:
        rows = (
            self._query()
            .where("holding_id = ?", holding_id)
            .order_by(self._order)
            .fetch_all(self._db().conn)
        )
        return self._mapper.map_all(rows)

    def list_grouped(self) -> dict[int, list[Lot]]:
        """All of the owner's lots keyed by holding_id, in one query."""
        grouped: dict[int, list[Lot]] = defaultdict(list)
        for lot in self.list_all():
            grouped[lot.holding_id].append(lot)
        return grouped

    def delete_by_holding(self, holding_id: int) -> int:
        db = self._db()
        cursor = db.conn.execute(
            f"DELETE FROM lots WHERE holding_id = ? AND {self._owner_clause()}",
            (holding_id, self.owner_id),
        )
        self._commit(db)
        return cursor.rowcount
