"""Repository for RSU grants and their vesting schedules."""

import dataclasses
from typing import Optional

from ...core.exceptions import GrantNotFoundError
from ...core.models import RsuGrant, VestingEntry
from ...core.validation import validate_rsu_grant, validate_vesting_entry
from ..query import BaseRepository, PricedRepository, RowMapper


class VestingRepository(BaseRepository[VestingEntry]):
    _table = "vesting_entries"
    _mapper = RowMapper(VestingEntry)
    _order = "vest_date ASC, id ASC"
    _label = "Vesting entry"
    _parent = ("rsu_grants", "grant_id")
    _parent_not_found = GrantNotFoundError

    def create(self, entry: VestingEntry) -> VestingEntry:
        validate_vesting_entry(entry)
        return self._insert(entry)

    def list_by_grant(self, grant_id: int) -> list[VestingEntry]:
        rows = (
            self._query()
            .where("grant_id = ?", grant_id)
            .order_by(self._order)
            .fetch_all(self._db().conn)
        )
        return self._mapper.map_all(rows)

    def delete_by_grant(self, grant_id: int) -> int:
        db = self._db()
        cursor = db.conn.execute(
            f"DELETE FROM vesting_entries WHERE grant_id = ? AND {self._owner_clause()}",
            (grant_id, self.owner_id),
        )
        self._commit(db)
        return cursor.rowcount


class RsuRepository(PricedRepository[RsuGrant]):
    _table = "rsu_grants"
    _mapper = RowMapper(RsuGrant)
    _insert_skip = frozenset({"id", "created_at", "vesting_schedule"})
    _order = "grant_date ASC, id ASC"
    _label = "RSU grant"
    _not_found = GrantNotFoundError

    def __init__(self, owner_id: Optional[str] = None):
        super().__init__(owner_id)
        self.vesting = VestingRepository(self.owner_id)

    @staticmethod
    def _normalize(grant: RsuGrant) -> RsuGrant:
        return dataclasses.replace(
            grant,
            ticker=grant.ticker.strip().upper(),
            company_name=grant.company_name.strip(),
            currency=grant.currency.strip().upper(),
        )

    def _write_schedule(self, grant_id: int, entries: list[VestingEntry]) -> None:
        for entry in sorted(entries, key=lambda e: e.vest_date):
            self.vesting.create(dataclasses.replace(entry, grant_id=grant_id, id=None))

    def create(self, grant: RsuGrant) -> RsuGrant:
        grant = self._normalize(grant)
        validate_rsu_grant(grant)
        with self._db().transaction():
            created = self._insert(grant)
            self._write_schedule(created.id, grant.vesting_schedule)
        return self.get(created.id)

    def get_by_id(self, id: int) -> Optional[RsuGrant]:
        grant = super().get_by_id(id)
        if grant is not None:
            grant.vesting_schedule = self.vesting.list_by_grant(grant.id)
        return grant

    def list_all(self) -> list[RsuGrant]:
        grants = super().list_all()
        for g in grants:
            g.vesting_schedule = self.vesting.list_by_grant(g.id)
        return grants

    def update(self, grant: RsuGrant) -> RsuGrant:
        """Update the grant and replace its vesting schedule wholesale."""
        grant = self._normalize(grant)
        validate_rsu_grant(grant)
        with self._db().transaction():
            if self.save(grant) is None:
                raise GrantNotFoundError(f"RSU grant {grant.id} not found")
            self.vesting.delete_by_grant(grant.id)
            self._write_schedule(grant.id, grant.vesting_schedule)
        return self.get(grant.id)

    def set_vested(self, entry_id: int, vested: bool = True) -> VestingEntry:
        entry = self.vesting.get(entry_id)
        entry.is_vested = vested
        return self.vesting.save(entry)
