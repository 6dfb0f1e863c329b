"""Lightweight query builder and owner-scoped base repository for SQLite."""

import dataclasses
import sqlite3
import typing
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar

from ..core.exceptions import RecordNotFoundError
from .database import Database, get_db

T = TypeVar("T")


class RowMapper(Generic[T]):
    """Maps sqlite3.Row objects to dataclass instances using type hints."""

    def __init__(self, model_class: type[T]):
        self._model_class = model_class
        self._fields = dataclasses.fields(model_class)  # type: ignore[arg-type]
        self._hints = typing.get_type_hints(model_class)
        self._converters = {
            f.name: self._get_converter(self._hints.get(f.name))
            for f in self._fields
        }

    def _get_converter(self, hint):
        if hint is None:
            return None

        origin = typing.get_origin(hint)
        args = typing.get_args(hint)

        # Optional[X] = Union[X, None]
        if origin is typing.Union:
            non_none = [a for a in args if a is not type(None)]
            if len(non_none) == 1:
                inner_conv = self._get_converter(non_none[0])
                if inner_conv is None:
                    return None
                return lambda v, c=inner_conv: c(v) if v is not None else None
            return None
        if origin is not None:
            return None  # list[...] and friends are never stored in a column

        if hint is Decimal:
            return lambda v: Decimal(str(v))
        if hint is datetime:
            return lambda v: datetime.fromisoformat(v) if isinstance(v, str) else v
        if hint is date:
            return lambda v: date.fromisoformat(v[:10]) if isinstance(v, str) else v
        if hint is bool:
            return lambda v: bool(int(v))
        if hint is int:
            return int
        if hint is str:
            return str
        if isinstance(hint, type) and issubclass(hint, Enum):
            return lambda v, cls=hint: cls(v)

        return None

    def map(self, row: sqlite3.Row) -> T:
        kwargs: dict = {}
        row_keys = row.keys()
        for f in self._fields:
            if f.name not in row_keys:
                # Field not in DB row, fall back to its default
                if f.default is not dataclasses.MISSING:
                    kwargs[f.name] = f.default
                elif f.default_factory is not dataclasses.MISSING:  # type: ignore[misc]
                    kwargs[f.name] = f.default_factory()  # type: ignore[misc]
                continue

            raw = row[f.name]
            if raw is None:
                if f.default is not dataclasses.MISSING:
                    kwargs[f.name] = f.default
                elif f.default_factory is not dataclasses.MISSING:  # type: ignore[misc]
                    kwargs[f.name] = f.default_factory()  # type: ignore[misc]
                else:
                    kwargs[f.name] = None
            else:
                conv = self._converters.get(f.name)
                kwargs[f.name] = conv(raw) if conv else raw

        return self._model_class(**kwargs)

    def map_all(self, rows) -> list[T]:
        return [self.map(r) for r in rows]

    @staticmethod
    def _serialize(val):
        """Convert Python value → SQLite-compatible value."""
        if val is None:
            return None
        if isinstance(val, Decimal):
            return str(val)
        if isinstance(val, (datetime, date)):
            return val.isoformat()
        if isinstance(val, Enum):
            return val.value
        if isinstance(val, bool):
            return int(val)
        return val  # int, str as-is

    def to_db_dict(self, obj: T, skip: frozenset = frozenset()) -> dict:
        """Return {field_name: serialized_value} for all non-skipped fields."""
        return {
            f.name: self._serialize(getattr(obj, f.name))
            for f in self._fields
            if f.name not in skip
        }


class QueryBuilder:
    """SELECT * with AND-ed conditions and an optional ORDER BY."""

    def __init__(self, table: str):
        self._table = table
        self._conditions: list[str] = []
        self._params: list = []
        self._order: Optional[str] = None

    def where(self, condition: str, *params) -> "QueryBuilder":
        self._conditions.append(condition)
        self._params.extend(params)
        return self

    def order_by(self, clause: str) -> "QueryBuilder":
        self._order = clause
        return self

    def build(self) -> tuple[str, list]:
        sql = f"SELECT * FROM {self._table}"
        if self._conditions:
            sql += " WHERE " + " AND ".join(self._conditions)
        if self._order:
            sql += f" ORDER BY {self._order}"
        return sql, list(self._params)

    def fetch_one(self, conn: sqlite3.Connection) -> Optional[sqlite3.Row]:
        sql, params = self.build()
        return conn.execute(sql, params).fetchone()

    def fetch_all(self, conn: sqlite3.Connection) -> list[sqlite3.Row]:
        sql, params = self.build()
        return conn.execute(sql, params).fetchall()


class BaseRepository(Generic[T]):
    """Generic CRUD restricted to the rows of one owner.

    Top-level tables carry an ``owner_id`` column. Child tables (``_parent``
    set) are owned through their parent row: a lot belongs to whoever owns its
    holding. Rows of other owners behave exactly like missing rows.
    """

    _table: str
    _mapper: RowMapper  # type: ignore[type-arg]
    _insert_skip: frozenset = frozenset({"id", "created_at"})
    _order: str = "id"
    _label: str = "Record"
    # (parent_table, foreign_key_column) for child tables
    _parent: Optional[tuple[str, str]] = None
    _not_found: type = RecordNotFoundError
    _parent_not_found: type = RecordNotFoundError

    def __init__(self, owner_id: Optional[str] = None):
        if owner_id is None:
            from ..core.config import get_config
            owner_id = get_config().owner
        self.owner_id = owner_id

    def _db(self) -> Database:
        return get_db()

    def _commit(self, db: Database) -> None:
        if not db._in_transaction:
            db.conn.commit()

    def _owner_clause(self) -> str:
        if self._parent is None:
            return f"{self._table}.owner_id = ?"
        parent_table, fk = self._parent
        return (
            f"EXISTS (SELECT 1 FROM {parent_table} WHERE {parent_table}.id = "
            f"{self._table}.{fk} AND {parent_table}.owner_id = ?)"
        )

    def _query(self) -> QueryBuilder:
        return QueryBuilder(self._table).where(self._owner_clause(), self.owner_id)

    def _parent_owned(self, parent_id: Optional[int]) -> bool:
        parent_table, _fk = self._parent
        row = self._db().conn.execute(
            f"SELECT 1 FROM {parent_table} WHERE id = ? AND owner_id = ?",
            (parent_id, self.owner_id),
        ).fetchone()
        return row is not None

    def get_by_id(self, id: int) -> Optional[T]:
        row = self._query().where(f"{self._table}.id = ?", id).fetch_one(self._db().conn)
        return self._mapper.map(row) if row else None

    def get(self, id: int) -> T:
        """Like get_by_id, but raises the repository's not-found error."""
        obj = self.get_by_id(id)
        if obj is None:
            raise self._not_found(f"{self._label} {id} not found")
        return obj

    def list_all(self) -> list[T]:
        rows = self._query().order_by(self._order).fetch_all(self._db().conn)
        return self._mapper.map_all(rows)

    def delete(self, id: int) -> bool:
        db = self._db()
        cursor = db.conn.execute(
            f"DELETE FROM {self._table} WHERE id = ? AND {self._owner_clause()}",
            (id, self.owner_id),
        )
        self._commit(db)
        return cursor.rowcount > 0

    def _insert(self, obj: T) -> T:
        """Generic INSERT: serializes all non-skipped fields and returns the new row."""
        if self._parent is None:
            obj = dataclasses.replace(obj, owner_id=self.owner_id)
        else:
            parent_id = getattr(obj, self._parent[1])
            if not self._parent_owned(parent_id):
                raise self._parent_not_found(f"{self._parent[0]} row {parent_id} not found")
        db = self._db()
        row_dict = self._mapper.to_db_dict(obj, skip=self._insert_skip)
        cols = ", ".join(row_dict)
        placeholders = ", ".join("?" * len(row_dict))
        cursor = db.conn.execute(
            f"INSERT INTO {self._table} ({cols}) VALUES ({placeholders})",
            list(row_dict.values()),
        )
        self._commit(db)
        return self.get_by_id(cursor.lastrowid)

    def save(self, obj: T) -> Optional[T]:
        """Generic UPDATE by obj.id: serializes all non-skipped fields.

        Returns None when the row does not exist for this owner.
        """
        skip = self._insert_skip | {"owner_id"}
        db = self._db()
        row_dict = self._mapper.to_db_dict(obj, skip=skip)
        set_parts = [f"{col} = ?" for col in row_dict]
        cursor = db.conn.execute(
            f"UPDATE {self._table} SET {', '.join(set_parts)} "
            f"WHERE id = ? AND {self._owner_clause()}",
            [*row_dict.values(), obj.id, self.owner_id],
        )
        self._commit(db)
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(obj.id)


class PricedRepository(BaseRepository[T]):
    """Base for records carrying current/previous price columns."""

    # Extra SQL condition a row must satisfy to accept a price write-back
    _price_guard: Optional[str] = None

    def update_prices(
        self,
        id: int,
        current_price: Decimal,
        previous_price: Decimal,
        when: Optional[datetime] = None,
    ) -> bool:
        """Write refreshed prices. Returns False if the row was not updated."""
        when = when or datetime.now()
        conditions = f"id = ? AND {self._owner_clause()}"
        if self._price_guard:
            conditions += f" AND {self._price_guard}"
        db = self._db()
        cursor = db.conn.execute(
            f"UPDATE {self._table} SET current_price = ?, previous_price = ?, last_updated = ? "
            f"WHERE {conditions}",
            (str(current_price), str(previous_price), when.isoformat(), id, self.owner_id),
        )
        self._commit(db)
        return cursor.rowcount > 0
