"""SQLite database connection and schema management."""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS holdings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    ticker TEXT NOT NULL,
    name TEXT NOT NULL,
    exchange TEXT NOT NULL,
    trading_currency TEXT NOT NULL,
    broker TEXT DEFAULT '',
    current_price TEXT NOT NULL DEFAULT '0',
    previous_price TEXT NOT NULL DEFAULT '0',
    last_updated TIMESTAMP DEFAULT NULL,
    price_overridden INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS lots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    holding_id INTEGER NOT NULL,
    price TEXT NOT NULL,
    quantity TEXT NOT NULL,
    purchase_date DATE NOT NULL,
    currency TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (holding_id) REFERENCES holdings(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS rsu_grants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    ticker TEXT NOT NULL,
    company_name TEXT NOT NULL,
    grant_date DATE NOT NULL,
    total_granted TEXT NOT NULL,
    currency TEXT NOT NULL DEFAULT 'USD',
    current_price TEXT NOT NULL DEFAULT '0',
    previous_price TEXT NOT NULL DEFAULT '0',
    last_updated TIMESTAMP DEFAULT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS vesting_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    grant_id INTEGER NOT NULL,
    vest_date DATE NOT NULL,
    quantity TEXT NOT NULL,
    is_vested INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (grant_id) REFERENCES rsu_grants(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS espp_purchases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    ticker TEXT NOT NULL,
    company_name TEXT NOT NULL,
    grant_date DATE NOT NULL,
    purchase_price TEXT NOT NULL,
    market_price TEXT NOT NULL,
    quantity TEXT NOT NULL,
    discount TEXT NOT NULL,
    broker TEXT DEFAULT '',
    cycle_start_date DATE NOT NULL,
    cycle_end_date DATE NOT NULL,
    currency TEXT NOT NULL DEFAULT 'USD',
    current_price TEXT NOT NULL DEFAULT '0',
    previous_price TEXT NOT NULL DEFAULT '0',
    last_updated TIMESTAMP DEFAULT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    CHECK (cycle_end_date > cycle_start_date)
);

CREATE INDEX IF NOT EXISTS idx_holdings_owner ON holdings(owner_id);
CREATE INDEX IF NOT EXISTS idx_lots_holding ON lots(holding_id, purchase_date);
CREATE INDEX IF NOT EXISTS idx_rsu_grants_owner ON rsu_grants(owner_id);
CREATE INDEX IF NOT EXISTS idx_vesting_entries_grant ON vesting_entries(grant_id, vest_date);
CREATE INDEX IF NOT EXISTS idx_espp_purchases_owner ON espp_purchases(owner_id);
"""

# Incremental column additions for existing databases.
# Each entry is (table, column, DDL fragment). An ALTER TABLE for a column
# that already exists is skipped.
_COLUMN_MIGRATIONS = [
    ("holdings", "price_overridden",
     "ALTER TABLE holdings ADD COLUMN price_overridden INTEGER NOT NULL DEFAULT 0"),
]


def _apply_column_migrations(conn: sqlite3.Connection):
    """Add new columns to existing tables without touching data."""
    for _table, _col, sql in _COLUMN_MIGRATIONS:
        try:
            conn.execute(sql)
            conn.commit()
        except sqlite3.OperationalError:
            pass  # Column already exists


class Database:
    """SQLite database with one connection per thread.

    A sqlite3 connection must stay on the thread that opened it, so each
    thread lazily opens its own. Transaction state is per thread too.
    """

    def __init__(self, db_path: str = "folio.db"):
        self.db_path = db_path
        self._local = threading.local()
        self._lock = threading.Lock()
        self._connections: list[sqlite3.Connection] = []

    @property
    def conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            # Closed from whichever thread calls close(), used only by its owner
            conn = sqlite3.connect(self.db_path, timeout=10, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            self._local.conn = conn
            with self._lock:
                self._connections.append(conn)
        return conn

    @property
    def _in_transaction(self) -> bool:
        return getattr(self._local, "in_transaction", False)

    @_in_transaction.setter
    def _in_transaction(self, value: bool) -> None:
        self._local.in_transaction = value

    def initialize(self):
        """Create tables if they don't exist, then apply incremental column migrations."""
        self.conn.executescript(SCHEMA)
        self.conn.commit()
        _apply_column_migrations(self.conn)

    @contextmanager
    def transaction(self):
        """Wrap multiple operations in a single atomic commit.

        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield
            return
        self._in_transaction = True
        try:
            yield
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            self._in_transaction = False

    def close(self):
        """Close the connections of every thread."""
        with self._lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()


# Global database instance, configured at app startup
_db: Database | None = None


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (where pyproject.toml lives)."""
    current = Path(__file__).resolve().parent
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return Path.cwd()


def get_db() -> Database:
    global _db
    if _db is None:
        default_path = _find_project_root() / "folio.db"
        default_path.parent.mkdir(parents=True, exist_ok=True)
        _db = Database(str(default_path))
        _db.initialize()
    return _db


def set_db_path(path: str):
    global _db
    if _db:
        _db.close()
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    _db = Database(str(p))
    _db.initialize()
