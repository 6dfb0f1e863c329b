"""Shared pytest fixtures for folio tracker tests."""

import pytest

import folio_tracker.core.config as configmod
import folio_tracker.data.database as dbmod
from folio_tracker.core.fx import DEFAULT_RATES, RateCache, set_rate_cache
from folio_tracker.data.database import get_db, set_db_path


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Each test gets a fresh temp DB. Resets the global singleton after."""
    db_path = tmp_path / "test.db"
    set_db_path(str(db_path))
    db = get_db()
    yield db
    db.close()
    dbmod._db = None


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """config.json lives in the temp dir; defaults apply until a test saves one."""
    monkeypatch.setattr(configmod, "_config_path", lambda: tmp_path / "config.json")
    configmod.reset_config()
    yield
    configmod.reset_config()


@pytest.fixture(autouse=True)
def offline_rates():
    """The global rate cache answers with the default table, never the network."""
    calls = []

    def fetch(base):
        calls.append(base)
        return dict(DEFAULT_RATES)

    cache = RateCache(fetch)
    cache.calls = calls
    set_rate_cache(cache)
    yield cache
    set_rate_cache(None)
