"""Integration tests verifying atomic database operations."""

import sqlite3
import threading
from datetime import date
from decimal import Decimal

import pytest

from folio_tracker.core.models import Holding, Lot, RsuGrant, VestingEntry
from folio_tracker.data.repositories.holdings_repo import HoldingsRepository
from folio_tracker.data.repositories.lots_repo import LotsRepository
from folio_tracker.data.repositories.rsu_repo import RsuRepository, VestingRepository


def _lot(qty="1"):
    return Lot(price=Decimal("10"), quantity=Decimal(qty), purchase_date=date(2024, 1, 1), currency="USD")


def _holding(ticker="AAPL", lots=None):
    return Holding(ticker=ticker, name=ticker, trading_currency="USD", lots=lots or [])


class TestTransactionContextManager:
    def test_rollback_on_error(self, isolated_db):
        """db.transaction() rolls back all writes when an exception is raised."""
        repo = HoldingsRepository()

        with pytest.raises(RuntimeError):
            with isolated_db.transaction():
                repo.create(_holding())
                raise RuntimeError("Forced rollback")

        assert repo.list_all() == []

    def test_commit_on_success(self, isolated_db):
        repo = HoldingsRepository()
        with isolated_db.transaction():
            repo.create(_holding("AAPL"))
            repo.create(_holding("MSFT"))
        assert len(repo.list_all()) == 2

    def test_nested_transaction_joins_outer(self, isolated_db):
        """create() opens its own transaction; inside an outer one it must not commit early."""
        repo = HoldingsRepository()
        with pytest.raises(RuntimeError):
            with isolated_db.transaction():
                repo.create(_holding("AAPL", [_lot()]))
                assert isolated_db._in_transaction is True
                raise RuntimeError("outer failure")

        assert repo.list_all() == []
        assert LotsRepository().list_all() == []

    def test_in_transaction_flag_resets_after_error(self, isolated_db):
        with pytest.raises(RuntimeError):
            with isolated_db.transaction():
                raise RuntimeError("error")
        assert isolated_db._in_transaction is False

    def test_each_thread_has_its_own_connection(self, isolated_db):
        seen = {}

        def work():
            seen["conn"] = isolated_db.conn
            seen["in_transaction"] = isolated_db._in_transaction
            HoldingsRepository().create(_holding("MSFT"))

        with isolated_db.transaction():
            worker = threading.Thread(target=work)
            worker.start()
            worker.join(timeout=5)
            assert isolated_db._in_transaction is True

        assert seen["conn"] is not isolated_db.conn
        assert seen["in_transaction"] is False
        assert [h.ticker for h in HoldingsRepository().list_all()] == ["MSFT"]

    def test_close_closes_every_thread_connection(self, isolated_db):
        seen = {}
        worker = threading.Thread(target=lambda: seen.setdefault("conn", isolated_db.conn))
        worker.start()
        worker.join(timeout=5)

        isolated_db.close()

        with pytest.raises(sqlite3.ProgrammingError):
            seen["conn"].execute("SELECT 1")
        assert HoldingsRepository().list_all() == []


class TestCreateAtomicity:
    def test_holding_rolled_back_when_lot_insert_fails(self, isolated_db, monkeypatch):
        original = LotsRepository.create
        calls = []

        def flaky(self, lot):
            calls.append(lot)
            if len(calls) == 2:
                raise RuntimeError("disk full")
            return original(self, lot)

        monkeypatch.setattr(LotsRepository, "create", flaky)
        repo = HoldingsRepository()
        with pytest.raises(RuntimeError):
            repo.create(_holding(lots=[_lot(), _lot("2")]))

        assert repo.list_all() == []
        assert LotsRepository().list_all() == []

    def test_grant_rolled_back_when_schedule_fails(self, isolated_db, monkeypatch):
        def broken(self, entry):
            raise RuntimeError("constraint")

        monkeypatch.setattr(VestingRepository, "create", broken)
        repo = RsuRepository()
        grant = RsuGrant(
            ticker="MSFT", company_name="Microsoft", grant_date=date(2023, 1, 1),
            total_granted=Decimal("10"),
            vesting_schedule=[VestingEntry(vest_date=date(2024, 1, 1), quantity=Decimal("10"))],
        )
        with pytest.raises(RuntimeError):
            repo.create(grant)

        assert repo.list_all() == []

    def test_replace_lots_is_all_or_nothing(self, isolated_db, monkeypatch):
        repo = HoldingsRepository()
        h = repo.create(_holding(lots=[_lot("1"), _lot("2")]))

        def broken(self, lot):
            raise RuntimeError("boom")

        monkeypatch.setattr(LotsRepository, "create", broken)
        with pytest.raises(RuntimeError):
            repo.replace_lots(h.id, [_lot("5")])

        assert [lot.quantity for lot in repo.get_by_id(h.id).lots] == [Decimal("1"), Decimal("2")]
