import os
import threading
import time

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

from backoffice.core.transaction import unit_of_work
from backoffice.models import AuditLog, Base, ChartOfAccount, ChartOfAccountType
from backoffice.services.audited import ActionKind, ActionMeta, run_audited
from backoffice.services.snapshot import (
    TABLE_REGISTRY,
    AuditedTable,
    read_current,
    resolve_table,
    snapshot_statement,
)
from backoffice.utils.errors import ValidationError

TEST_POSTGRES_URL = os.getenv("TEST_POSTGRES_URL")


def _compiled(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect())).upper()


def test_snapshot_statement_locks_the_row():
    sql = _compiled(snapshot_statement(AuditedTable.EXPENSES, "7"))
    assert "FOR UPDATE" in sql
    assert "FROM EXPENSES" in sql


def test_post_state_read_does_not_lock():
    sql = _compiled(snapshot_statement(AuditedTable.CHART_OF_ACCOUNTS, 7, for_update=False))
    assert "FOR UPDATE" not in sql


def test_every_audited_table_has_a_model():
    assert set(TABLE_REGISTRY) == set(AuditedTable)


def test_resolve_table_rejects_unknown_names():
    assert resolve_table("journal_entries") is AuditedTable.JOURNAL_ENTRIES
    with pytest.raises(ValidationError):
        resolve_table("income")


def test_read_current_serialises_row(make_account):
    account = make_account("Cash Drawer", ChartOfAccountType.ASSET)

    with unit_of_work() as db:
        state = read_current(db, AuditedTable.CHART_OF_ACCOUNTS, str(account.id))
        missing = read_current(db, AuditedTable.CHART_OF_ACCOUNTS, 99_999)

    assert state["id"] == account.id
    assert state["account_type"] == "asset"
    assert isinstance(state["created_at"], str)
    assert missing is None


def test_read_current_rejects_malformed_ids():
    with pytest.raises(ValidationError):
        with unit_of_work() as db:
            read_current(db, AuditedTable.EXPENSES, "not-a-number")


@pytest.mark.skipif(not TEST_POSTGRES_URL, reason="TEST_POSTGRES_URL not set")
def test_concurrent_updates_serialise_on_snapshot():
    engine = create_engine(TEST_POSTGRES_URL, future=True)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    try:
        with factory.begin() as session:
            account = ChartOfAccount(
                account_name="Shared", account_type=ChartOfAccountType.ASSET, depth=0, description="initial"
            )
            session.add(account)
        account_id = account.id

        first_has_snapshot = threading.Event()
        meta = ActionMeta("set_description", AuditedTable.CHART_OF_ACCOUNTS, ActionKind.UPDATE)

        def slow_update(db, actor_id, record_id):
            first_has_snapshot.set()
            time.sleep(0.5)
            db.get(ChartOfAccount, record_id).description = "first"
            db.flush()

        def fast_update(db, actor_id, record_id):
            db.get(ChartOfAccount, record_id).description = "second"
            db.flush()

        errors: list[BaseException] = []

        def _run(fn):
            try:
                run_audited(None, meta, fn, account_id, target_id=account_id, session_factory=factory)
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        first = threading.Thread(target=_run, args=(slow_update,))
        first.start()
        assert first_has_snapshot.wait(timeout=5)
        second = threading.Thread(target=_run, args=(fast_update,))
        second.start()
        first.join(timeout=10)
        second.join(timeout=10)
        assert not errors

        with factory() as session:
            audits = session.scalars(select(AuditLog).order_by(AuditLog.id)).all()
            final = session.get(ChartOfAccount, account_id)

        assert [a.old_data["description"] for a in audits] == ["initial", "first"]
        assert [a.new_data["description"] for a in audits] == ["first", "second"]
        assert final.description == "second"
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()
