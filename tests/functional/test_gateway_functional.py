"""Functional tests for the SQLAlchemy storage gateway."""

from __future__ import annotations

import threading

import pytest

from conftest import ACTOR, COMPANY_ID, count_rows
from interview_provisioning.db.gateway import RecordNotFound, StorageError, TenantScopeError
from interview_provisioning.db.migrations_runner import apply_migrations
from conftest import SQLITE_MIGRATIONS


def _interview(**overrides):
    row = {
        "name": "n",
        "program_id": 1,
        "phase_id": 1,
        "questionnaire_id": 1,
        "company_id": COMPANY_ID,
        "created_by": ACTOR,
    }
    row.update(overrides)
    return row


def test_insert_one_assigns_id_and_find_one_reads_it_back(gateway):
    created = gateway.insert_one("interviews", _interview(name="first"))

    assert isinstance(created["id"], int)
    row = gateway.find_one("interviews", {"id": created["id"]})
    assert row["name"] == "first"
    assert row["status"] == "pending"
    assert row["enabled"] is True


def test_find_one_raises_not_found_and_find_one_or_none_returns_none(gateway):
    with pytest.raises(RecordNotFound) as err:
        gateway.find_one("programs", {"id": 12345})
    assert err.value.filters == {"id": 12345}
    assert gateway.find_one_or_none("programs", {"id": 12345}) is None


def test_null_filter_matches_null_column(gateway):
    gateway.insert_one("interviews", _interview(contact_id=None))
    gateway.insert_one("interviews", _interview(contact_id=5))

    assert count_rows(gateway, "interviews", contact_id=None) == 1


def test_tenant_scoped_writes_require_company(gateway):
    with pytest.raises(TenantScopeError):
        gateway.insert_one("interviews", _interview(company_id=None))
    with pytest.raises(TenantScopeError):
        gateway.insert_many("interview_roles", [{"interview_id": 1, "role_id": 1, "created_by": ACTOR}])
    with pytest.raises(TenantScopeError):
        gateway.delete_one("interviews", 1)
    assert count_rows(gateway, "interviews") == 0


def test_insert_many_is_all_or_none(gateway):
    interview = gateway.insert_one("interviews", _interview())
    rows = [
        {"interview_id": interview["id"], "role_id": 1, "company_id": COMPANY_ID, "created_by": ACTOR},
        {"interview_id": interview["id"], "role_id": None, "company_id": COMPANY_ID, "created_by": ACTOR},
    ]

    with pytest.raises(StorageError) as err:
        gateway.insert_many("interview_roles", rows)

    assert err.value.operation == "insert_many"
    assert err.value.__cause__ is not None
    assert count_rows(gateway, "interview_roles") == 0


def test_delete_is_scoped_to_company(gateway):
    created = gateway.insert_one("interviews", _interview())

    gateway.delete_one("interviews", created["id"], company_id="someone-else")
    assert count_rows(gateway, "interviews") == 1

    gateway.delete_one("interviews", created["id"], company_id=COMPANY_ID)
    assert count_rows(gateway, "interviews") == 0


def test_unknown_collection_and_column_are_rejected(gateway):
    with pytest.raises(StorageError):
        gateway.find_many("users", {})
    with pytest.raises(StorageError):
        gateway.find_many("interviews", {"no_such_column": 1})


def test_transaction_rolls_back_every_write(gateway):
    with pytest.raises(RuntimeError):
        with gateway.transaction():
            gateway.insert_one("interviews", _interview())
            assert gateway.in_transaction
            raise RuntimeError("boom")

    assert not gateway.in_transaction
    assert count_rows(gateway, "interviews") == 0


def test_transaction_binding_is_local_to_the_opening_thread(gateway):
    assert count_rows(gateway, "interviews") == 0
    opened = threading.Event()
    other_done = threading.Event()
    errors = []
    seen_in_transaction = []

    def rolled_back_writer():
        try:
            with gateway.transaction():
                opened.set()
                assert other_done.wait(5)
                gateway.insert_one("interviews", _interview(name="A"))
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        except Exception as exc:
            errors.append(exc)

    def plain_writer():
        try:
            assert opened.wait(5)
            seen_in_transaction.append(gateway.in_transaction)
            gateway.insert_one("interviews", _interview(name="B"))
        except Exception as exc:
            errors.append(exc)
        finally:
            other_done.set()

    threads = [threading.Thread(target=rolled_back_writer), threading.Thread(target=plain_writer)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    assert errors == []
    assert seen_in_transaction == [False]
    assert [r["name"] for r in gateway.find_many("interviews", {})] == ["B"]


def test_migrations_are_applied_once(engine):
    assert apply_migrations(engine, SQLITE_MIGRATIONS) == []


def test_ping_reports_database_reachable(gateway):
    assert gateway.ping() is True
