from __future__ import annotations

"""Functional test bootstrap for interview provisioning.

Each test gets its own file-backed SQLite database with the SQLite migrations
applied, plus a StorageGateway bound to it. Seed helpers build programs,
phases and questionnaire trees through the gateway itself.
"""

import pathlib
from typing import Any, Dict, List, Optional, Sequence

import pytest

from interview_provisioning.db.base import get_engine, reset_engine
from interview_provisioning.db.gateway import StorageError, StorageGateway
from interview_provisioning.db.migrations_runner import apply_migrations

_ROOT = pathlib.Path(__file__).resolve().parents[2]
SQLITE_MIGRATIONS = _ROOT / "sqlite_migrations"

COMPANY_ID = "company-acme"
ACTOR = "user-admin"

AGGREGATE_COLLECTIONS = (
    "interviews",
    "interview_roles",
    "interview_responses",
    "interview_response_roles",
)


class FailingGateway(StorageGateway):
    """Gateway that raises a StorageError on selected operations.

    `fail_insert` names a collection whose writes fail once `skip` successful
    writes to it have happened. `fail_delete` names a collection whose deletes
    always fail. Every delete is recorded in `deletes`.
    """

    def __init__(
        self,
        engine,
        *,
        fail_insert: Optional[str] = None,
        skip: int = 0,
        fail_delete: Optional[str] = None,
    ) -> None:
        super().__init__(engine)
        self.fail_insert = fail_insert
        self.skip = skip
        self.fail_delete = fail_delete
        self.deletes: List[str] = []

    def _maybe_fail(self, collection: str, operation: str) -> None:
        if collection != self.fail_insert:
            return
        if self.skip > 0:
            self.skip -= 1
            return
        raise StorageError(collection, operation, "injected failure")

    def insert_one(self, collection, row):
        self._maybe_fail(collection, "insert_one")
        return super().insert_one(collection, row)

    def insert_many(self, collection, rows):
        self._maybe_fail(collection, "insert_many")
        return super().insert_many(collection, rows)

    def delete_where(self, collection, filters, *, company_id=None):
        self.deletes.append(collection)
        if collection == self.fail_delete:
            raise StorageError(collection, "delete", "injected failure")
        return super().delete_where(collection, filters, company_id=company_id)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'provisioning.db'}"


@pytest.fixture
def engine(db_url):
    reset_engine()
    eng = get_engine(db_url)
    apply_migrations(eng, SQLITE_MIGRATIONS)
    yield eng
    reset_engine()


@pytest.fixture
def gateway(engine) -> StorageGateway:
    return StorageGateway(engine)


def seed_questionnaire(
    gateway: StorageGateway,
    structure: Sequence[Sequence[Sequence[Any]]],
    *,
    questionnaire_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a questionnaire from nested sections -> steps -> questions.

    A question entry is either an explicit id (int) or a dict with optional
    `id` and `is_deleted`. Returns the questionnaire id and the ids of live
    questions in traversal order.
    """
    q_row: Dict[str, Any] = {"company_id": COMPANY_ID, "name": "Readiness"}
    if questionnaire_id is not None:
        q_row["id"] = questionnaire_id
    qn = gateway.insert_one("questionnaires", q_row)
    live: List[int] = []
    for steps in structure:
        section = gateway.insert_one("questionnaire_sections", {"questionnaire_id": qn["id"], "title": "s"})
        for questions in steps:
            step = gateway.insert_one("questionnaire_steps", {"questionnaire_section_id": section["id"], "title": "st"})
            for entry in questions:
                spec = entry if isinstance(entry, dict) else {"id": entry}
                row = {"questionnaire_step_id": step["id"], "question_text": "q"}
                row.update({k: v for k, v in spec.items() if v is not None})
                created = gateway.insert_one("questionnaire_questions", row)
                if not spec.get("is_deleted"):
                    live.append(int(created["id"]))
    return {"questionnaire_id": int(qn["id"]), "question_ids": live}


def seed_program(
    gateway: StorageGateway,
    *,
    program_id: Optional[int] = None,
    phase_id: Optional[int] = None,
    onsite_questionnaire_id: Optional[int] = None,
    presite_questionnaire_id: Optional[int] = None,
    sequence_number: int = 1,
) -> Dict[str, int]:
    prog_row: Dict[str, Any] = {
        "company_id": COMPANY_ID,
        "name": "Asset management uplift",
        "onsite_questionnaire_id": onsite_questionnaire_id,
        "presite_questionnaire_id": presite_questionnaire_id,
    }
    if program_id is not None:
        prog_row["id"] = program_id
    program = gateway.insert_one("programs", prog_row)
    phase_row: Dict[str, Any] = {
        "program_id": program["id"],
        "company_id": COMPANY_ID,
        "sequence_number": sequence_number,
    }
    if phase_id is not None:
        phase_row["id"] = phase_id
    phase = gateway.insert_one("program_phases", phase_row)
    return {"program_id": int(program["id"]), "phase_id": int(phase["id"])}


@pytest.fixture
def onsite_program(gateway) -> Dict[str, Any]:
    """Program with a three-question onsite questionnaire and no presite one."""
    qn = seed_questionnaire(gateway, [[[None, None]], [[None]]])
    ids = seed_program(gateway, onsite_questionnaire_id=qn["questionnaire_id"], sequence_number=2)
    return {**ids, **qn}


def count_rows(gateway: StorageGateway, collection: str, **filters: Any) -> int:
    return len(gateway.find_many(collection, filters))
