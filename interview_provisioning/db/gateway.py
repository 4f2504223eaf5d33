"""Row-level storage gateway over named collections.

Route handlers and provisioning logic talk to storage only through
`StorageGateway`; no inline SQL lives outside this module and the migrations.
Tables are reflected lazily from the migrated schema.

Every write to a tenant-scoped collection must carry `company_id`. Batched
inserts run inside one database transaction, so a batch is either fully
persisted or not at all.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from sqlalchemy import MetaData, Table, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from interview_provisioning.db.base import get_engine

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

TENANT_SCOPED_COLLECTIONS = frozenset(
    {
        "assessments",
        "interviews",
        "interview_roles",
        "interview_responses",
        "interview_response_roles",
    }
)

COLLECTIONS = TENANT_SCOPED_COLLECTIONS | frozenset(
    {
        "programs",
        "program_phases",
        "questionnaires",
        "questionnaire_sections",
        "questionnaire_steps",
        "questionnaire_questions",
    }
)


class StorageError(Exception):
    """A storage operation failed; the driver error is chained as __cause__."""

    code = "STORAGE_ERROR"

    def __init__(self, collection: str, operation: str, detail: str = "") -> None:
        self.collection = collection
        self.operation = operation
        self.detail = detail
        msg = f"{operation} on {collection} failed"
        super().__init__(f"{msg}: {detail}" if detail else msg)


class RecordNotFound(StorageError):
    code = "RECORD_NOT_FOUND"

    def __init__(self, collection: str, filters: Mapping[str, Any]) -> None:
        self.filters = dict(filters)
        super().__init__(collection, "find_one", f"no row matches {self.filters}")


class TenantScopeError(StorageError):
    code = "TENANT_SCOPE_MISSING"

    def __init__(self, collection: str, operation: str) -> None:
        super().__init__(collection, operation, "company_id is required on tenant-scoped writes")


class StorageGateway:
    """Insert/select/delete against named collections backed by SQLAlchemy."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()
        self._metadata = MetaData()
        self._tables: Dict[str, Table] = {}
        self._reflect_lock = threading.Lock()
        # each thread or task sees only the transaction it opened
        self._bound_var: ContextVar[Optional[Connection]] = ContextVar(f"storage_gateway_{id(self)}", default=None)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def in_transaction(self) -> bool:
        return self._bound is not None

    @property
    def _bound(self) -> Optional[Connection]:
        return self._bound_var.get()

    # -- plumbing ---------------------------------------------------------

    @contextmanager
    def _guard(self, collection: str, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(
                "storage.%s.failed collection=%s error=%s",
                operation,
                collection,
                exc.__class__.__name__,
            )
            raise StorageError(collection, operation, exc.__class__.__name__) from exc

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        if self._bound is not None:
            yield self._bound
            return
        with self._engine.begin() as conn:
            yield conn

    def _table(self, collection: str) -> Table:
        if collection not in COLLECTIONS:
            raise StorageError(collection, "resolve", "unknown collection")
        table = self._tables.get(collection)
        if table is None:
            with self._reflect_lock:
                table = self._tables.get(collection)
                if table is None:
                    table = Table(collection, self._metadata, autoload_with=self._bound or self._engine)
                    self._tables[collection] = table
        return table

    @staticmethod
    def _where(table: Table, collection: str, filters: Mapping[str, Any]) -> list:
        clauses = []
        for key, value in filters.items():
            if key not in table.c:
                raise StorageError(collection, "filter", f"unknown column {key}")
            col = table.c[key]
            clauses.append(col.is_(None) if value is None else col == value)
        return clauses

    @staticmethod
    def _require_tenant(collection: str, operation: str, rows: Sequence[Mapping[str, Any]]) -> None:
        if collection not in TENANT_SCOPED_COLLECTIONS:
            return
        for row in rows:
            if not row.get("company_id"):
                raise TenantScopeError(collection, operation)

    @staticmethod
    def _insert(conn: Connection, table: Table, row: Mapping[str, Any]) -> Row:
        result = conn.execute(table.insert().values(**row))
        pk = result.inserted_primary_key
        created = dict(row)
        if pk is not None and pk[0] is not None:
            created["id"] = pk[0]
        return created

    # -- reads ------------------------------------------------------------

    def find_one_or_none(self, collection: str, filters: Mapping[str, Any]) -> Optional[Row]:
        with self._guard(collection, "find_one"):
            table = self._table(collection)
            stmt = select(table).where(*self._where(table, collection, filters)).limit(1)
            with self._connection() as conn:
                row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def find_one(self, collection: str, filters: Mapping[str, Any]) -> Row:
        row = self.find_one_or_none(collection, filters)
        if row is None:
            raise RecordNotFound(collection, filters)
        return row

    def find_many(
        self,
        collection: str,
        filters: Mapping[str, Any],
        order_by: str = "id",
    ) -> List[Row]:
        with self._guard(collection, "find_many"):
            table = self._table(collection)
            stmt = select(table).where(*self._where(table, collection, filters)).order_by(table.c[order_by])
            with self._connection() as conn:
                rows = conn.execute(stmt).mappings().all()
        return [dict(r) for r in rows]

    # -- writes -----------------------------------------------------------

    def insert_one(self, collection: str, row: Mapping[str, Any]) -> Row:
        self._require_tenant(collection, "insert_one", [row])
        with self._guard(collection, "insert_one"):
            table = self._table(collection)
            with self._connection() as conn:
                created = self._insert(conn, table, row)
        logger.debug("storage.insert_one collection=%s id=%s", collection, created.get("id"))
        return created

    def insert_many(self, collection: str, rows: Sequence[Mapping[str, Any]]) -> List[Row]:
        """Insert all rows in one transaction and return them with their ids."""
        if not rows:
            return []
        self._require_tenant(collection, "insert_many", rows)
        with self._guard(collection, "insert_many"):
            table = self._table(collection)
            with self._connection() as conn:
                created = [self._insert(conn, table, row) for row in rows]
        logger.debug("storage.insert_many collection=%s count=%d", collection, len(created))
        return created

    def delete_one(self, collection: str, id: Any, *, company_id: str | None = None) -> None:
        self.delete_where(collection, {"id": id}, company_id=company_id)

    def delete_where(
        self,
        collection: str,
        filters: Mapping[str, Any],
        *,
        company_id: str | None = None,
    ) -> int:
        if collection in TENANT_SCOPED_COLLECTIONS and not company_id:
            raise TenantScopeError(collection, "delete")
        scoped = dict(filters)
        if company_id:
            scoped["company_id"] = company_id
        with self._guard(collection, "delete"):
            table = self._table(collection)
            stmt = table.delete().where(*self._where(table, collection, scoped))
            with self._connection() as conn:
                count = conn.execute(stmt).rowcount or 0
        logger.debug("storage.delete collection=%s filters=%s count=%d", collection, scoped, count)
        return count

    def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        try:
            with self._engine.connect() as conn:
                conn.execute(select(1))
            return True
        except SQLAlchemyError:
            logger.error("storage.ping.failed", exc_info=True)
            return False

    # -- transactions -----------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["StorageGateway"]:
        """Bind every call made inside the block to one transaction.

        The binding is local to the calling thread or task; concurrent callers
        sharing this gateway keep autocommitting their own writes. Nested use
        joins the outer transaction. Any exception rolls the whole block back
        and propagates.
        """
        if self._bound is not None:
            yield self
            return
        with self._guard("*", "transaction"):
            with self._engine.begin() as conn:
                token = self._bound_var.set(conn)
                try:
                    yield self
                finally:
                    self._bound_var.reset(token)


__all__ = [
    "COLLECTIONS",
    "TENANT_SCOPED_COLLECTIONS",
    "RecordNotFound",
    "StorageError",
    "StorageGateway",
    "TenantScopeError",
]
