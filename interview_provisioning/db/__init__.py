"""Database bootstrap utilities for the provisioning service.

Exposes engine construction, the SQL migrations runner and the storage
gateway that the provisioning logic consumes.
"""

from interview_provisioning.db.base import get_engine, reset_engine
from interview_provisioning.db.gateway import (
    RecordNotFound,
    StorageError,
    StorageGateway,
    TenantScopeError,
)
from interview_provisioning.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "reset_engine",
    "apply_migrations",
    "StorageGateway",
    "StorageError",
    "RecordNotFound",
    "TenantScopeError",
]
