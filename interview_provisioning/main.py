"""FastAPI application factory for the provisioning service."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from interview_provisioning.config import load_config
from interview_provisioning.db.base import get_engine
from interview_provisioning.db.gateway import StorageError, StorageGateway
from interview_provisioning.db.migrations_runner import apply_migrations
from interview_provisioning.http.problem import (
    handle_provisioning_error,
    handle_request_validation_error,
    handle_storage_error,
    handle_unexpected_error,
)
from interview_provisioning.logging_setup import configure_logging
from interview_provisioning.logic.errors import ProvisioningError
from interview_provisioning.routes import api_router

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).resolve().parents[1]


def _migrations_dir(dialect: str) -> Path:
    return _ROOT / ("sqlite_migrations" if dialect == "sqlite" else "migrations")


def create_app() -> FastAPI:
    configure_logging()
    cfg = load_config()
    engine = get_engine(cfg.database.dsn)

    if os.environ.get("AUTO_APPLY_MIGRATIONS", "1").strip().lower() in {"1", "true", "yes", "on"}:
        applied = apply_migrations(engine, _migrations_dir(engine.dialect.name))
        logger.info("startup.migrations applied=%d", len(applied))

    app = FastAPI(title="Interview Provisioning Service", version="0.1.0")
    app.state.config = cfg
    app.state.gateway = StorageGateway(engine)

    app.add_exception_handler(ProvisioningError, handle_provisioning_error)
    app.add_exception_handler(StorageError, handle_storage_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(api_router)
    logger.info("startup.ready atomic_mode=%s", cfg.provisioning.atomic_mode)
    return app


__all__ = ["create_app"]
