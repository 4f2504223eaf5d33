"""Configuration utilities for the provisioning service.

Rules:
- Primary source: `provisioning_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("provisioning_config.json")
logger = logging.getLogger(__name__)

ATOMIC_MODES = ("saga", "transaction")


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class ProvisioningConfig(BaseModel):
    access_code_max_attempts: int = Field(default=5, gt=0)
    atomic_mode: str = "saga"
    deadline_seconds: Optional[float] = Field(default=None, gt=0)

    @field_validator("atomic_mode")
    @classmethod
    def mode_must_be_allowed(cls, v: str) -> str:
        if v not in ATOMIC_MODES:
            raise ValueError(f"provisioning.atomic_mode must be one of {list(ATOMIC_MODES)}")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    provisioning: ProvisioningConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) provisioning_config.json at project root
    4) Defaults suitable for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    max_attempts_text = (
        _env("ACCESS_CODE_MAX_ATTEMPTS")
        or _read_config_file("provisioning.access_code_max_attempts")
        or _base("provisioning.access_code_max_attempts", "5")
    )
    atomic_mode = (
        _env("PROVISIONING_ATOMIC_MODE")
        or _read_config_file("provisioning.atomic_mode")
        or _base("provisioning.atomic_mode", "saga")
    )
    deadline_text = (
        _env("PROVISIONING_DEADLINE_SECONDS")
        or _read_config_file("provisioning.deadline_seconds")
        or _base("provisioning.deadline_seconds")
    )

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            provisioning=ProvisioningConfig(
                access_code_max_attempts=int(str(max_attempts_text).strip()),
                atomic_mode=str(atomic_mode).strip().lower(),
                deadline_seconds=float(deadline_text) if deadline_text else None,
            ),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "ProvisioningConfig",
    "ATOMIC_MODES",
    "load_config",
]
