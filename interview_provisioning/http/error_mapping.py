"""Central error mapping for provisioning and storage errors.

Single source of truth for mapping error codes to problem+json titles and
HTTP statuses. Error classes carry only a code.
"""

from __future__ import annotations

ERROR_MAP = {
    "NO_ROLES_SELECTED": {"title": "No roles selected", "status": 422},
    "NO_CONTACTS_FOR_PUBLIC_INTERVIEW": {"title": "No contacts selected", "status": 422},
    "MISSING_QUESTIONNAIRE_CONFIGURATION": {"title": "Questionnaire not configured", "status": 422},
    "EMPTY_QUESTIONNAIRE": {"title": "Questionnaire has no questions", "status": 422},
    "ACCESS_CODE_EXHAUSTED": {"title": "Access code unavailable", "status": 503},
    "PROVISIONING_TIMEOUT": {"title": "Provisioning timed out", "status": 504},
    "RECORD_NOT_FOUND": {"title": "Not Found", "status": 404},
    "STORAGE_ERROR": {"title": "Storage failure", "status": 502},
    "TENANT_SCOPE_MISSING": {"title": "Tenant scope missing", "status": 500},
}

DEFAULT_ENTRY = {"title": "Internal Server Error", "status": 500}


def lookup(code: str) -> dict:
    return ERROR_MAP.get(code, DEFAULT_ENTRY)


__all__ = ["ERROR_MAP", "DEFAULT_ENTRY", "lookup"]
