"""Problem+JSON payloads and exception handlers.

Maps provisioning and storage errors to RFC 7807 application/problem+json
responses. A BatchAborted problem takes status and title from its cause and
reports what was created before the batch stopped.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from interview_provisioning.db.gateway import StorageError
from interview_provisioning.http.error_mapping import lookup
from interview_provisioning.logic.errors import BatchAborted, ProvisioningError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_from_error(exc: Exception) -> Dict[str, Any]:
    code = str(getattr(exc, "code", "INTERNAL_ERROR"))
    status_source = exc.cause if isinstance(exc, BatchAborted) else exc
    entry = lookup(str(getattr(status_source, "code", "INTERNAL_ERROR")))
    problem: Dict[str, Any] = {
        "title": entry["title"],
        "status": entry["status"],
        "detail": str(exc),
        "code": code,
    }
    if isinstance(exc, ProvisioningError):
        problem.update(exc.to_problem_fields())
    return problem


def _respond(problem: Dict[str, Any]) -> JSONResponse:
    logger.info("error_handler.handle code=%s status=%s", problem.get("code"), problem.get("status"))
    return JSONResponse(problem, status_code=int(problem["status"]), media_type=PROBLEM_MEDIA_TYPE)


async def handle_provisioning_error(request: Request, exc: ProvisioningError) -> JSONResponse:
    return _respond(problem_from_error(exc))


async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    return _respond(problem_from_error(exc))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": "Request validation failed",
        "code": "REQUEST_INVALID",
        "errors": [
            {"loc": list(e.get("loc", ())), "msg": str(e.get("msg", "")), "type": str(e.get("type", ""))}
            for e in exc.errors()
        ],
    }
    return _respond(problem)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error", exc_info=exc)
    return JSONResponse(
        {"title": "Internal Server Error", "status": 500},
        status_code=500,
        media_type=PROBLEM_MEDIA_TYPE,
    )


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_from_error",
    "handle_provisioning_error",
    "handle_storage_error",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
