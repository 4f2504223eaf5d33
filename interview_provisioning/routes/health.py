"""Liveness endpoint with a database probe."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", summary="Service and database health", include_in_schema=False)
def health(http_request: Request) -> dict:
    db_ok = http_request.app.state.gateway.ping()
    return {"status": "ok" if db_ok else "degraded", "db": db_ok}


__all__ = ["router", "health"]
