"""Health check router endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from signup.db.session import get_engine

router = APIRouter(prefix="/health", tags=["health"])


async def check_database_ready() -> bool:
    """Return True when the database accepts a lightweight query."""
    try:
        async with get_engine().connect() as connection:
            await connection.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError):
        return False


@router.get("/live")
async def live() -> dict[str, str]:
    """Liveness probe endpoint."""
    return {"status": "live"}


@router.get("/ready")
async def ready(
    database_ready: Annotated[bool, Depends(check_database_ready)],
) -> dict[str, str]:
    """Readiness probe requiring the user database."""
    if not database_ready:
        raise HTTPException(
            status_code=503,
            detail={"detail": "Service not ready.", "code": "storage_unavailable"},
        )
    return {"status": "ready"}
