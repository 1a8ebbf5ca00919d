"""
Health check endpoints.

Liveness is unconditional. Readiness checks the collection database and
reports which sets already have a cached card list.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from setkeeper.api.dependencies import get_reconciler
from setkeeper.db.database import get_session
from setkeeper.reconcile.reconciler import SetReconciler

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    cached_sets: list[str] = Field(default_factory=list)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check. Touches neither the database nor Scryfall."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    reconciler: Annotated[SetReconciler, Depends(get_reconciler)],
) -> HealthResponse:
    """
    Readiness check.

    Collection toggles need the database, so an unreachable database makes
    the service not ready (503). Scryfall is not contacted: set loads degrade
    on their own.
    """
    cached = [code for code in reconciler.definitions if reconciler.get_cached_set(code)]
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", cached_sets=cached)
    return HealthResponse(status="ready", database="connected", cached_sets=cached)
