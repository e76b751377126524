"""Liveness endpoint (no auth, no API version header)."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from persi_broker import __version__

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    namespace: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report liveness and the namespace claims are managed in."""
    broker = getattr(request.app.state, "broker", None)
    return HealthResponse(
        status="healthy",
        version=__version__,
        namespace=broker.namespace if broker is not None else None,
    )
