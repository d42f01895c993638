"""Health check endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kilometracker import __version__
from kilometracker.api.deps import get_settings
from kilometracker.config import Settings
from kilometracker.exceptions import ConfigurationError

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    backend: str


@router.get("/api/health", response_model=HealthResponse)
async def health_check(
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Liveness for load balancers. Does not call the backend."""
    try:
        settings.validate_runtime()
        backend_status = "configured"
    except ConfigurationError:
        backend_status = "misconfigured"

    return HealthResponse(
        status="ok" if backend_status == "configured" else "degraded",
        version=__version__,
        backend=backend_status,
    )
