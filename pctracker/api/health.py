"""
Health check endpoints.

Provides liveness and readiness probes with a backend connectivity check.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from pctracker.api.dependencies import get_identity_client
from pctracker.services.identity import IdentityClient, IdentityError

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    backend: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    identity: Annotated[IdentityClient, Depends(get_identity_client)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns ready if the service can handle requests.
    Checks that the auth backend is reachable. Returns 503 if it is not.
    """
    try:
        await identity.ping()
        return HealthResponse(status="ready", backend="connected")
    except IdentityError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", backend="disconnected")
