"""Health check endpoints for monitoring and orchestration."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from reconciler.config import settings

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    timestamp: datetime
    version: str
    environment: str


class LivenessResponse(BaseModel):
    """Response model for liveness probe."""

    status: str


class ReadinessResponse(BaseModel):
    """Response model for readiness probe."""

    status: str
    checks: dict[str, str]


async def _check(collaborator: object | None) -> str:
    if collaborator is None:
        return "not_configured"
    try:
        return "ok" if await collaborator.is_healthy() else "failed"
    except Exception:
        return "failed"


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe - app is running."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Readiness probe - app can serve traffic.

    Checks:
    - API is responding
    - Search index answers
    - Identity store answers (optional collaborator)
    """
    checks: dict[str, str] = {"api": "ok"}
    checks["search_index"] = await _check(
        getattr(request.app.state, "search_index", None)
    )
    checks["identity_store"] = await _check(
        getattr(request.app.state, "identity_store", None)
    )

    required = ("api", "search_index")
    ready = all(checks[name] == "ok" for name in required) and checks[
        "identity_store"
    ] in ("ok", "not_configured")
    return ReadinessResponse(status="ready" if ready else "not_ready", checks=checks)
