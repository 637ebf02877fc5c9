"""Health check endpoints: liveness and store readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.api.v1.dependencies import KVStoreDep, PropertyStoreDep
from app.domain.exceptions import StoreUnavailableError
from app.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)

router = APIRouter()

_PROBE_KEY = "__readiness_probe__"


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "A store did not respond", "model": ReadinessErrorResponse}},
)
async def readiness_check(
    kv_store: KVStoreDep,
    properties: PropertyStoreDep,
) -> ReadinessResponse | JSONResponse:
    """Return 200 if both stores answer a read; 503 otherwise.

    The cache layer degrades instead of failing when a store is down, so
    this probe is the place where an outage becomes visible.
    """
    try:
        await kv_store.get(_PROBE_KEY)
        await properties.get(_PROBE_KEY)
    except StoreUnavailableError as e:
        return JSONResponse(
            status_code=503,
            content=ReadinessErrorResponse(message=e.message).model_dump(),
        )
    return ReadinessResponse(
        kv_store=type(kv_store).__name__,
        property_store=type(properties).__name__,
    )
