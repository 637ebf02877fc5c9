"""Cache administration API: master version, dependency invalidation, cleanup."""

from fastapi import APIRouter

from app.api.v1.dependencies import InvalidationDep, StateDetectorDep, VersioningDep
from app.domain.exceptions import ValidationException
from app.schemas.cache import (
    CacheVersionResponse,
    CleanupResponse,
    InvalidationResponse,
    VersionBumpResponse,
)

router = APIRouter()


@router.get("/version", response_model=CacheVersionResponse)
async def get_cache_version(versioning: VersioningDep) -> CacheVersionResponse:
    """Return the current master cache version token."""
    return CacheVersionResponse(version=await versioning.current_version())


@router.post("/version/bump", response_model=VersionBumpResponse)
async def bump_cache_version(versioning: VersioningDep) -> VersionBumpResponse:
    """Mint and persist a new master version; every versioned key goes cold."""
    bumped = await versioning.bump_version()
    return VersionBumpResponse(bumped=bumped, version=await versioning.current_version())


@router.post("/invalidate/{source}", response_model=InvalidationResponse)
async def invalidate_source(source: str, engine: InvalidationDep) -> InvalidationResponse:
    """Invalidate the one-hop dependents of a changed data source."""
    source = source.strip()
    if not source or "*" in source:
        raise ValidationException("Source must be a concrete key", field="source")
    dependents = engine.dependencies.dependents_of(source)
    await engine.invalidate(source)
    return InvalidationResponse(source=source, dependents=[str(d) for d in dependents])


@router.post("/force-clean", response_model=VersionBumpResponse)
async def force_clean(engine: InvalidationDep) -> VersionBumpResponse:
    """Emergency clear: bump the version, flush the KV store, drop stored hashes."""
    bumped = await engine.force_clean_all()
    return VersionBumpResponse(bumped=bumped, version=await engine.versioning.current_version())


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_expired(state_detector: StateDetectorDep) -> CleanupResponse:
    """Drop expired user state snapshots and role history entries."""
    return CleanupResponse(cleaned=await state_detector.cleanup_expired())
