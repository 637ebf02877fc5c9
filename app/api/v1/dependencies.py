"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the cache services and the user service.
All services are built from the stores and data source placed on app.state
by the lifespan; routes depend only on these dependencies, not on infra
directly.

A CacheVersioningService is built per request so its memoized master
version never outlives the request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from app.application.interfaces.stores import (
    IKeyValueStore,
    IPropertyStore,
    ITabularDataSource,
)
from app.application.services.cache_invalidation import CacheInvalidationEngine
from app.application.services.cache_versioning import CacheVersioningService
from app.application.services.change_hash import ChangeHashDetector
from app.application.services.session_service import UserSessionService
from app.application.services.state_change_detector import StateChangeDetector
from app.application.services.user_service import UserService
from app.application.services.versioned_cache import VersionedCache
from app.core.config import Settings, get_settings


def get_kv_store(request: Request) -> IKeyValueStore:
    return request.app.state.kv_store


def get_property_store(request: Request) -> IPropertyStore:
    return request.app.state.property_store


def get_data_source(request: Request) -> ITabularDataSource:
    return request.app.state.data_source


SettingsDep = Annotated[Settings, Depends(get_settings)]
KVStoreDep = Annotated[IKeyValueStore, Depends(get_kv_store)]
PropertyStoreDep = Annotated[IPropertyStore, Depends(get_property_store)]


def get_versioning_service(
    properties: PropertyStoreDep,
    kv_store: KVStoreDep,
    settings: SettingsDep,
) -> CacheVersioningService:
    """Request-scoped versioning service (FastAPI caches it per request)."""
    return CacheVersioningService(properties, kv_store, cache_version=settings.cache_version)


VersioningDep = Annotated[CacheVersioningService, Depends(get_versioning_service)]


def get_hash_detector(properties: PropertyStoreDep) -> ChangeHashDetector:
    return ChangeHashDetector(properties)


def get_state_detector(properties: PropertyStoreDep, settings: SettingsDep) -> StateChangeDetector:
    return StateChangeDetector(properties, history_limit=settings.role_history_limit)


def get_session_service(properties: PropertyStoreDep, settings: SettingsDep) -> UserSessionService:
    return UserSessionService(properties, duration_seconds=settings.session_duration_seconds)


def get_invalidation_engine(
    versioning: VersioningDep,
    kv_store: KVStoreDep,
    hash_detector: Annotated[ChangeHashDetector, Depends(get_hash_detector)],
) -> CacheInvalidationEngine:
    return CacheInvalidationEngine(versioning, kv_store, hash_detector=hash_detector)


def get_versioned_cache(
    versioning: VersioningDep,
    kv_store: KVStoreDep,
    settings: SettingsDep,
) -> VersionedCache:
    return VersionedCache(
        versioning,
        kv_store,
        default_ttl=settings.cache_default_ttl,
        max_ttl=settings.cache_max_ttl,
    )


def get_user_service(
    data_source: Annotated[ITabularDataSource, Depends(get_data_source)],
    cache: Annotated[VersionedCache, Depends(get_versioned_cache)],
    hash_detector: Annotated[ChangeHashDetector, Depends(get_hash_detector)],
    invalidation: Annotated[CacheInvalidationEngine, Depends(get_invalidation_engine)],
    state_detector: Annotated[StateChangeDetector, Depends(get_state_detector)],
    sessions: Annotated[UserSessionService, Depends(get_session_service)],
    settings: SettingsDep,
) -> UserService:
    """Build UserService; all cache collaborators share this request's versioning service."""
    return UserService(
        data_source=data_source,
        cache=cache,
        hash_detector=hash_detector,
        invalidation=invalidation,
        state_detector=state_detector,
        sessions=sessions,
        settings=settings,
    )


HashDetectorDep = Annotated[ChangeHashDetector, Depends(get_hash_detector)]
StateDetectorDep = Annotated[StateChangeDetector, Depends(get_state_detector)]
InvalidationDep = Annotated[CacheInvalidationEngine, Depends(get_invalidation_engine)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
