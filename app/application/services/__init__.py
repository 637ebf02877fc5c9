"""Application services: versioning, change detection, invalidation, user context."""

from app.application.services.cache_invalidation import CacheInvalidationEngine
from app.application.services.cache_versioning import (
    CacheVersioningService,
    serialize_params,
)
from app.application.services.change_hash import (
    ChangeHashDetector,
    HashAlgorithm,
    SHA256Algorithm,
)
from app.application.services.session_service import UserSessionService
from app.application.services.state_change_detector import StateChangeDetector
from app.application.services.user_service import UserService, parse_staff_rows
from app.application.services.versioned_cache import VersionedCache

__all__ = [
    "CacheInvalidationEngine",
    "CacheVersioningService",
    "ChangeHashDetector",
    "HashAlgorithm",
    "SHA256Algorithm",
    "StateChangeDetector",
    "UserService",
    "UserSessionService",
    "VersionedCache",
    "parse_staff_rows",
    "serialize_params",
]
