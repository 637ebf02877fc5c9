"""User application service: staff roster, role sheets and per-request user context.

Orchestrates the cache engine around the Staff data source: cached reads,
content-hash change detection on every re-read, and state-change driven
targeted invalidation when a user's role or year moves.
"""

from __future__ import annotations

import logging
from typing import Any

from app.application.dtos.user import RoleChangeSweepResult, StaffUser, UserContext
from app.application.dtos.user_state import UserState
from app.application.interfaces.stores import ITabularDataSource
from app.application.services.cache_invalidation import CacheInvalidationEngine
from app.application.services.change_hash import ChangeHashDetector
from app.application.services.session_service import UserSessionService
from app.application.services.state_change_detector import StateChangeDetector
from app.application.services.versioned_cache import VersionedCache
from app.core.config import Settings
from app.core.constants import (
    AVAILABLE_ROLES,
    CACHE_KEY_ROLE_SHEET,
    CACHE_KEY_STAFF_DATA,
    CACHE_KEY_USER,
    DEFAULT_OBSERVATION_YEAR,
    DEFAULT_ROLE,
    PROBATIONARY_OBSERVATION_YEAR,
    SHEET_STAFF,
    SPECIAL_ACCESS_ROLES,
    STAFF_COL_EMAIL,
    STAFF_COL_NAME,
    STAFF_COL_ROLE,
    STAFF_COL_YEAR,
)
from app.domain import UserNotFoundException, ValidationException
from app.domain.value_objects.core import UserEmail, is_valid_email
from app.shared.utils.sanitization import CellSanitizer

logger = logging.getLogger(__name__)


def _cell(row: list[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def parse_staff_rows(rows: list[list[Any]]) -> list[StaffUser]:
    """Parse Staff sheet rows (header first) into StaffUser records.

    Rows without a valid email are skipped; unknown roles fall back to
    DEFAULT_ROLE and unparseable years to DEFAULT_OBSERVATION_YEAR.
    """
    users: list[StaffUser] = []
    for offset, row in enumerate(rows[1:], start=2):
        email = CellSanitizer.sanitize_text(_cell(row, STAFF_COL_EMAIL)).lower()
        if not is_valid_email(email):
            continue
        role = CellSanitizer.sanitize_text(_cell(row, STAFF_COL_ROLE))
        if role not in AVAILABLE_ROLES:
            if role:
                logger.warning("Unknown role %r on Staff row %s, using %s", role, offset, DEFAULT_ROLE)
            role = DEFAULT_ROLE
        year = CellSanitizer.parse_year(_cell(row, STAFF_COL_YEAR), PROBATIONARY_OBSERVATION_YEAR)
        users.append(
            StaffUser(
                name=CellSanitizer.sanitize_text(_cell(row, STAFF_COL_NAME)),
                email=email,
                role=role,
                year=DEFAULT_OBSERVATION_YEAR if year is None else year,
                row_number=offset,
            )
        )
    return users


class UserService:
    """Cached staff lookups and user context construction."""

    def __init__(
        self,
        data_source: ITabularDataSource,
        cache: VersionedCache,
        hash_detector: ChangeHashDetector,
        invalidation: CacheInvalidationEngine,
        state_detector: StateChangeDetector,
        sessions: UserSessionService,
        settings: Settings,
    ) -> None:
        self._data_source = data_source
        self._cache = cache
        self._hash_detector = hash_detector
        self._invalidation = invalidation
        self._state_detector = state_detector
        self._sessions = sessions
        self._settings = settings

    async def refresh_staff_data(self) -> list[StaffUser] | None:
        """Re-read the Staff sheet, invalidate dependents if it changed, re-cache.

        Returns:
            Parsed staff users, or None when the sheet cannot be read.
        """
        rows = await self._data_source.read_rows(SHEET_STAFF)
        if rows is None:
            logger.warning("Staff sheet not available")
            return None
        if await self._hash_detector.has_changed(SHEET_STAFF, rows):
            await self._invalidation.invalidate(CACHE_KEY_STAFF_DATA)
        users = parse_staff_rows(rows)
        await self._cache.set(
            CACHE_KEY_STAFF_DATA,
            None,
            [user.to_dict() for user in users],
            ttl=self._settings.sheet_data_ttl,
        )
        logger.info("Loaded %s staff users", len(users))
        return users

    async def get_staff_data(self) -> list[StaffUser] | None:
        cached = await self._cache.get(CACHE_KEY_STAFF_DATA)
        if cached is not None:
            try:
                return [StaffUser.from_dict(item) for item in cached]
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring malformed cached staff data: %s", e)
        return await self.refresh_staff_data()

    async def get_user_by_email(self, email: str) -> StaffUser | None:
        """Look up a staff user by email (case-insensitive). None if unknown or invalid."""
        try:
            normalized = UserEmail(email).value
        except ValueError:
            return None
        params = {"email": normalized}
        cached = await self._cache.get(CACHE_KEY_USER, params)
        if cached is not None:
            try:
                return StaffUser.from_dict(cached)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Ignoring malformed cached user: %s", e)

        users = await self.get_staff_data() or []
        user = next((u for u in users if u.email == normalized), None)
        if user is not None:
            await self._cache.set(
                CACHE_KEY_USER, params, user.to_dict(), ttl=self._settings.user_data_ttl
            )
        return user

    async def get_role_sheet(self, role: str) -> list[list[Any]] | None:
        """Rows of the sheet named after role (unknown roles read the default role's sheet)."""
        if role not in AVAILABLE_ROLES:
            role = DEFAULT_ROLE

        async def load() -> list[list[Any]] | None:
            rows = await self._data_source.read_rows(role)
            if rows is None:
                logger.warning("Role sheet %s not available", role)
            return rows

        return await self._cache.get_or_load(
            CACHE_KEY_ROLE_SHEET, {"role": role}, load, ttl=self._settings.role_config_ttl
        )

    async def build_user_context(self, email: str, session_id: str | None = None) -> UserContext:
        """Resolve the user and run state-change detection for this request.

        The user's stored session is touched, or renewed once expired; an
        explicit session_id (client supplied) takes precedence over its id.
        A role delta records history and clears that user's caches; a
        year-only delta clears just the user's record.

        Raises:
            ValidationException: If email is not a valid address.
            UserNotFoundException: If the email is not on the staff roster.
        """
        try:
            normalized = UserEmail(email).value
        except ValueError as e:
            raise ValidationException(str(e), field="email") from e
        user = await self.get_user_by_email(normalized)
        if user is None:
            raise UserNotFoundException(normalized)

        session = await self._sessions.get_or_create_session(
            user.email, cache_version=await self._cache.versioning.current_version()
        )
        session_id = session_id or session.session_id
        current = UserState(
            role=user.role,
            year=user.year,
            name=user.name,
            email=user.email,
            session_id=session_id,
        )
        result = await self._state_detector.detect_changes(user.email, current)

        role_change_detected = False
        if result.has_changed and not result.is_new_user:
            role_delta = result.change_for("role")
            if role_delta is not None:
                role_change_detected = True
                await self._state_detector.record_role_change(
                    user.email,
                    role_delta.old_value,
                    role_delta.new_value,
                    session_id=session_id,
                    cache_version=await self._cache.versioning.current_version(),
                )
                await self._invalidation.invalidate_for_user(
                    user.email, [role_delta.old_value, role_delta.new_value]
                )
            elif result.change_for("year") is not None:
                await self._invalidation.invalidate_for_key(CACHE_KEY_USER, {"email": user.email})

        return UserContext(
            email=user.email,
            name=user.name,
            role=user.role,
            year=user.year,
            session_id=session_id,
            is_new_user=result.is_new_user,
            role_change_detected=role_change_detected,
            has_special_access=user.role in SPECIAL_ACCESS_ROLES,
            session_expires_at=session.expires_at,
            session_access_count=session.access_count,
            state_changes=list(result.changes),
        )

    async def clear_user_caches(self, email: str) -> bool:
        """Targeted clear for a known user; full force clean otherwise.

        Returns:
            True if the clear was targeted, False if it fell back to force clean.
        """
        user = await self.get_user_by_email(email)
        if user is None:
            logger.warning("User not on roster, falling back to full cache clear")
            await self._invalidation.force_clean_all()
            return False
        await self._invalidation.invalidate_for_user(user.email, [user.role])
        return True

    async def get_role_history(self, email: str) -> list[Any]:
        try:
            normalized = UserEmail(email).value
        except ValueError as e:
            raise ValidationException(str(e), field="email") from e
        return await self._state_detector.get_role_history(normalized)

    async def check_all_users_for_role_changes(self) -> RoleChangeSweepResult:
        """Run every rostered user through the state detector and clear on role change."""
        result = RoleChangeSweepResult()
        users = await self.refresh_staff_data()
        if users is None:
            result.errors.append({"email": "", "error": "Staff sheet not available"})
            return result
        result.total_users = len(users)
        version = await self._cache.versioning.current_version()
        for user in users:
            try:
                state = UserState(role=user.role, year=user.year, name=user.name, email=user.email)
                detection = await self._state_detector.detect_changes(user.email, state)
                result.users_checked += 1
                if not detection.has_changed or detection.is_new_user:
                    continue
                result.changes_detected += 1
                role_delta = detection.change_for("role")
                if role_delta is None:
                    continue
                await self._state_detector.record_role_change(
                    user.email,
                    role_delta.old_value,
                    role_delta.new_value,
                    cache_version=version,
                )
                await self._invalidation.invalidate_for_user(
                    user.email, [role_delta.old_value, role_delta.new_value]
                )
                result.role_changes.append(
                    {
                        "email": user.email,
                        "old_role": role_delta.old_value,
                        "new_role": role_delta.new_value,
                    }
                )
            except Exception as e:
                logger.exception("Role change check failed for row %s", user.row_number)
                result.errors.append({"email": user.email, "error": str(e)})
        logger.info(
            "Role change sweep: %s checked, %s changes, %s role changes",
            result.users_checked,
            result.changes_detected,
            len(result.role_changes),
        )
        return result
