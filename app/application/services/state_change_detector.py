"""Per-user state snapshots, drift detection and role change history.

Every context build compares the user's current role/year/name against
the snapshot stored on the previous build and overwrites it. Deltas are
returned to the caller, which decides what to invalidate.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import timedelta

from app.application.dtos.user_state import (
    RoleChangeHistoryEntry,
    StateChange,
    StateChangeResult,
    UserState,
)
from app.application.interfaces.stores import IPropertyStore
from app.core.constants import (
    PROPERTY_ROLE_HISTORY_PREFIX,
    PROPERTY_SESSION_PREFIX,
    PROPERTY_USER_STATE_PREFIX,
    ROLE_HISTORY_LIMIT,
    ROLE_HISTORY_RETENTION_DAYS,
    USER_STATE_RETENTION_DAYS,
)
from app.domain.exceptions import StoreUnavailableError
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import now_ms

logger = logging.getLogger(__name__)

# Compared fields; email and session_id identify the user and are not compared.
COMPARED_FIELDS: tuple[str, ...] = ("role", "year", "name")

_DAY_MS = int(timedelta(days=1).total_seconds() * 1000)


def user_state_property(user_key: str) -> str:
    return f"{PROPERTY_USER_STATE_PREFIX}{user_key}"


def role_history_property(user_key: str) -> str:
    return f"{PROPERTY_ROLE_HISTORY_PREFIX}{user_key}"


class StateChangeDetector:
    """Owns UserStateSnapshot and RoleChangeHistoryEntry lifecycles.

    Store failures never block a request: detection reports no change and
    the stale snapshot stays in place for the next request to retry.
    """

    def __init__(self, properties: IPropertyStore, history_limit: int = ROLE_HISTORY_LIMIT) -> None:
        self.properties = properties
        self.history_limit = history_limit

    async def _read_snapshot(self, user_key: str) -> UserState | None:
        raw = await self.properties.get(user_state_property(user_key))
        if raw is None:
            return None
        return UserState.from_dict(json.loads(raw))

    async def _write_snapshot(self, user_key: str, state: UserState) -> None:
        stamped = replace(state, timestamp=now_ms())
        await self.properties.set(user_state_property(user_key), json.dumps(stamped.to_dict()))

    @traced("state.detect_changes")
    async def detect_changes(self, user_key: str, current_state: UserState) -> StateChangeResult:
        """Compare current_state with the stored snapshot, then overwrite it.

        A first sighting stores the snapshot and reports is_new_user=True,
        has_changed=False: there is nothing cached to invalidate yet.
        """
        try:
            stored = await self._read_snapshot(user_key)
        except (StoreUnavailableError, ValueError, TypeError) as e:
            logger.warning("Could not read state snapshot; assuming unchanged: %s", e)
            return StateChangeResult(has_changed=False, is_new_user=False)
        except Exception:
            logger.exception("Unexpected error reading state snapshot; assuming unchanged")
            return StateChangeResult(has_changed=False, is_new_user=False)

        if stored is None:
            logger.debug("No previous state to compare; treating as new user")
            await self._store_or_log(user_key, current_state)
            return StateChangeResult(has_changed=False, is_new_user=True)

        changes = [
            StateChange(field=name, old_value=getattr(stored, name), new_value=getattr(current_state, name))
            for name in COMPARED_FIELDS
            if getattr(stored, name) != getattr(current_state, name)
        ]
        if not await self._store_or_log(user_key, current_state):
            # Stale snapshot stays; the next request re-detects these deltas.
            return StateChangeResult(has_changed=False, is_new_user=False, stored_state=stored)
        if changes:
            logger.info(
                "User state changes detected: %s",
                ", ".join(change.field for change in changes),
            )
        return StateChangeResult(
            has_changed=bool(changes),
            is_new_user=False,
            changes=changes,
            stored_state=stored,
        )

    async def _store_or_log(self, user_key: str, state: UserState) -> bool:
        try:
            await self._write_snapshot(user_key, state)
            return True
        except StoreUnavailableError as e:
            logger.warning("Could not store state snapshot: %s", e.details.get("reason"))
        except Exception:
            logger.exception("Unexpected error storing state snapshot")
        return False

    async def record_role_change(
        self,
        user_key: str,
        old_role: str | None,
        new_role: str,
        session_id: str | None = None,
        cache_version: str | None = None,
    ) -> RoleChangeHistoryEntry | None:
        """Prepend a role change to the user's history (newest first, capped)."""
        entry = RoleChangeHistoryEntry(
            user_key=user_key,
            old_role=old_role,
            new_role=new_role,
            timestamp=now_ms(),
            session_id=session_id,
            cache_version=cache_version,
        )
        try:
            history = await self.get_role_history(user_key, raise_errors=True)
            history.insert(0, entry)
            payload = [item.to_dict() for item in history[: self.history_limit]]
            await self.properties.set(role_history_property(user_key), json.dumps(payload))
        except (StoreUnavailableError, ValueError, TypeError, KeyError) as e:
            logger.warning("Could not record role change: %s", e)
            return None
        logger.info("Role change recorded: %s -> %s", old_role, new_role)
        return entry

    async def get_role_history(
        self, user_key: str, *, raise_errors: bool = False
    ) -> list[RoleChangeHistoryEntry]:
        """Return the user's role change history, newest first ([] on failure)."""
        try:
            raw = await self.properties.get(role_history_property(user_key))
            if not raw:
                return []
            return [RoleChangeHistoryEntry.from_dict(item) for item in json.loads(raw)]
        except (StoreUnavailableError, ValueError, TypeError, KeyError) as e:
            if raise_errors:
                raise
            logger.warning("Could not read role history: %s", e)
            return []

    async def cleanup_expired(self, now: int | None = None) -> int:
        """Drop expired sessions, old snapshots and old history entries.

        Sessions past their expires_at are deleted. Snapshots older than
        USER_STATE_RETENTION_DAYS are deleted; history entries older than
        ROLE_HISTORY_RETENTION_DAYS are filtered out (the property is
        deleted when nothing remains).

        Returns:
            Number of properties deleted or rewritten.
        """
        now = now if now is not None else now_ms()
        state_cutoff = now - USER_STATE_RETENTION_DAYS * _DAY_MS
        history_cutoff = now - ROLE_HISTORY_RETENTION_DAYS * _DAY_MS
        try:
            properties = await self.properties.list_all()
        except StoreUnavailableError as e:
            logger.warning("Session cleanup skipped: %s", e.details.get("reason"))
            return 0
        cleaned = 0
        for name, raw in properties.items():
            try:
                if name.startswith(PROPERTY_SESSION_PREFIX):
                    expires_at = json.loads(raw).get("expires_at")
                    if expires_at is not None and now > expires_at:
                        await self.properties.delete(name)
                        cleaned += 1
                elif name.startswith(PROPERTY_USER_STATE_PREFIX):
                    timestamp = json.loads(raw).get("timestamp")
                    if timestamp is not None and timestamp < state_cutoff:
                        await self.properties.delete(name)
                        cleaned += 1
                elif name.startswith(PROPERTY_ROLE_HISTORY_PREFIX):
                    history = json.loads(raw)
                    kept = [item for item in history if item.get("timestamp", 0) > history_cutoff]
                    if len(kept) != len(history):
                        if kept:
                            await self.properties.set(name, json.dumps(kept))
                        else:
                            await self.properties.delete(name)
                        cleaned += 1
            except (StoreUnavailableError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Error cleaning up property %s: %s", name, e)
        logger.info("Session cleanup completed: %s properties cleaned", cleaned)
        return cleaned
