"""Per-user sessions in the property store.

One session per user at session_<user_key>. A session is created on first
access, touched (last access time and count) on every later access, and
replaced by a fresh one once it has expired. Expired sessions left behind
by users who never came back are removed by StateChangeDetector.cleanup_expired.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace

from app.application.dtos.session import UserSession
from app.application.interfaces.stores import IPropertyStore
from app.core.constants import PROPERTY_SESSION_PREFIX, SESSION_DURATION_SECONDS
from app.domain.exceptions import StoreUnavailableError
from app.shared.utils.datetime import now_ms
from app.shared.utils.generators import generate_unique_id

logger = logging.getLogger(__name__)


def session_property(user_key: str) -> str:
    return f"{PROPERTY_SESSION_PREFIX}{user_key}"


class UserSessionService:
    """Creates, renews and touches user sessions.

    Never raises on store failure: the caller gets an unpersisted session
    and the next request tries the store again.
    """

    def __init__(
        self,
        properties: IPropertyStore,
        duration_seconds: int = SESSION_DURATION_SECONDS,
    ) -> None:
        self.properties = properties
        self.duration_ms = duration_seconds * 1000

    def _new_session(self, user_key: str, cache_version: str | None, now: int) -> UserSession:
        return UserSession(
            session_id=generate_unique_id("session"),
            user_key=user_key,
            created_at=now,
            last_accessed_at=now,
            expires_at=now + self.duration_ms,
            access_count=1,
            cache_version=cache_version,
        )

    async def _save(self, session: UserSession) -> UserSession:
        try:
            await self.properties.set(
                session_property(session.user_key), json.dumps(session.to_dict())
            )
            return session
        except StoreUnavailableError as e:
            logger.warning("Could not store session: %s", e.details.get("reason"))
        except Exception:
            logger.exception("Unexpected error storing session")
        return replace(session, persisted=False)

    async def create_session(
        self, user_key: str, cache_version: str | None = None, now: int | None = None
    ) -> UserSession:
        """Start a new session for user_key, replacing any existing one."""
        now = now if now is not None else now_ms()
        session = await self._save(self._new_session(user_key, cache_version, now))
        logger.debug("User session created, expires at %s", session.expires_at)
        return session

    async def get_session(self, user_key: str) -> UserSession | None:
        """Return the stored session as-is (expired or not), None if absent or unreadable."""
        try:
            raw = await self.properties.get(session_property(user_key))
            if raw is None:
                return None
            return UserSession.from_dict(json.loads(raw))
        except (StoreUnavailableError, ValueError, TypeError, KeyError) as e:
            logger.warning("Could not read session: %s", e)
            return None

    async def get_or_create_session(
        self, user_key: str, cache_version: str | None = None, now: int | None = None
    ) -> UserSession:
        """Return the user's live session, touching it, or a fresh one.

        An expired session is renewed: a new session_id with a new expiry
        and cache_version.
        """
        now = now if now is not None else now_ms()
        session = await self.get_session(user_key)
        if session is None:
            return await self.create_session(user_key, cache_version, now)
        if session.is_expired(now):
            logger.info("Session expired at %s, renewing", session.expires_at)
            return await self.create_session(user_key, cache_version, now)
        return await self._save(
            replace(session, last_accessed_at=now, access_count=session.access_count + 1)
        )
