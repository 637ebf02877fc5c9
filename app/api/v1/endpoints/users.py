"""Users API: per-request context with state-change detection, cache clears, role history."""

from typing import Annotated

from fastapi import APIRouter, Header

from app.api.v1.dependencies import UserServiceDep
from app.schemas.user import (
    CacheClearResponse,
    RoleChangeHistoryItem,
    RoleChangeSweepResponse,
    RoleHistoryResponse,
    UserContextResponse,
)

router = APIRouter()


@router.post("/role-changes/check", response_model=RoleChangeSweepResponse)
async def check_role_changes(user_service: UserServiceDep) -> RoleChangeSweepResponse:
    """Re-read the roster and clear caches for every user whose role changed."""
    result = await user_service.check_all_users_for_role_changes()
    return RoleChangeSweepResponse.model_validate(result)


@router.get("/{email}/context", response_model=UserContextResponse)
async def get_user_context(
    email: str,
    user_service: UserServiceDep,
    x_session_id: Annotated[str | None, Header(max_length=128)] = None,
) -> UserContextResponse:
    """Build the user's context for this request. 404 if not on the roster."""
    context = await user_service.build_user_context(email, session_id=x_session_id)
    return UserContextResponse.model_validate(context)


@router.post("/{email}/cache/clear", response_model=CacheClearResponse)
async def clear_user_cache(email: str, user_service: UserServiceDep) -> CacheClearResponse:
    """Clear one user's caches (falls back to a full clean for unknown users)."""
    targeted = await user_service.clear_user_caches(email)
    return CacheClearResponse(email=email.strip().lower(), targeted=targeted)


@router.get("/{email}/role-history", response_model=RoleHistoryResponse)
async def get_role_history(email: str, user_service: UserServiceDep) -> RoleHistoryResponse:
    """Return the user's recorded role changes, newest first."""
    history = await user_service.get_role_history(email)
    return RoleHistoryResponse(
        email=email.strip().lower(),
        history=[RoleChangeHistoryItem.model_validate(entry) for entry in history],
    )
