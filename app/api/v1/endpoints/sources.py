"""Data source API: re-read a source now instead of waiting for TTL expiry."""

from fastapi import APIRouter, HTTPException

from app.api.v1.dependencies import UserServiceDep
from app.schemas.cache import StaffRefreshResponse

router = APIRouter()


@router.post("/staff/refresh", response_model=StaffRefreshResponse)
async def refresh_staff(user_service: UserServiceDep) -> StaffRefreshResponse:
    """Re-read the Staff sheet; dependents are invalidated when its content changed."""
    users = await user_service.refresh_staff_data()
    if users is None:
        raise HTTPException(status_code=503, detail="Staff sheet not available")
    return StaffRefreshResponse(user_count=len(users))
