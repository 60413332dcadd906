"""
Achievements router.
Badge catalog and the points a learner has earned in the current tenant.
"""
from typing import List

from fastapi import APIRouter, Depends

from lms.api.dependencies import get_achievement_service, get_current_tenant, get_current_user
from lms.models.schemas import AchievementView, Tenant, User, UserPoints
from lms.services.achievements import AchievementService

router = APIRouter(prefix="/api/lms", tags=["achievements"])


@router.get("/achievements", response_model=List[AchievementView], summary="List Achievements")
async def list_achievements(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    achievements: AchievementService = Depends(get_achievement_service),
) -> List[AchievementView]:
    """Active achievements of the tenant, each flagged when the user has earned it."""
    return await achievements.list_achievements(tenant.id, user.id)


@router.get("/user-points", response_model=UserPoints, summary="User Points")
async def user_points(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    achievements: AchievementService = Depends(get_achievement_service),
) -> UserPoints:
    return await achievements.user_points(tenant.id, user.id)
