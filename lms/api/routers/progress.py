"""
Learner progress router.
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from lms.api.dependencies import get_current_tenant, get_current_user, get_engagement_service
from lms.models.schemas import (
    EnrollmentView,
    LearningTime,
    RecentVideoProgress,
    Tenant,
    UpcomingLessons,
    User,
    UserProgressSummary,
)
from lms.services.engagement import EngagementService

router = APIRouter(prefix="/api/lms", tags=["progress"])


@router.get("/user-progress", response_model=UserProgressSummary, summary="Progress Summary")
async def user_progress(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> UserProgressSummary:
    """Enrollment completion, monthly goal, watch time and activity streak."""
    return await engagement.user_progress(tenant.id, user)


@router.get(
    "/recent-videos-progress",
    response_model=List[RecentVideoProgress],
    summary="Recently Watched Videos",
)
async def recent_videos_progress(
    limit: int = Query(default=5, ge=1, le=50),
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> List[RecentVideoProgress]:
    return await engagement.recent_videos_progress(tenant.id, user, limit=limit)


@router.get("/user-enrollments", response_model=List[EnrollmentView], summary="User Enrollments")
async def user_enrollments(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> List[EnrollmentView]:
    return await engagement.user_enrollments(tenant.id, user)


@router.get("/user-learning-time", response_model=LearningTime, summary="Learning Time")
async def user_learning_time(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> LearningTime:
    return await engagement.learning_time(tenant.id, user)


@router.get("/upcoming-lessons", response_model=UpcomingLessons, summary="Upcoming Lessons")
async def upcoming_lessons(
    limit: int = Query(default=5, ge=1, le=50),
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> UpcomingLessons:
    """Scheduled live lessons of the user's active enrollments, soonest first."""
    return await engagement.upcoming_lessons(tenant.id, user, limit=limit)
