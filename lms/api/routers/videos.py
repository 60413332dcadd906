"""
Video catalog router.
Browsing, statistics, comments, bookmarks and playback progress for
tenant videos.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from lms.api.dependencies import (
    get_achievement_service,
    get_catalog_service,
    get_current_tenant,
    get_current_user,
    get_engagement_service,
)
from lms.config import get_settings
from lms.models.schemas import (
    BookmarkRequest,
    BookmarkStatus,
    CommentCreate,
    CommentView,
    Page,
    ProgressUpdate,
    Tenant,
    User,
    Video,
    VideoAction,
    VideoProgress,
    VideoStats,
)
from lms.services.achievements import AchievementService
from lms.services.catalog import CatalogService
from lms.services.engagement import EngagementService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lms/videos", tags=["videos"])


@router.get(
    "",
    response_model=Page[Video],
    summary="List Videos",
    description="""
    Published videos of the current tenant, newest first.

    `category` and `difficulty` accept `All` to disable the filter;
    `search` matches title and description.
    """,
)
async def list_videos(
    category: Optional[str] = Query(default=None),
    difficulty: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    tenant: Tenant = Depends(get_current_tenant),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Page[Video]:
    settings = get_settings()
    effective_limit = min(limit or settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)

    return await catalog.list_videos(
        tenant.id,
        category=category,
        difficulty=difficulty,
        search=search,
        page=page,
        limit=effective_limit,
    )


@router.get(
    "/{video_id}",
    response_model=Video,
    summary="Get Video",
    responses={404: {"description": "Video not found in this tenant"}},
)
async def get_video(
    video_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Video:
    return await catalog.get_video(tenant.id, video_id)


# -----------------------------------------------------------------------------
# Statistics
# -----------------------------------------------------------------------------


@router.get(
    "/{video_id}/stats",
    response_model=VideoStats,
    summary="Get Video Statistics",
    responses={404: {"description": "Video not found in this tenant"}},
)
async def get_video_stats(
    video_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    engagement: EngagementService = Depends(get_engagement_service),
) -> VideoStats:
    return await engagement.video_stats(tenant.id, video_id)


@router.post(
    "/{video_id}/stats",
    summary="Record Like or View",
    responses={400: {"description": "Invalid action"}},
)
async def record_video_action(
    video_id: str,
    body: VideoAction,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> dict:
    return await engagement.record_video_action(tenant.id, video_id, user, body)


# -----------------------------------------------------------------------------
# Comments
# -----------------------------------------------------------------------------


@router.get("/{video_id}/comments", response_model=Page[CommentView], summary="List Comments")
async def list_comments(
    video_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    tenant: Tenant = Depends(get_current_tenant),
    engagement: EngagementService = Depends(get_engagement_service),
) -> Page[CommentView]:
    return await engagement.list_comments(tenant.id, video_id, page=page, limit=limit)


@router.post(
    "/{video_id}/comments",
    response_model=CommentView,
    status_code=status.HTTP_201_CREATED,
    summary="Add Comment",
)
async def add_comment(
    video_id: str,
    body: CommentCreate,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
    achievements: AchievementService = Depends(get_achievement_service),
) -> CommentView:
    comment = await engagement.add_comment(
        tenant.id, video_id, user, body.content, parent_comment_id=body.parent_comment_id
    )
    await achievements.evaluate(tenant.id, user.id)
    return comment


# -----------------------------------------------------------------------------
# Progress
# -----------------------------------------------------------------------------


@router.post(
    "/{video_id}/progress",
    response_model=VideoProgress,
    summary="Update Playback Progress",
)
async def update_progress(
    video_id: str,
    body: ProgressUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
    achievements: AchievementService = Depends(get_achievement_service),
) -> VideoProgress:
    """Store the playback position, then award any achievements it unlocks."""
    record = await engagement.update_progress(tenant.id, user, video_id, body)
    await achievements.evaluate(tenant.id, user.id)
    return record


# -----------------------------------------------------------------------------
# Bookmarks
# -----------------------------------------------------------------------------


@router.get("/{video_id}/bookmark", response_model=BookmarkStatus, summary="Bookmark Status")
async def get_bookmark(
    video_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> BookmarkStatus:
    return await engagement.is_bookmarked(tenant.id, user, video_id)


@router.post("/{video_id}/bookmark", response_model=BookmarkStatus, summary="Set Bookmark")
async def set_bookmark(
    video_id: str,
    body: BookmarkRequest,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> BookmarkStatus:
    return await engagement.set_bookmark(tenant.id, user, video_id, body.bookmarked)
