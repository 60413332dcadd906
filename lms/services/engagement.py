"""
Engagement service - comments, video statistics, bookmarks, progress
tracking and program enrollments.
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from lms.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from lms.models.schemas import (
    BookmarkStatus,
    Comment,
    CommentView,
    Enrollment,
    EnrollmentView,
    LearningTime,
    LearningTimeBreakdown,
    Notification,
    Page,
    ProgressUpdate,
    RecentVideoProgress,
    UpcomingLesson,
    UpcomingLessons,
    User,
    UserProgressSummary,
    Video,
    VideoAction,
    VideoProgress,
    VideoStats,
    utcnow,
)
from lms.repositories.memory import InMemoryDatabase
from lms.services.access import can_view_content

logger = logging.getLogger(__name__)


# =============================================================================
# Formatting helpers
# =============================================================================


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def format_time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    """Relative time such as 'Just now' or '3 hours ago'."""
    seconds = int(((now or utcnow()) - moment).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return _plural(seconds // 60, "minute")
    if seconds < 86400:
        return _plural(seconds // 3600, "hour")
    if seconds < 604800:
        return _plural(seconds // 86400, "day")
    if seconds < 2592000:
        return _plural(seconds // 604800, "week")
    return _plural(seconds // 2592000, "month")


def format_duration(seconds: Optional[float]) -> str:
    """m:ss, or h:mm:ss from one hour up."""
    if not seconds:
        return "0:00"
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_learning_time(hours: int, minutes: int, seconds: int) -> str:
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_lesson_date(moment: datetime) -> str:
    """e.g. 'Monday, Jun 3'"""
    return f"{moment:%A, %b} {moment.day}"


def format_lesson_time(moment: datetime) -> str:
    """e.g. '2:30 PM'"""
    return f"{moment.hour % 12 or 12}:{moment:%M %p}"


def activity_streak(days: List[date], today: date) -> int:
    """
    Consecutive activity days ending today or yesterday.

    Args:
        days: Days with activity, any order, duplicates allowed
        today: Reference day
    """
    unique = sorted(set(days), reverse=True)
    if not unique or (today - unique[0]).days > 1:
        return 0

    streak = 1
    for previous, current in zip(unique, unique[1:]):
        if (previous - current).days != 1:
            break
        streak += 1
    return streak


# =============================================================================
# Service
# =============================================================================


class EngagementService:
    """Per-user activity on tenant content."""

    def __init__(
        self,
        db: InMemoryDatabase,
        completion_threshold: float = 95.0,
        monthly_goal: int = 20,
        default_rating: float = 4.5,
    ) -> None:
        self._db = db
        self._completion_threshold = completion_threshold
        self._monthly_goal = monthly_goal
        self._default_rating = default_rating

    async def _video(self, tenant_id: str, video_id: str) -> Video:
        video = await self._db.videos.find_by_id(video_id)
        if video is None or video.tenant_id != tenant_id:
            raise NotFoundError("Video", video_id)
        return video

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def list_comments(
        self,
        tenant_id: str,
        video_id: str,
        page: int = 1,
        limit: int = 20,
    ) -> Page[CommentView]:
        await self._video(tenant_id, video_id)
        result = await self._db.comments.find(
            where=lambda c: (
                c.tenant_id == tenant_id
                and c.video_id == video_id
                and c.status == "approved"
            ),
            sort="-created_at",
            page=page,
            limit=limit,
        )

        authors: Dict[str, Optional[User]] = {}
        views = []
        for comment in result.docs:
            if comment.user_id not in authors:
                authors[comment.user_id] = await self._db.users.find_by_id(comment.user_id)
            views.append(self._comment_view(comment, authors[comment.user_id]))

        return Page[CommentView](
            docs=views,
            total_docs=result.total_docs,
            total_pages=result.total_pages,
            page=result.page,
            limit=result.limit,
            has_next_page=result.has_next_page,
            has_prev_page=result.has_prev_page,
        )

    async def add_comment(
        self,
        tenant_id: str,
        video_id: str,
        user: User,
        content: str,
        parent_comment_id: Optional[str] = None,
    ) -> CommentView:
        content = content.strip()
        if not content:
            raise ValidationError("Comment content is required", details={"field": "content"})
        await self._video(tenant_id, video_id)

        comment = await self._db.comments.create(Comment(
            tenant_id=tenant_id,
            video_id=video_id,
            user_id=user.id,
            content=content,
            parent_comment_id=parent_comment_id,
        ))
        logger.info(f"Comment added: video={video_id}, user={user.id}")
        return self._comment_view(comment, user)

    @staticmethod
    def _comment_view(comment: Comment, author: Optional[User]) -> CommentView:
        return CommentView(
            id=comment.id,
            user=author.display_name if author else "Anonymous",
            content=comment.content,
            timestamp=format_time_ago(comment.created_at),
            likes=comment.likes,
            created_at=comment.created_at,
        )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def video_stats(self, tenant_id: str, video_id: str) -> VideoStats:
        """
        Aggregate viewing statistics for a video.

        Raises:
            NotFoundError: Missing, or owned by another tenant
        """
        video = await self._video(tenant_id, video_id)
        records = (await self._db.video_progress.find(
            where=lambda p: p.tenant_id == tenant_id and p.video_id == video_id,
            limit=0,
        )).docs
        comments_count = await self._db.comments.count(
            lambda c: c.tenant_id == tenant_id and c.video_id == video_id and c.status == "approved"
        )

        viewers = len({record.user_id for record in records})
        completed = sum(1 for record in records if record.completed)
        watch_seconds = sum(record.watch_time for record in records)

        return VideoStats(
            views=viewers,
            likes=video.likes,
            rating=round(self._default_rating, 1),
            duration=format_duration(video.duration),
            comments_count=comments_count,
            total_watch_time=round(watch_seconds / 3600, 1),
            completion_rate=round(completed / viewers * 100) if viewers else 0,
            upload_date=video.created_at,
            last_viewed=max((r.last_watched_at for r in records), default=None),
        )

    async def record_video_action(
        self,
        tenant_id: str,
        video_id: str,
        user: User,
        action: VideoAction,
    ) -> Dict[str, object]:
        """Apply a like or a view. Unknown actions raise ValidationError."""
        video = await self._video(tenant_id, video_id)

        if action.action == "like":
            video = await self._db.videos.update(video.id, likes=video.likes + 1)
            return {"success": True, "likes": video.likes}

        if action.action == "view":
            existing = await self._progress_for(tenant_id, user.id, video_id)
            now = utcnow()
            if existing is not None:
                # A view may mark completion but never clear it
                completed = (
                    existing.completed
                    or bool(action.completed)
                    or existing.progress >= self._completion_threshold
                )
                await self._db.video_progress.update(
                    existing.id,
                    watch_time=action.watch_time if action.watch_time is not None else existing.watch_time,
                    completed=completed,
                    current_time=action.current_time if action.current_time is not None else existing.current_time,
                    last_watched_at=now,
                )
            else:
                await self._db.video_progress.create(VideoProgress(
                    tenant_id=tenant_id,
                    user_id=user.id,
                    video_id=video_id,
                    watch_time=action.watch_time or 0.0,
                    completed=bool(action.completed),
                    current_time=action.current_time or 0.0,
                    duration=video.duration,
                    first_watched_at=now,
                    last_watched_at=now,
                ))
            return {"success": True}

        raise ValidationError("Invalid action", details={"action": action.action})

    # -------------------------------------------------------------------------
    # Bookmarks
    # -------------------------------------------------------------------------

    async def is_bookmarked(self, tenant_id: str, user: User, video_id: str) -> BookmarkStatus:
        await self._video(tenant_id, video_id)
        record = await self._progress_for(tenant_id, user.id, video_id)
        return BookmarkStatus(video_id=video_id, bookmarked=bool(record and record.bookmarked))

    async def set_bookmark(
        self, tenant_id: str, user: User, video_id: str, bookmarked: bool
    ) -> BookmarkStatus:
        """Bookmark flags live on the progress record, created unwatched if missing."""
        video = await self._video(tenant_id, video_id)
        existing = await self._progress_for(tenant_id, user.id, video_id)
        if existing is not None:
            await self._db.video_progress.update(existing.id, bookmarked=bookmarked)
        else:
            await self._db.video_progress.create(VideoProgress(
                tenant_id=tenant_id,
                user_id=user.id,
                video_id=video_id,
                duration=video.duration,
                bookmarked=bookmarked,
            ))
        return BookmarkStatus(video_id=video_id, bookmarked=bookmarked)

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    async def _progress_for(
        self, tenant_id: str, user_id: str, video_id: str
    ) -> Optional[VideoProgress]:
        return await self._db.video_progress.find_one(
            lambda p: p.tenant_id == tenant_id and p.user_id == user_id and p.video_id == video_id
        )

    async def update_progress(
        self,
        tenant_id: str,
        user: User,
        video_id: str,
        update: ProgressUpdate,
    ) -> VideoProgress:
        """
        Record a playback position for the user.

        Progress comes from the request when given, otherwise from
        current_time / duration. Reaching the completion threshold marks the
        video completed, and completion is never revoked.
        """
        video = await self._video(tenant_id, video_id)
        existing = await self._progress_for(tenant_id, user.id, video_id)

        duration = update.duration or (existing.duration if existing else None) or video.duration
        if update.progress is not None:
            progress = update.progress
        elif duration:
            progress = update.current_time / duration * 100
        else:
            progress = existing.progress if existing else 0.0
        progress = round(min(max(progress, 0.0), 100.0), 2)

        completed = progress >= self._completion_threshold or bool(existing and existing.completed)
        now = utcnow()

        if existing is None:
            record = await self._db.video_progress.create(VideoProgress(
                tenant_id=tenant_id,
                user_id=user.id,
                video_id=video_id,
                progress=progress,
                current_time=update.current_time,
                duration=duration,
                completed=completed,
                watch_time=update.watched_seconds,
                first_watched_at=now,
                last_watched_at=now,
            ))
        else:
            record = await self._db.video_progress.update(
                existing.id,
                progress=progress,
                current_time=update.current_time,
                duration=duration,
                completed=completed,
                watch_time=existing.watch_time + update.watched_seconds,
                last_watched_at=now,
            )

        if completed and not (existing and existing.completed):
            logger.info(f"Video completed: video={video_id}, user={user.id}")
        return record

    async def user_progress(self, tenant_id: str, user: User) -> UserProgressSummary:
        enrollments = (await self._db.enrollments.find(
            where=lambda e: e.tenant_id == tenant_id and e.user_id == user.id, limit=0
        )).docs
        records = (await self._db.video_progress.find(
            where=lambda p: p.tenant_id == tenant_id and p.user_id == user.id, limit=0
        )).docs
        total_programs = await self._db.programs.count(
            lambda p: p.tenant_id == tenant_id and p.status == "published"
        )

        total = len(enrollments)
        finished = sum(1 for e in enrollments if e.status == "completed" or e.progress >= 100)
        overall = round(finished / total * 100) if total else 0

        now = utcnow()
        monthly_completed = sum(
            1 for r in records
            if r.completed and r.updated_at.year == now.year and r.updated_at.month == now.month
        )
        monthly = round(min(monthly_completed / self._monthly_goal * 100, 100)) if self._monthly_goal else 0

        return UserProgressSummary(
            overall_progress=overall,
            monthly_progress=monthly,
            goal_progress=overall,
            monthly_videos_completed=monthly_completed,
            monthly_goal=self._monthly_goal,
            total_watch_time=sum(r.watch_time for r in records),
            current_streak=activity_streak([r.updated_at.date() for r in records], now.date()),
            completed_enrollments=finished,
            total_enrollments=total,
            total_programs=total_programs,
        )

    async def learning_time(self, tenant_id: str, user: User) -> LearningTime:
        """Time spent learning, measured as how far into each started video the user got."""
        records = (await self._db.video_progress.find(
            where=lambda p: p.tenant_id == tenant_id and p.user_id == user.id and p.current_time > 0,
            limit=0,
        )).docs
        total = sum(r.current_time for r in records)
        hours, remainder = divmod(int(total), 3600)
        minutes, seconds = divmod(remainder, 60)

        return LearningTime(
            total_watch_time_seconds=total,
            formatted_time=format_learning_time(hours, minutes, seconds),
            total_videos_watched=len(records),
            total_videos_completed=sum(1 for r in records if r.completed),
            breakdown=LearningTimeBreakdown(hours=hours, minutes=minutes, seconds=seconds),
        )

    async def recent_videos_progress(
        self, tenant_id: str, user: User, limit: int = 5
    ) -> List[RecentVideoProgress]:
        records = await self._db.video_progress.find(
            where=lambda p: p.tenant_id == tenant_id and p.user_id == user.id,
            sort="-last_watched_at",
            limit=limit,
        )
        recent = []
        for record in records.docs:
            video = await self._db.videos.find_by_id(record.video_id)
            if video is None:
                continue
            recent.append(RecentVideoProgress(
                video_id=video.id,
                title=video.title,
                thumbnail_url=video.thumbnail_url,
                progress=record.progress,
                completed=record.completed,
                current_time=record.current_time,
                last_watched_at=record.last_watched_at,
            ))
        return recent

    # -------------------------------------------------------------------------
    # Enrollments
    # -------------------------------------------------------------------------

    async def enroll(self, tenant_id: str, user: User, program_id: str) -> Enrollment:
        """
        Enroll the user in a published program of the tenant.

        Raises:
            NotFoundError: Program missing, unpublished or in another tenant
            PermissionDeniedError: User's tier is below the program access level
            ConflictError: Already enrolled, or the program is full
        """
        program = await self._db.programs.find_by_id(program_id)
        if program is None or program.tenant_id != tenant_id or program.status != "published":
            raise NotFoundError("Program", program_id)

        if not can_view_content(user, program.access_level):
            raise PermissionDeniedError(
                "Your plan does not include this program",
                details={"access_level": program.access_level},
            )

        existing = await self._db.enrollments.find_one(
            lambda e: e.tenant_id == tenant_id and e.user_id == user.id and e.program_id == program_id
        )
        if existing is not None and existing.status != "cancelled":
            raise ConflictError("Already enrolled in this program", details={"program_id": program_id})

        if program.enrollment_limit:
            enrolled = await self._db.enrollments.count(
                lambda e: e.program_id == program_id and e.status in ("active", "completed")
            )
            if enrolled >= program.enrollment_limit:
                raise ConflictError("Program is full", details={"program_id": program_id})

        if existing is not None:
            enrollment = await self._db.enrollments.update(
                existing.id, status="active", enrolled_at=utcnow()
            )
        else:
            enrollment = await self._db.enrollments.create(Enrollment(
                tenant_id=tenant_id, user_id=user.id, program_id=program_id
            ))

        await self._db.notifications.create(Notification(
            tenant_id=tenant_id,
            user_id=user.id,
            type="enrollment",
            title="Enrollment confirmed",
            message=f"You are now enrolled in {program.title}.",
            action_url=f"/dashboard/programs/{program_id}",
        ))
        logger.info(f"User enrolled: program={program_id}, user={user.id}")
        return enrollment

    async def upcoming_lessons(self, tenant_id: str, user: User, limit: int = 5) -> UpcomingLessons:
        """
        Scheduled lessons still ahead in the user's active enrollments, soonest first.

        total_count counts every upcoming lesson, not just the returned ones.
        """
        enrollments = (await self._db.enrollments.find(
            where=lambda e: e.tenant_id == tenant_id and e.user_id == user.id and e.status == "active",
            limit=0,
        )).docs

        now = utcnow()
        upcoming = []
        for enrollment in enrollments:
            program = await self._db.programs.find_by_id(enrollment.program_id)
            if program is None:
                continue
            instructor = await self._db.users.find_by_id(program.instructor_id)
            for lesson in program.lessons:
                if lesson.scheduled_at is None or lesson.scheduled_at <= now:
                    continue
                upcoming.append(UpcomingLesson(
                    id=f"{program.id}-lesson-{lesson.order}",
                    title=lesson.title,
                    description=lesson.description,
                    instructor=instructor.display_name if instructor else "Unknown Instructor",
                    type=lesson.type or "Lesson",
                    program_id=program.id,
                    program_title=program.title,
                    scheduled_at=lesson.scheduled_at,
                    date=format_lesson_date(lesson.scheduled_at),
                    time=format_lesson_time(lesson.scheduled_at),
                ))

        upcoming.sort(key=lambda lesson: lesson.scheduled_at)
        if not upcoming:
            return UpcomingLessons(
                lessons=[],
                total_count=0,
                message="No upcoming scheduled lessons. Check your enrolled programs for new content.",
            )
        return UpcomingLessons(lessons=upcoming[:limit], total_count=len(upcoming))

    async def user_enrollments(self, tenant_id: str, user: User) -> List[EnrollmentView]:
        enrollments = await self._db.enrollments.find(
            where=lambda e: e.tenant_id == tenant_id and e.user_id == user.id,
            sort="-enrolled_at",
            limit=0,
        )
        views = []
        for enrollment in enrollments.docs:
            program = await self._db.programs.find_by_id(enrollment.program_id)
            views.append(EnrollmentView(enrollment=enrollment, program=program))
        return views
