"""
Achievements service - badges, points and automatic awarding.

Points come only from earned achievements. Awarding is re-evaluated after
learner activity (progress updates, comments) and is idempotent: an
achievement is earned at most once per user.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from lms.models.schemas import (
    Achievement,
    AchievementView,
    Notification,
    UserAchievement,
    UserPoints,
    utcnow,
)
from lms.repositories.memory import InMemoryDatabase
from lms.services.engagement import activity_streak

logger = logging.getLogger(__name__)


class LearnerStats(BaseModel):
    """Activity counters the achievement criteria are checked against."""

    completed_videos: int = 0
    completed_programs: int = 0
    all_programs_completed: bool = False
    streak_days: int = 0
    hours_watched: float = 0.0
    comments: int = 0
    has_logged_in: bool = False


def is_met(achievement: Achievement, stats: LearnerStats) -> bool:
    """Whether the stats satisfy the achievement's criteria. Missing thresholds mean 1."""
    criteria = achievement.criteria
    if achievement.type == "video_completion":
        return stats.completed_videos >= (criteria.videos_to_complete or 1)
    if achievement.type == "program_completion":
        return stats.completed_programs >= (criteria.programs_to_complete or 1)
    if achievement.type == "streak":
        return stats.streak_days >= (criteria.streak_days or 1)
    if achievement.type == "time_spent":
        return stats.hours_watched >= (criteria.time_spent_hours or 1)
    if achievement.type == "first_login":
        return stats.has_logged_in
    if achievement.type == "comment":
        return stats.comments >= 1
    # special: every published program of the tenant completed
    return stats.all_programs_completed


class AchievementService:
    """Tenant achievements and the points users earn from them."""

    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def _active(self, tenant_id: str) -> List[Achievement]:
        return (await self._db.achievements.find(
            where=lambda a: a.tenant_id == tenant_id and a.status == "active",
            sort="points",
            limit=0,
        )).docs

    async def _earned(self, tenant_id: str, user_id: str) -> Dict[str, UserAchievement]:
        earned = (await self._db.user_achievements.find(
            where=lambda ua: ua.tenant_id == tenant_id and ua.user_id == user_id,
            limit=0,
        )).docs
        return {ua.achievement_id: ua for ua in earned}

    @staticmethod
    def _view(achievement: Achievement, earned_at: Optional[datetime] = None) -> AchievementView:
        return AchievementView(
            id=achievement.id,
            title=achievement.title,
            description=achievement.description,
            type=achievement.type,
            points=achievement.points,
            rarity=achievement.rarity,
            icon_url=achievement.icon_url,
            earned=earned_at is not None,
            earned_at=earned_at,
        )

    async def list_achievements(self, tenant_id: str, user_id: str) -> List[AchievementView]:
        """Active achievements of the tenant, lowest points first, flagged when earned."""
        earned = await self._earned(tenant_id, user_id)
        return [
            self._view(a, earned[a.id].earned_at if a.id in earned else None)
            for a in await self._active(tenant_id)
        ]

    async def user_points(self, tenant_id: str, user_id: str) -> UserPoints:
        """
        Points total and earned achievements, newest first.

        Earned achievements keep counting after they are deactivated.
        """
        earned = sorted(
            (await self._earned(tenant_id, user_id)).values(),
            key=lambda ua: ua.earned_at,
            reverse=True,
        )
        views = []
        for user_achievement in earned:
            achievement = await self._db.achievements.find_by_id(user_achievement.achievement_id)
            if achievement is None:
                continue
            views.append(self._view(achievement, user_achievement.earned_at))

        completed_videos = await self._db.video_progress.count(
            lambda p: p.tenant_id == tenant_id and p.user_id == user_id and p.completed
        )
        return UserPoints(
            total_points=sum(view.points for view in views),
            achievements=views,
            completed_videos=completed_videos,
        )

    async def learner_stats(self, tenant_id: str, user_id: str) -> LearnerStats:
        progress = (await self._db.video_progress.find(
            where=lambda p: p.tenant_id == tenant_id and p.user_id == user_id, limit=0
        )).docs
        finished = {
            e.program_id
            for e in (await self._db.enrollments.find(
                where=lambda e: e.tenant_id == tenant_id and e.user_id == user_id, limit=0
            )).docs
            if e.status == "completed" or e.progress >= 100
        }
        published = {
            p.id
            for p in (await self._db.programs.find(
                where=lambda p: p.tenant_id == tenant_id and p.status == "published", limit=0
            )).docs
        }
        user = await self._db.users.find_by_id(user_id)

        return LearnerStats(
            completed_videos=sum(1 for p in progress if p.completed),
            completed_programs=len(finished),
            all_programs_completed=bool(published) and published <= finished,
            streak_days=activity_streak([p.updated_at.date() for p in progress], utcnow().date()),
            hours_watched=sum(p.watch_time for p in progress) / 3600,
            comments=await self._db.comments.count(
                lambda c: c.tenant_id == tenant_id and c.user_id == user_id
            ),
            has_logged_in=user is not None and user.last_login_at is not None,
        )

    async def evaluate(self, tenant_id: str, user_id: str) -> List[Achievement]:
        """
        Award every active achievement the user now qualifies for.

        Each award also posts an achievement notification.

        Returns:
            Achievements earned by this call, empty when nothing changed
        """
        earned = await self._earned(tenant_id, user_id)
        pending = [a for a in await self._active(tenant_id) if a.id not in earned]
        if not pending:
            return []

        stats = await self.learner_stats(tenant_id, user_id)
        awarded = [a for a in pending if is_met(a, stats)]
        for achievement in awarded:
            await self._db.user_achievements.create(UserAchievement(
                tenant_id=tenant_id, user_id=user_id, achievement_id=achievement.id
            ))
            await self._db.notifications.create(Notification(
                tenant_id=tenant_id,
                user_id=user_id,
                type="achievement",
                title="Achievement unlocked",
                message=f"You earned {achievement.title} (+{achievement.points} points).",
                action_url="/dashboard/achievements",
                metadata={"achievement_id": achievement.id},
            ))
            logger.info(f"Achievement earned: achievement={achievement.id}, user={user_id}")
        return awarded
