"""
Catalog service - videos, programs, featured content and search.
Only published content of the current tenant is ever returned.
"""
import logging
from typing import Any, Dict, List, Optional

from lms.core.exceptions import NotFoundError
from lms.models.schemas import (
    FeaturedContent,
    Page,
    Program,
    SearchResponse,
    SearchResult,
    Video,
)
from lms.repositories.memory import InMemoryDatabase

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 6
MAX_SECTION_RESULTS = 4

DASHBOARD_SECTIONS: List[Dict[str, Any]] = [
    {
        "id": "dashboard-home", "title": "Dashboard", "type": "page",
        "description": "Main dashboard overview with stats and activity",
        "url": "/dashboard", "category": "Navigation",
        "keywords": ["home", "overview", "stats", "main", "dashboard"],
    },
    {
        "id": "videos-library", "title": "Video Library", "type": "page",
        "description": "Browse and watch training videos",
        "url": "/dashboard/videos", "category": "Content",
        "keywords": ["videos", "library", "watch", "training", "lessons"],
    },
    {
        "id": "programs-page", "title": "Programs", "type": "page",
        "description": "View and enroll in training programs",
        "url": "/dashboard/programs", "category": "Content",
        "keywords": ["programs", "courses", "enroll", "training"],
    },
    {
        "id": "profile-page", "title": "Profile", "type": "page",
        "description": "Manage your profile and learning stats",
        "url": "/dashboard/profile", "category": "Account",
        "keywords": ["profile", "account", "stats", "achievements", "learning", "progress"],
    },
    {
        "id": "settings-page", "title": "Settings", "type": "page",
        "description": "Manage notifications, privacy, and account settings",
        "url": "/dashboard/settings", "category": "Account",
        "keywords": ["settings", "preferences", "notifications", "privacy", "password"],
    },
    {
        "id": "billing-settings", "title": "Billing & Subscription", "type": "setting",
        "description": "Manage your subscription and billing information",
        "url": "/dashboard/settings?tab=billing", "category": "Billing",
        "keywords": ["billing", "subscription", "payment", "invoice", "plan", "upgrade", "cancel"],
    },
    {
        "id": "pricing-plans", "title": "Pricing Plans", "type": "page",
        "description": "View and upgrade your subscription plan",
        "url": "/dashboard/pricing", "category": "Billing",
        "keywords": ["pricing", "plans", "upgrade", "subscription", "premium", "vip", "basic"],
    },
    {
        "id": "achievements-page", "title": "Achievements", "type": "page",
        "description": "View your learning achievements and badges",
        "url": "/dashboard/achievements", "category": "Progress",
        "keywords": ["achievements", "badges", "rewards", "progress", "milestones"],
    },
    {
        "id": "notification-settings", "title": "Notification Settings", "type": "setting",
        "description": "Control email and push notifications",
        "url": "/dashboard/settings?tab=notifications", "category": "Settings",
        "keywords": ["notifications", "email", "alerts", "reminders", "push"],
    },
    {
        "id": "account-security", "title": "Account Security", "type": "setting",
        "description": "Manage password and security settings",
        "url": "/dashboard/settings?tab=account", "category": "Security",
        "keywords": ["security", "password", "account", "login", "authentication", "2fa"],
    },
]


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def _is_filter(value: Optional[str]) -> bool:
    return bool(value) and value.lower() != "all"


class CatalogService:
    """Tenant-scoped browsing of published videos and programs."""

    def __init__(self, db: InMemoryDatabase, results_per_type: int = 5) -> None:
        self._db = db
        self._results_per_type = results_per_type

    # -------------------------------------------------------------------------
    # Videos
    # -------------------------------------------------------------------------

    async def list_videos(
        self,
        tenant_id: str,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> Page[Video]:
        """
        List published videos, newest first.

        Args:
            tenant_id: Tenant scope
            category: Exact category, "All" for no filter
            difficulty: Case-insensitive difficulty, "All" for no filter
            search: Case-insensitive match on title or description
            page: 1-based page number
            limit: Page size
        """
        term = search.strip().lower() if search else ""

        def where(video: Video) -> bool:
            if video.tenant_id != tenant_id or video.status != "published":
                return False
            if _is_filter(category) and video.category != category:
                return False
            if _is_filter(difficulty) and video.difficulty != difficulty.lower():
                return False
            if term and not (_contains(video.title, term) or _contains(video.description, term)):
                return False
            return True

        return await self._db.videos.find(where=where, sort="-created_at", page=page, limit=limit)

    async def get_video(self, tenant_id: str, video_id: str) -> Video:
        """
        Fetch one video of the tenant.

        Raises:
            NotFoundError: Missing, or owned by another tenant
        """
        video = await self._db.videos.find_by_id(video_id)
        if video is None or video.tenant_id != tenant_id:
            raise NotFoundError("Video", video_id)
        return video

    # -------------------------------------------------------------------------
    # Programs
    # -------------------------------------------------------------------------

    async def list_programs(
        self,
        tenant_id: str,
        category: Optional[str] = None,
        level: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> Page[Program]:
        term = search.strip().lower() if search else ""

        def where(program: Program) -> bool:
            if program.tenant_id != tenant_id or program.status != "published":
                return False
            if _is_filter(category) and program.category != category:
                return False
            if _is_filter(level) and program.difficulty != level.lower():
                return False
            if term and not (
                _contains(program.title, term)
                or _contains(program.short_description, term)
                or _contains(program.description, term)
            ):
                return False
            return True

        result = await self._db.programs.find(where=where, sort="-created_at", page=page, limit=limit)
        result.docs = [self._ordered(p) for p in result.docs]
        return result

    async def get_program(self, tenant_id: str, program_id: str) -> Program:
        program = await self._db.programs.find_by_id(program_id)
        if program is None or program.tenant_id != tenant_id:
            raise NotFoundError("Program", program_id)
        return self._ordered(program)

    @staticmethod
    def _ordered(program: Program) -> Program:
        program.lessons = sorted(program.lessons, key=lambda lesson: lesson.order)
        return program

    # -------------------------------------------------------------------------
    # Featured & search
    # -------------------------------------------------------------------------

    async def featured_content(self, tenant_id: str) -> FeaturedContent:
        def featured(doc: Any) -> bool:
            return doc.tenant_id == tenant_id and doc.status == "published" and doc.featured

        videos = await self._db.videos.find(where=featured, sort="-created_at", limit=FEATURED_LIMIT)
        programs = await self._db.programs.find(where=featured, sort="-created_at", limit=FEATURED_LIMIT)
        return FeaturedContent(
            videos=videos.docs,
            programs=[self._ordered(p) for p in programs.docs],
        )

    async def search(self, tenant_id: str, query: Optional[str], limit: int = 10) -> SearchResponse:
        """
        Search videos, programs and dashboard sections.

        Title matches rank first, then results are alphabetical.
        """
        query = (query or "").strip()
        if not query:
            return SearchResponse(results=[], query="", total=0)

        term = query.lower()
        per_type = min(limit, self._results_per_type)
        results: List[SearchResult] = []

        videos = await self._db.videos.find(
            where=lambda v: (
                v.tenant_id == tenant_id
                and v.status == "published"
                and (_contains(v.title, term) or any(term in tag.lower() for tag in v.tags))
            ),
            limit=per_type,
        )
        for video in videos.docs:
            results.append(SearchResult(
                id=video.id,
                title=video.title,
                description=video.description or "No description",
                type="video",
                url=f"/dashboard/videos/{video.id}",
                thumbnail_url=video.thumbnail_url,
                category=video.category or "Videos",
            ))

        programs = await self._db.programs.find(
            where=lambda p: (
                p.tenant_id == tenant_id
                and p.status == "published"
                and (
                    _contains(p.title, term)
                    or _contains(p.short_description, term)
                    or any(term in tag.lower() for tag in p.tags)
                )
            ),
            limit=per_type,
        )
        for program in programs.docs:
            results.append(SearchResult(
                id=program.id,
                title=program.title,
                description=program.short_description or program.description or "No description",
                type="program",
                url=f"/dashboard/programs/{program.id}",
                thumbnail_url=program.thumbnail_url,
                category="Programs",
            ))

        sections = [
            section for section in DASHBOARD_SECTIONS
            if _contains(section["title"], term)
            or _contains(section["description"], term)
            or any(term in keyword for keyword in section["keywords"])
        ]
        room = max(0, min(limit - len(results), MAX_SECTION_RESULTS))
        for section in sections[:room]:
            results.append(SearchResult(
                id=section["id"],
                title=section["title"],
                description=section["description"],
                type=section["type"],
                url=section["url"],
                category=section["category"],
            ))

        results.sort(key=lambda r: (term not in r.title.lower(), r.title.lower()))
        logger.debug(f"Search '{query}' in tenant={tenant_id}: {len(results)} results")
        return SearchResponse(results=results[:limit], query=query, total=len(results))
