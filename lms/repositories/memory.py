"""
In-memory document collections.
Used for prototyping and testing.
Production would replace these with a document-database adapter that
satisfies the same Collection protocol.
"""
import math
from threading import Lock
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from lms.core.exceptions import NotFoundError
from lms.models.interfaces import Predicate
from lms.models.schemas import (
    Achievement,
    Branding,
    Comment,
    Document,
    Domain,
    Enrollment,
    Notification,
    Page,
    Product,
    Program,
    Subscription,
    Tenant,
    Transaction,
    User,
    UserAchievement,
    Video,
    VideoProgress,
    utcnow,
)

D = TypeVar("D", bound=Document)


class InMemoryCollection(Generic[D]):
    """
    Thread-safe in-memory implementation of the Collection protocol.

    Documents are copied on the way in and out, so callers never hold a
    reference to stored state.
    """

    def __init__(self, name: str, model: Type[D]) -> None:
        self.name = name
        self._model = model
        self._docs: Dict[str, D] = {}
        self._lock = Lock()

    async def find(
        self,
        where: Optional[Predicate] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[D]:
        with self._lock:
            matches = [doc for doc in self._docs.values() if where is None or where(doc)]

        if sort:
            matches = self._sorted(matches, sort)

        total = len(matches)
        page = max(page, 1)
        if limit and limit > 0:
            total_pages = max(1, math.ceil(total / limit))
            start = (page - 1) * limit
            window = matches[start : start + limit]
        else:
            total_pages = 1
            window = matches

        return Page[self._model](
            docs=[doc.model_copy(deep=True) for doc in window],
            total_docs=total,
            total_pages=total_pages,
            page=page,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    async def find_one(self, where: Predicate) -> Optional[D]:
        result = await self.find(where=where, limit=1)
        return result.docs[0] if result.docs else None

    async def find_by_id(self, doc_id: str) -> Optional[D]:
        with self._lock:
            doc = self._docs.get(doc_id)
            return doc.model_copy(deep=True) if doc else None

    async def create(self, doc: D) -> D:
        with self._lock:
            self._docs[doc.id] = doc.model_copy(deep=True)
        return doc

    async def update(self, doc_id: str, **changes: Any) -> D:
        with self._lock:
            current = self._docs.get(doc_id)
            if current is None:
                raise NotFoundError(self.name, doc_id)
            data = current.model_dump()
            data.update(changes)
            data["updated_at"] = utcnow()
            updated = self._model.model_validate(data)
            self._docs[doc_id] = updated
            return updated.model_copy(deep=True)

    async def delete(self, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop(doc_id, None) is not None

    async def count(self, where: Optional[Predicate] = None) -> int:
        with self._lock:
            if where is None:
                return len(self._docs)
            return sum(1 for doc in self._docs.values() if where(doc))

    @staticmethod
    def _sorted(docs: List[D], sort: str) -> List[D]:
        descending = sort.startswith("-")
        field = sort.lstrip("-")
        present = [d for d in docs if getattr(d, field, None) is not None]
        missing = [d for d in docs if getattr(d, field, None) is None]
        present.sort(key=lambda d: getattr(d, field), reverse=descending)
        # Documents without the sort field always go last
        return present + missing


class InMemoryDatabase:
    """One collection per document type, mirroring the CMS collections."""

    def __init__(self) -> None:
        self.tenants = InMemoryCollection("tenants", Tenant)
        self.domains = InMemoryCollection("domains", Domain)
        self.branding = InMemoryCollection("branding", Branding)
        self.users = InMemoryCollection("users", User)
        self.videos = InMemoryCollection("videos", Video)
        self.programs = InMemoryCollection("programs", Program)
        self.comments = InMemoryCollection("comments", Comment)
        self.video_progress = InMemoryCollection("video-progress", VideoProgress)
        self.enrollments = InMemoryCollection("enrollments", Enrollment)
        self.notifications = InMemoryCollection("notifications", Notification)
        self.products = InMemoryCollection("products", Product)
        self.subscriptions = InMemoryCollection("subscriptions", Subscription)
        self.transactions = InMemoryCollection("transactions", Transaction)
        self.achievements = InMemoryCollection("achievements", Achievement)
        self.user_achievements = InMemoryCollection("user-achievements", UserAchievement)

    def collections(self) -> List[InMemoryCollection]:
        return [
            value for value in vars(self).values()
            if isinstance(value, InMemoryCollection)
        ]

    async def counts(self) -> Dict[str, int]:
        """Document count per collection (readiness reporting)."""
        return {c.name: await c.count() for c in self.collections()}
