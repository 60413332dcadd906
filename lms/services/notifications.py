"""
Notification inbox for dashboard users.
"""
import logging
from typing import List

from lms.models.schemas import NotificationList, User
from lms.repositories.memory import InMemoryDatabase

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: InMemoryDatabase, limit: int = 50) -> None:
        self._db = db
        self._limit = limit

    async def list(self, tenant_id: str, user: User) -> NotificationList:
        """Newest notifications of the user in the tenant, with the unread count."""
        def mine(notification) -> bool:
            return notification.tenant_id == tenant_id and notification.user_id == user.id

        result = await self._db.notifications.find(where=mine, sort="-created_at", limit=self._limit)
        unread = await self._db.notifications.count(lambda n: mine(n) and not n.read)
        return NotificationList(
            notifications=result.docs,
            unread_count=unread,
            total=result.total_docs,
        )

    async def mark_read(
        self,
        tenant_id: str,
        user: User,
        notification_ids: List[str],
        mark_all: bool = False,
    ) -> int:
        """
        Mark notifications as read.

        Ids that are unknown or belong to someone else are skipped.

        Returns:
            Number of notifications updated
        """
        wanted = set(notification_ids)
        unread = await self._db.notifications.find(
            where=lambda n: (
                n.tenant_id == tenant_id
                and n.user_id == user.id
                and not n.read
                and (mark_all or n.id in wanted)
            ),
            limit=0,
        )
        for notification in unread.docs:
            await self._db.notifications.update(notification.id, read=True)

        logger.info(f"Marked {len(unread.docs)} notifications read: user={user.id}")
        return len(unread.docs)
