from typing import Iterable, List, Optional
import logging

from feedsync.config import settings
from feedsync.exceptions import FeedSyncError, NotFoundError
from feedsync.schemas.notification_schema import NotificationRecord
from feedsync.services.collection_sync import CollectionSynchronizer
from feedsync.services.notices import NoticeLog
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

def has_unread(notifications: Iterable[NotificationRecord]) -> bool:
    return any(not notification.read for notification in notifications)

def unread_count(notifications: Iterable[NotificationRecord]) -> int:
    return sum(1 for notification in notifications if not notification.read)

class NotificationSynchronizer(CollectionSynchronizer[NotificationRecord]):
    """The viewer's latest notifications, newest first"""

    collection_name = "notifications"
    error_title = "Failed to load notifications"

    def __init__(
        self,
        store: RemoteStore,
        viewer_id: Optional[str] = None,
        limit: Optional[int] = None,
        notices: Optional[NoticeLog] = None,
        discard_stale: bool = True,
    ):
        super().__init__(store, notices=notices, discard_stale=discard_stale)
        self.viewer_id = viewer_id
        self.limit = limit if limit is not None else settings.NOTIFICATION_FEED_LIMIT

    async def fetch(self) -> List[NotificationRecord]:
        if not self.viewer_id:
            return []
        rows = await self.store.select(
            "notifications",
            filters={"user_id": self.viewer_id},
            descending=True,
            limit=self.limit,
        )
        return [NotificationRecord.model_validate(row) for row in rows]

class UnreadBadgeAggregator:
    """Unread indicator plus the read-state mutations behind it

    Local flags flip before the remote write; when the write fails they are
    flipped back unless ``rollback_on_failure`` is off.
    """

    def __init__(
        self,
        store: RemoteStore,
        feed: NotificationSynchronizer,
        notices: Optional[NoticeLog] = None,
        rollback_on_failure: bool = True,
    ):
        self.store = store
        self.feed = feed
        self.notices = notices if notices is not None else feed.notices
        self.rollback_on_failure = rollback_on_failure

    @property
    def has_unread(self) -> bool:
        return has_unread(self.feed.items)

    @property
    def unread_count(self) -> int:
        return unread_count(self.feed.items)

    async def mark_read(self, notification_id: str, viewer_id: Optional[str]) -> bool:
        """Mark one of the viewer's own notifications as read"""
        if not viewer_id:
            await self.notices.error("Sign in required", "You must be signed in to manage notifications")
            return False

        previous = await self.feed.patch(notification_id, read=True)
        try:
            rows = await self.store.update(
                "notifications",
                {"read": True},
                {"id": notification_id, "user_id": viewer_id},
            )
            if not rows:
                raise NotFoundError("Notification not found")
        except FeedSyncError as e:
            logger.error(f"Error marking notification {notification_id} as read: {e.message}")
            if self.rollback_on_failure and previous is not None:
                await self.feed.restore(previous)
            await self.notices.from_error("Failed to update notification", e)
            return False
        return True

    async def mark_all_read(self, viewer_id: Optional[str]) -> bool:
        if not viewer_id or not self.feed.items:
            return False

        previous = []
        for notification in self.feed.items:
            if not notification.read:
                previous.append(await self.feed.patch(notification.id, notify=False, read=True))
        await self.feed.notify_listeners()

        try:
            await self.store.update(
                "notifications",
                {"read": True},
                {"user_id": viewer_id, "read": False},
            )
        except FeedSyncError as e:
            logger.error(f"Error marking all notifications as read for {viewer_id}: {e.message}")
            if self.rollback_on_failure:
                for notification in previous:
                    await self.feed.restore(notification, notify=False)
                await self.feed.notify_listeners()
            await self.notices.from_error("Failed to update notifications", e)
            return False

        await self.notices.info("All notifications marked as read")
        return True
