"""
Connected views.

A view is what one browser page holds open: the synchronizer for its
collection, the change-feed subscriptions that keep it fresh, and the handlers
for the actions the page can send. Every snapshot and notice goes back through
the ``send`` callable the view was created with.
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from feedsync.exceptions import FeedSyncError, ValidationError
from feedsync.realtime.subscription import ChangeFeed, ChangeFeedSubscription
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.schemas.realtime_schema import ChangeEvent
from feedsync.schemas.view_schema import Notice, SnapshotMessage, ViewAction
from feedsync.services.collection_sync import CollectionSynchronizer
from feedsync.services.comment_thread import CommentThreadSynchronizer
from feedsync.services.like_toggle import OptimisticToggleCoordinator
from feedsync.services.notices import NoticeLog
from feedsync.services.notification_feed import NotificationSynchronizer, UnreadBadgeAggregator
from feedsync.services.post_feed import PostFeedSynchronizer
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

Sender = Callable[[Dict[str, Any]], Awaitable[None]]

class FeedView:
    name = "view"

    def __init__(
        self,
        store: RemoteStore,
        change_feed: ChangeFeed,
        viewer: Optional[ProfileRecord],
        send: Sender,
        disconnect: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.store = store
        self.change_feed = change_feed
        self.viewer = viewer
        self.viewer_id = viewer.id if viewer else None
        self._send = send
        self._disconnect = disconnect
        self.notices = NoticeLog()
        self.notices.add_listener(self._send_notice)
        self.subscriptions: List[ChangeFeedSubscription] = []
        self.closed = False
        self.synchronizer = self.build_synchronizer()
        self.synchronizer.add_listener(self.push_snapshot)

    def build_synchronizer(self) -> CollectionSynchronizer:
        raise NotImplementedError

    async def subscribe(self) -> None:
        """Open the change-feed subscriptions this view depends on"""
        raise NotImplementedError

    async def open(self) -> None:
        await self.subscribe()
        if not await self.synchronizer.refresh():
            # Still show the (empty) collection and its error state
            await self.push_snapshot()

    async def watch(self, table: str, change_filter: Optional[str] = None, event: str = "*") -> ChangeFeedSubscription:
        subscription = await self.change_feed.open(table, self.on_change, change_filter=change_filter, event=event)
        self.subscriptions.append(subscription)
        return subscription

    async def on_change(self, event: ChangeEvent) -> None:
        logger.debug(f"{self.name} view refreshing after {event.event_type.value} on {event.table}")
        await self.synchronizer.refresh()

    async def handle(self, action: ViewAction) -> None:
        try:
            if action.action == "ping":
                await self._send({"type": "pong", "timestamp": action.timestamp})
            elif action.action == "refresh":
                await self.synchronizer.refresh()
            else:
                await self.handle_action(action)
        except ValidationError as e:
            await self._send({"type": "validation_error", "field": e.field, "message": e.message})
        except FeedSyncError as e:
            await self.notices.from_error("Action failed", e)

    async def handle_action(self, action: ViewAction) -> None:
        raise ValidationError(f"Unsupported action for {self.name}: {action.action}", field="action")

    def snapshot(self) -> SnapshotMessage:
        return SnapshotMessage(
            collection=self.synchronizer.collection_name,
            state=self.synchronizer.state.value,
            items=[item.model_dump(mode="json") for item in self.synchronizer.items],
        )

    async def push_snapshot(self, synchronizer: Optional[CollectionSynchronizer] = None) -> None:
        if self.closed:
            return
        await self._send(self.snapshot().model_dump(mode="json"))

    async def _send_notice(self, notice: Notice) -> None:
        if not self.closed:
            await self._send(notice.model_dump(mode="json"))

    async def close(self) -> None:
        """Release every subscription; safe to call more than once"""
        if self.closed:
            return
        self.closed = True
        for subscription in self.subscriptions:
            await self.change_feed.close(subscription)
        self.subscriptions.clear()
        if self._disconnect is not None:
            await self._disconnect()
        logger.info(f"Closed {self.name} view for viewer {self.viewer_id}")


class PostFeedView(FeedView):
    name = "feed"

    def build_synchronizer(self) -> PostFeedSynchronizer:
        feed = PostFeedSynchronizer(self.store, viewer_id=self.viewer_id, notices=self.notices)
        self.likes = OptimisticToggleCoordinator(self.store, feed, notices=self.notices)
        return feed

    async def subscribe(self) -> None:
        await self.watch("posts")
        await self.watch("likes")

    async def handle_action(self, action: ViewAction) -> None:
        if action.action != "toggle_like":
            return await super().handle_action(action)
        if not action.post_id:
            raise ValidationError("post_id is required", field="post_id")
        await self.likes.toggle(action.post_id, self.viewer_id)

    def snapshot(self) -> SnapshotMessage:
        message = super().snapshot()
        message.busy = sorted(self.likes.busy)
        return message


class CommentThreadView(FeedView):
    name = "comments"

    def __init__(self, *args, post_id: str, **kwargs):
        self.post_id = post_id
        super().__init__(*args, **kwargs)

    def build_synchronizer(self) -> CommentThreadSynchronizer:
        return CommentThreadSynchronizer(self.store, self.post_id, notices=self.notices)

    async def subscribe(self) -> None:
        await self.watch("comments", change_filter=f"post_id=eq.{self.post_id}")

    async def handle_action(self, action: ViewAction) -> None:
        if action.action != "submit_comment":
            return await super().handle_action(action)
        await self.synchronizer.submit(self.viewer_id, action.body or "")


class NotificationView(FeedView):
    name = "notifications"

    def build_synchronizer(self) -> NotificationSynchronizer:
        feed = NotificationSynchronizer(self.store, viewer_id=self.viewer_id, notices=self.notices)
        self.badge = UnreadBadgeAggregator(self.store, feed, notices=self.notices)
        return feed

    async def subscribe(self) -> None:
        if self.viewer_id:
            await self.watch("notifications", change_filter=f"user_id=eq.{self.viewer_id}")

    async def handle_action(self, action: ViewAction) -> None:
        if action.action == "mark_read":
            if not action.notification_id:
                raise ValidationError("notification_id is required", field="notification_id")
            await self.badge.mark_read(action.notification_id, self.viewer_id)
        elif action.action == "mark_all_read":
            await self.badge.mark_all_read(self.viewer_id)
        else:
            await super().handle_action(action)

    def snapshot(self) -> SnapshotMessage:
        message = super().snapshot()
        message.has_unread = self.badge.has_unread
        message.unread_count = self.badge.unread_count
        return message
