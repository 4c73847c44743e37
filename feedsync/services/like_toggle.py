from typing import Optional, Set
import logging

from feedsync.exceptions import FeedSyncError, PermissionDenied
from feedsync.schemas.like_schema import ToggleOutcome
from feedsync.services.notices import NoticeLog
from feedsync.services.post_feed import PostFeedSynchronizer
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class OptimisticToggleCoordinator:
    """Like/unlike with an immediate local update reconciled against the store

    Toggles are serialized per post: while one is in flight for a post, further
    toggles on that post are ignored.
    """

    def __init__(
        self,
        store: RemoteStore,
        feed: PostFeedSynchronizer,
        notices: Optional[NoticeLog] = None,
    ):
        self.store = store
        self.feed = feed
        self.notices = notices if notices is not None else feed.notices
        self._busy: Set[str] = set()

    def is_busy(self, post_id: str) -> bool:
        return post_id in self._busy

    @property
    def busy(self) -> Set[str]:
        return set(self._busy)

    async def toggle(self, post_id: str, viewer_id: Optional[str]) -> ToggleOutcome:
        if not viewer_id:
            await self.notices.error("Sign in required", "You must be signed in to like posts")
            return ToggleOutcome.REJECTED_UNAUTHENTICATED

        if post_id in self._busy:
            logger.debug(f"Ignoring toggle on post {post_id}: already in flight")
            return ToggleOutcome.IGNORED_BUSY

        self._busy.add(post_id)
        await self.feed.notify_listeners()
        try:
            return await self._toggle(post_id, viewer_id)
        finally:
            self._busy.discard(post_id)
            await self.feed.notify_listeners()

    async def _toggle(self, post_id: str, viewer_id: str) -> ToggleOutcome:
        try:
            existing = await self.store.maybe_single("likes", {"post_id": post_id, "user_id": viewer_id})
        except FeedSyncError as e:
            await self.notices.from_error("Failed to update like", e)
            return ToggleOutcome.FAILED

        liked = existing is None
        previous = None
        post = self.feed.get(post_id)
        if post is not None:
            delta = 1 if liked else -1
            previous = await self.feed.patch(
                post_id,
                has_liked=liked,
                likes_count=max(post.likes_count + delta, 0),
            )

        try:
            if liked:
                await self.store.insert("likes", {"post_id": post_id, "user_id": viewer_id})
            else:
                await self.store.delete("likes", {"id": existing["id"]})
        except PermissionDenied as e:
            logger.warning(f"Like by {viewer_id} on post {post_id} rejected: {e.message}")
            await self._rollback(previous)
            await self.notices.error("Not permitted", "You cannot like posts because your account is banned")
            return ToggleOutcome.REJECTED_PERMISSION
        except FeedSyncError as e:
            await self._rollback(previous)
            await self.notices.from_error("Failed to update like", e)
            return ToggleOutcome.FAILED

        logger.info(f"User {viewer_id} {'liked' if liked else 'unliked'} post {post_id}")
        await self.feed.refresh()
        return ToggleOutcome.LIKED if liked else ToggleOutcome.UNLIKED

    async def _rollback(self, previous) -> None:
        if previous is not None:
            await self.feed.restore(previous)
