from typing import List, Optional
import logging

from feedsync.exceptions import FeedSyncError, PermissionDenied, ValidationError
from feedsync.schemas.comment_schema import CommentRecord
from feedsync.services.collection_sync import CollectionSynchronizer
from feedsync.services.notices import NoticeLog
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class CommentThreadSynchronizer(CollectionSynchronizer[CommentRecord]):
    """Comments of one post, oldest first"""

    collection_name = "comments"
    error_title = "Failed to load comments"

    def __init__(
        self,
        store: RemoteStore,
        post_id: str,
        notices: Optional[NoticeLog] = None,
        discard_stale: bool = False,
    ):
        super().__init__(store, notices=notices, discard_stale=discard_stale)
        self.post_id = post_id

    async def fetch(self) -> List[CommentRecord]:
        rows = await self.store.select(
            "comments",
            filters={"post_id": self.post_id},
            descending=False,
            with_author=True,
        )
        return [CommentRecord.model_validate(row) for row in rows]

    async def submit(self, viewer_id: Optional[str], body: str) -> Optional[CommentRecord]:
        """Add a comment as the viewer and refresh the thread

        Raises ValidationError for a blank body; remote failures become notices.
        """
        if not viewer_id:
            await self.notices.error("Sign in required", "You must be signed in to comment")
            return None

        if not body or not body.strip():
            raise ValidationError("Comment cannot be empty", field="body")

        try:
            row = await self.store.insert("comments", {
                "post_id": self.post_id,
                "user_id": viewer_id,
                "content": body,
            })
        except PermissionDenied as e:
            logger.warning(f"Comment by {viewer_id} on post {self.post_id} rejected: {e.message}")
            await self.notices.error("Not permitted", "You cannot comment because your account is banned")
            return None
        except FeedSyncError as e:
            await self.notices.from_error("Failed to add comment", e)
            return None

        logger.info(f"User {viewer_id} commented on post {self.post_id}")
        await self.refresh()
        return CommentRecord.model_validate(row)
