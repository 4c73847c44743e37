from typing import List, Optional
import logging

from feedsync.exceptions import FeedSyncError
from feedsync.schemas.post_schema import PostRecord
from feedsync.services.collection_sync import CollectionSynchronizer
from feedsync.services.notices import NoticeLog
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class PostFeedSynchronizer(CollectionSynchronizer[PostRecord]):
    """Posts newest first, with author info and the viewer's like flag"""

    collection_name = "posts"
    error_title = "Failed to load posts"

    def __init__(
        self,
        store: RemoteStore,
        viewer_id: Optional[str] = None,
        author_id: Optional[str] = None,
        notices: Optional[NoticeLog] = None,
        discard_stale: bool = False,
    ):
        super().__init__(store, notices=notices, discard_stale=discard_stale)
        self.viewer_id = viewer_id
        self.author_id = author_id

    async def fetch(self) -> List[PostRecord]:
        filters = {"user_id": self.author_id} if self.author_id else None
        rows = await self.store.select("posts", filters=filters, descending=True, with_author=True)
        posts = [PostRecord.model_validate(row) for row in rows]

        if not self.viewer_id:
            return posts

        try:
            likes = await self.store.select("likes", filters={"user_id": self.viewer_id}, order_by=None)
        except FeedSyncError as e:
            # Posts are still usable without the like flag
            logger.warning(f"Could not annotate likes for viewer {self.viewer_id}: {e.message}")
            return posts

        liked_ids = {like["post_id"] for like in likes}
        return [post.model_copy(update={"has_liked": post.id in liked_ids}) for post in posts]
