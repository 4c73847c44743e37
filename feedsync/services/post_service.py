from typing import List
import logging

from feedsync.exceptions import NotFoundError, ValidationError
from feedsync.schemas.post_schema import PostCreate, PostRecord
from feedsync.services.post_feed import PostFeedSynchronizer
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class PostService:
    def __init__(self, store: RemoteStore):
        self.store = store

    async def create_post(self, user_id: str, post_data: PostCreate) -> PostRecord:
        """Publish a post as the given author"""
        if not post_data.title.strip():
            raise ValidationError("Title is required", field="title")
        if not post_data.content.strip():
            raise ValidationError("Content is required", field="content")

        row = await self.store.insert("posts", {
            "user_id": user_id,
            "title": post_data.title,
            "content": post_data.content,
        })
        logger.info(f"User {user_id} published post {row['id']}")
        return PostRecord.model_validate(row)

    async def delete_own_post(self, user_id: str, post_id: str) -> None:
        """Delete a post only if the caller wrote it"""
        deleted = await self.store.delete("posts", {"id": post_id, "user_id": user_id})
        if not deleted:
            raise NotFoundError("Post not found")
        logger.info(f"User {user_id} deleted post {post_id}")

    async def list_own_posts(self, user_id: str) -> List[PostRecord]:
        """Author dashboard: the caller's posts, newest first"""
        feed = PostFeedSynchronizer(self.store, viewer_id=user_id, author_id=user_id)
        return await feed.fetch()
