from typing import List
import logging

from feedsync.exceptions import NotFoundError, PermissionDenied, ValidationError
from feedsync.schemas.post_schema import PostRecord
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.services.post_feed import PostFeedSynchronizer
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class ModerationService:
    """Admin-only operations on profiles and posts"""

    def __init__(self, store: RemoteStore, moderator: ProfileRecord):
        if not moderator.is_admin:
            raise PermissionDenied("Admin access required")
        self.store = store
        self.moderator = moderator

    async def list_profiles(self) -> List[ProfileRecord]:
        rows = await self.store.select("profiles", descending=True)
        return [ProfileRecord.model_validate(row) for row in rows]

    async def list_posts(self) -> List[PostRecord]:
        return await PostFeedSynchronizer(self.store).fetch()

    async def _flip(self, profile_id: str, flag: str) -> ProfileRecord:
        current = await self.store.single("profiles", {"id": profile_id})
        rows = await self.store.update("profiles", {flag: not current[flag]}, {"id": profile_id})
        profile = ProfileRecord.model_validate(rows[0])
        logger.info(f"Moderator {self.moderator.id} set {flag}={getattr(profile, flag)} on {profile_id}")
        return profile

    async def toggle_ban(self, profile_id: str) -> ProfileRecord:
        if profile_id == self.moderator.id:
            raise ValidationError("You cannot ban yourself", field="profile_id")
        return await self._flip(profile_id, "is_banned")

    async def toggle_verified(self, profile_id: str) -> ProfileRecord:
        return await self._flip(profile_id, "is_verified")

    async def toggle_admin(self, profile_id: str) -> ProfileRecord:
        if profile_id == self.moderator.id:
            raise ValidationError("You cannot change your own admin flag", field="profile_id")
        return await self._flip(profile_id, "is_admin")

    async def delete_post(self, post_id: str) -> None:
        deleted = await self.store.delete("posts", {"id": post_id})
        if not deleted:
            raise NotFoundError("Post not found")
        logger.info(f"Moderator {self.moderator.id} deleted post {post_id}")
