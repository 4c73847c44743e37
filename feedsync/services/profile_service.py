from typing import Optional
import logging

from feedsync.config import Settings, settings as default_settings
from feedsync.exceptions import NotFoundError, ValidationError
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class ProfileService:
    def __init__(self, store: RemoteStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or default_settings

    async def get_profile(self, profile_id: str) -> ProfileRecord:
        row = await self.store.single("profiles", {"id": profile_id})
        return ProfileRecord.model_validate(row)

    async def _update(self, profile_id: str, values: dict) -> ProfileRecord:
        rows = await self.store.update("profiles", values, {"id": profile_id})
        if not rows:
            raise NotFoundError("Profile not found")
        return ProfileRecord.model_validate(rows[0])

    async def update_username(self, profile_id: str, username: str) -> ProfileRecord:
        username = username.strip()
        if not username:
            raise ValidationError("Username is required", field="username")

        existing = await self.store.maybe_single("profiles", {"username": username})
        if existing and existing["id"] != profile_id:
            raise ValidationError("Username already taken", field="username")

        try:
            profile = await self._update(profile_id, {"username": username})
        except ValidationError:
            # Another rename took the name after the check above
            raise ValidationError("Username already taken", field="username")
        logger.info(f"Profile {profile_id} renamed to {username}")
        return profile

    def avatar_public_url(self, path: str) -> str:
        """Public URL of an object in the avatars bucket"""
        base = self.settings.STORAGE_PUBLIC_URL.rstrip("/")
        return f"{base}/{self.settings.AVATAR_BUCKET}/{path.lstrip('/')}"

    async def set_avatar(self, profile_id: str, path: str) -> ProfileRecord:
        """Point the profile at an avatar already uploaded to object storage"""
        return await self._update(profile_id, {"avatar_url": self.avatar_public_url(path)})

    async def verify_account(self, profile_id: str) -> ProfileRecord:
        profile = await self._update(profile_id, {"is_verified": True})
        logger.info(f"Profile {profile_id} verified")
        return profile
