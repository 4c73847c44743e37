from typing import Optional
import logging

from redis.exceptions import RedisError

from feedsync.config import settings
from feedsync.exceptions import ValidationError, classify_error
from feedsync.services.redis_service import RedisService

logger = logging.getLogger(__name__)

THEMES = ("dark", "light")

class PreferenceService:
    """Theme preference kept in the key-value store"""

    def __init__(self, redis: RedisService, default_theme: Optional[str] = None):
        self.redis = redis
        self.default_theme = default_theme or settings.DEFAULT_THEME

    def _key(self, viewer_id: Optional[str]) -> str:
        return f"theme:{viewer_id}" if viewer_id else "theme"

    async def get_theme(self, viewer_id: Optional[str] = None) -> str:
        try:
            value = await self.redis.get(self._key(viewer_id))
        except (RedisError, OSError) as e:
            logger.warning(f"Could not read theme preference, using default: {e}")
            return self.default_theme
        return value if value in THEMES else self.default_theme

    async def set_theme(self, theme: str, viewer_id: Optional[str] = None) -> str:
        if theme not in THEMES:
            raise ValidationError(f"Unknown theme: {theme}", field="theme")
        try:
            await self.redis.set(self._key(viewer_id), theme)
        except (RedisError, OSError) as e:
            raise classify_error(e) from e
        return theme

    async def toggle_theme(self, viewer_id: Optional[str] = None) -> str:
        current = await self.get_theme(viewer_id)
        return await self.set_theme("light" if current == "dark" else "dark", viewer_id)
