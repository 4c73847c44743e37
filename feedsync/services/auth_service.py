"""
Session handling for tokens issued by the auth platform.

Sign-up, sign-in and password handling stay with the platform; this service
only verifies the HS256 access tokens it issues, resolves the viewer's
profile, and blacklists tokens on logout.
"""
from datetime import datetime, timezone
from typing import Optional
import logging

from jose import JWTError, jwt
from redis.exceptions import RedisError

from feedsync.config import Settings, settings as default_settings
from feedsync.exceptions import AuthenticationRequired, NotFoundError, classify_error
from feedsync.schemas.auth_schema import TokenData
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.services.redis_service import RedisService
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, store: RemoteStore, redis: RedisService, settings: Optional[Settings] = None):
        self.store = store
        self.redis = redis
        self.settings = settings or default_settings

    async def _is_blacklisted(self, token: str) -> bool:
        try:
            return bool(await self.redis.get(f"blacklist:{token}"))
        except (RedisError, OSError) as e:
            logger.warning(f"Token blacklist unavailable: {e}")
            return False

    def _decode(self, token: str) -> dict:
        audience = self.settings.JWT_AUDIENCE
        return jwt.decode(
            token,
            self.settings.secret_key,
            algorithms=[self.settings.ALGORITHM],
            audience=audience,
            options={"verify_aud": audience is not None},
        )

    async def verify_token(self, token: str) -> Optional[TokenData]:
        """Verify a platform access token"""
        try:
            if await self._is_blacklisted(token):
                return None

            payload = self._decode(token)
            user_id = payload.get("sub")
            if user_id is None:
                return None

            return TokenData(user_id=user_id, role=payload.get("role"), email=payload.get("email"))
        except JWTError as e:
            logger.info(f"Rejected access token: {e}")
            return None

    async def get_viewer(self, token: Optional[str]) -> Optional[ProfileRecord]:
        """Resolve the viewer's profile; no token means an anonymous viewer"""
        if not token:
            return None

        token_data = await self.verify_token(token)
        if token_data is None:
            raise AuthenticationRequired("Could not validate credentials")

        try:
            row = await self.store.single("profiles", {"id": token_data.user_id})
        except NotFoundError:
            raise AuthenticationRequired("No profile for this account")
        return ProfileRecord.model_validate(row)

    async def logout(self, token: str) -> None:
        """Blacklist the token until it would have expired anyway"""
        ttl = self.settings.TOKEN_BLACKLIST_TTL
        try:
            payload = self._decode(token)
            exp = payload.get("exp")
            if exp is not None:
                remaining = int(exp - datetime.now(timezone.utc).timestamp())
                ttl = max(min(ttl, remaining), 1)
        except JWTError:
            return

        try:
            await self.redis.setex(f"blacklist:{token}", ttl, "1")
        except (RedisError, OSError) as e:
            raise classify_error(e) from e
        logger.info("Access token blacklisted on logout")
