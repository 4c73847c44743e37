from typing import Optional
from redis.asyncio import Redis
from feedsync.config import settings

class RedisService:
    def __init__(self, redis: Optional[Redis] = None, url: Optional[str] = None):
        self.redis: Redis = redis if redis is not None else Redis.from_url(url or settings.redis_url, decode_responses=True)

    async def set(self, key: str, value: str, expire: int = None):
        """Set a key with optional expiration in seconds"""
        await self.redis.set(name=key, value=value, ex=expire)

    async def setex(self, key: str, seconds: int, value: str):
        """Set a key that expires after the given number of seconds"""
        await self.redis.setex(key, seconds, value)

    async def get(self, key: str):
        """Get the value of a key"""
        return await self.redis.get(key)

    async def delete(self, key: str):
        """Delete a key"""
        await self.redis.delete(key)

    async def close(self):
        """Close the Redis connection"""
        await self.redis.aclose()
