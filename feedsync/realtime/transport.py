"""
Change-feed transports.

A transport delivers ``ChangeEvent`` messages to registrations whose schema,
table, event type and column filter match. Delivery goes into each
registration's own queue; draining the queue is the subscriber's business.
"""
import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError
from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from feedsync.models.base import generate_uuid
from feedsync.schemas.realtime_schema import ChangeEvent, ChangeFilter

logger = logging.getLogger(__name__)

ANY_EVENT = "*"

@dataclass
class ChangeRegistration:
    table: str
    schema_name: str = "public"
    event: str = ANY_EVENT
    change_filter: Optional[ChangeFilter] = None
    queue: asyncio.Queue = field(default_factory=asyncio.Queue)
    id: str = field(default_factory=generate_uuid)

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table or event.schema_name != self.schema_name:
            return False
        if self.event != ANY_EVENT and event.event_type.value != self.event:
            return False
        if self.change_filter is not None and not self.change_filter.matches(event):
            return False
        return True

    def deliver(self, event: ChangeEvent) -> bool:
        if not self.matches(event):
            return False
        self.queue.put_nowait(event)
        return True

    @property
    def label(self) -> str:
        label = f"{self.schema_name}:{self.table}:{self.event}"
        if self.change_filter is not None:
            label += f":{self.change_filter}"
        return label


class ChangeFeedTransport:
    """Interface every change-feed backend implements"""

    async def subscribe(self, registration: ChangeRegistration) -> None:
        raise NotImplementedError

    async def unsubscribe(self, registration: ChangeRegistration) -> None:
        raise NotImplementedError

    async def publish(self, event: ChangeEvent) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class InMemoryChangeFeed(ChangeFeedTransport):
    """Single-process broker, used in tests and with REALTIME_BACKEND=memory"""

    def __init__(self):
        self._registrations: Dict[str, ChangeRegistration] = {}

    async def subscribe(self, registration: ChangeRegistration) -> None:
        self._registrations[registration.id] = registration
        logger.debug(f"Registered change feed {registration.label}")

    async def unsubscribe(self, registration: ChangeRegistration) -> None:
        self._registrations.pop(registration.id, None)

    async def publish(self, event: ChangeEvent) -> None:
        delivered = 0
        for registration in list(self._registrations.values()):
            if registration.deliver(event):
                delivered += 1
        logger.debug(f"{event.event_type.value} on {event.table} delivered to {delivered} subscription(s)")

    async def close(self) -> None:
        self._registrations.clear()

    @property
    def registration_count(self) -> int:
        return len(self._registrations)


class RedisChangeFeed(ChangeFeedTransport):
    """Change feed carried over Redis pub/sub, one channel per schema and table"""

    def __init__(self, redis: Redis, prefix: str = "realtime"):
        self.redis = redis
        self.prefix = prefix
        self._listeners: Dict[str, Tuple[ChangeRegistration, PubSub, asyncio.Task]] = {}

    def channel_for(self, schema_name: str, table: str) -> str:
        return f"{self.prefix}:{schema_name}:{table}"

    async def publish(self, event: ChangeEvent) -> None:
        channel = self.channel_for(event.schema_name, event.table)
        await self.redis.publish(channel, event.model_dump_json())

    async def subscribe(self, registration: ChangeRegistration) -> None:
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel_for(registration.schema_name, registration.table))
        task = asyncio.create_task(
            self._listen(registration, pubsub),
            name=f"redis-change-feed:{registration.label}",
        )
        self._listeners[registration.id] = (registration, pubsub, task)
        logger.info(f"Subscribed to change feed {registration.label}")

    async def _listen(self, registration: ChangeRegistration, pubsub: PubSub) -> None:
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            try:
                event = ChangeEvent.model_validate_json(message["data"])
            except SchemaValidationError as e:
                logger.warning(f"Dropping malformed change event on {registration.label}: {e}")
                continue
            registration.deliver(event)

    async def unsubscribe(self, registration: ChangeRegistration) -> None:
        entry = self._listeners.pop(registration.id, None)
        if entry is None:
            return
        _, pubsub, task = entry
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        try:
            await pubsub.unsubscribe()
            await pubsub.aclose()
        except (RedisError, OSError) as e:
            logger.warning(f"Error closing change feed {registration.label}: {e}")
        logger.info(f"Unsubscribed from change feed {registration.label}")

    async def close(self) -> None:
        for registration, _, _ in list(self._listeners.values()):
            await self.unsubscribe(registration)
