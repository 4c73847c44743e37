import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable, List, Optional

from feedsync.realtime.transport import ANY_EVENT, ChangeFeedTransport, ChangeRegistration
from feedsync.schemas.realtime_schema import ChangeEvent, ChangeFilter

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]

class ChangeFeedSubscription:
    """One logical subscription: a registration plus the task draining its queue"""

    def __init__(self, registration: ChangeRegistration, on_change: ChangeCallback):
        self.registration = registration
        self.on_change = on_change
        self.closed = False
        self.delivered = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def table(self) -> str:
        return self.registration.table

    def start(self) -> None:
        self._task = asyncio.create_task(self._consume(), name=f"change-feed:{self.registration.label}")

    async def _consume(self) -> None:
        queue = self.registration.queue
        while True:
            event = await queue.get()
            try:
                self.delivered += 1
                await self.on_change(event)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Change handler for {self.registration.label} failed: {e}")
            finally:
                queue.task_done()

    async def drain(self) -> None:
        """Wait until every event received so far has been handled"""
        await self.registration.queue.join()

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None


class ChangeFeed:
    """Opens and closes subscriptions against one transport

    Every ``open`` creates an independent channel, even for a table and filter
    that are already subscribed elsewhere.
    """

    def __init__(self, transport: ChangeFeedTransport, schema_name: str = "public"):
        self.transport = transport
        self.schema_name = schema_name
        self._open: List[ChangeFeedSubscription] = []

    async def open(
        self,
        table: str,
        on_change: ChangeCallback,
        change_filter: Optional[str] = None,
        event: str = ANY_EVENT,
        schema_name: Optional[str] = None,
    ) -> ChangeFeedSubscription:
        registration = ChangeRegistration(
            table=table,
            schema_name=schema_name or self.schema_name,
            event=event,
            change_filter=ChangeFilter.parse(change_filter),
        )
        await self.transport.subscribe(registration)
        subscription = ChangeFeedSubscription(registration, on_change)
        subscription.start()
        self._open.append(subscription)
        logger.debug(f"Opened subscription {registration.label}")
        return subscription

    async def close(self, subscription: ChangeFeedSubscription) -> None:
        if subscription.closed:
            return
        subscription.closed = True
        if subscription in self._open:
            self._open.remove(subscription)
        await self.transport.unsubscribe(subscription.registration)
        await subscription.stop()
        logger.debug(f"Closed subscription {subscription.registration.label}")

    async def close_all(self) -> None:
        for subscription in list(self._open):
            await self.close(subscription)

    @property
    def open_subscriptions(self) -> List[ChangeFeedSubscription]:
        return list(self._open)
