"""
Base synchronizer for locally cached collections.

A synchronizer owns one ordered collection and replaces it wholesale on every
successful ``refresh()``. Refreshes are never cancelled: when several overlap,
the one that resolves last is applied, unless ``discard_stale`` is set, in
which case a response issued before the one already applied is dropped.
"""
from enum import Enum
from typing import Awaitable, Callable, Dict, Generic, List, Optional, TypeVar
import logging

from pydantic import BaseModel

from feedsync.exceptions import FeedSyncError
from feedsync.services.notices import NoticeLog
from feedsync.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"

class CollectionSynchronizer(Generic[RecordT]):
    collection_name = "collection"
    error_title = "Failed to load collection"

    def __init__(
        self,
        store: RemoteStore,
        notices: Optional[NoticeLog] = None,
        discard_stale: bool = False,
    ):
        self.store = store
        self.notices = notices if notices is not None else NoticeLog()
        self.discard_stale = discard_stale
        self.state = SyncState.IDLE
        self.last_error: Optional[FeedSyncError] = None
        self._items: List[RecordT] = []
        # Copies installed by patch(), keyed by item id, until a refresh replaces them
        self._patched: Dict[str, RecordT] = {}
        self._issued = 0
        self._applied = 0
        self._in_flight = 0
        self._listeners: List[Callable[["CollectionSynchronizer"], Awaitable[None]]] = []

    @property
    def items(self) -> List[RecordT]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[RecordT]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def add_listener(self, listener: Callable[["CollectionSynchronizer"], Awaitable[None]]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[["CollectionSynchronizer"], Awaitable[None]]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def notify_listeners(self) -> None:
        for listener in list(self._listeners):
            try:
                await listener(self)
            except Exception as e:
                logger.warning(f"{self.collection_name} listener failed: {e}")

    async def fetch(self) -> List[RecordT]:
        """Read the full collection from the store"""
        raise NotImplementedError

    async def refresh(self) -> bool:
        """Re-read the collection; on failure keep the previous one and emit a notice"""
        self._issued += 1
        ticket = self._issued
        self._in_flight += 1
        self.state = SyncState.LOADING

        try:
            items = await self.fetch()
        except FeedSyncError as e:
            logger.error(f"Error refreshing {self.collection_name}: {e.message}")
            self.last_error = e
            self.state = SyncState.ERROR
            await self.notices.from_error(self.error_title, e)
            return False
        finally:
            self._in_flight -= 1

        if self.discard_stale and ticket < self._applied:
            logger.debug(f"Discarding stale {self.collection_name} refresh #{ticket} (applied #{self._applied})")
            self._settle()
            return True

        self._items = list(items)
        self._patched.clear()
        self._applied = ticket
        self.last_error = None
        self._settle()
        await self.notify_listeners()
        return True

    def _settle(self) -> None:
        self.state = SyncState.LOADING if self._in_flight else SyncState.READY

    async def patch(self, item_id: str, notify: bool = True, **changes) -> Optional[RecordT]:
        """Replace one item with an updated copy and return the previous version"""
        for index, item in enumerate(self._items):
            if item.id == item_id:
                patched = item.model_copy(update=changes)
                self._items[index] = patched
                self._patched[item_id] = patched
                if notify:
                    await self.notify_listeners()
                return item
        return None

    async def restore(self, previous: RecordT, notify: bool = True) -> bool:
        """Put back a version returned by ``patch``

        Only while the patched copy is still in place: a refresh that landed
        since the patch is newer than ``previous`` and is kept.
        """
        patched = self._patched.pop(previous.id, None)
        restored = False
        for index, item in enumerate(self._items):
            if item.id == previous.id and item is patched:
                self._items[index] = previous
                restored = True
                break
        if not restored:
            logger.debug(f"Not restoring {self.collection_name} item {previous.id}: replaced since patch")
        if notify:
            await self.notify_listeners()
        return restored
