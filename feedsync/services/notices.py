from collections import deque
from typing import Awaitable, Callable, Deque, List, Optional
import logging

from feedsync.exceptions import FeedSyncError
from feedsync.schemas.view_schema import Notice, NoticeLevel

logger = logging.getLogger(__name__)

NoticeListener = Callable[[Notice], Awaitable[None]]

class NoticeLog:
    """Collects transient notices for one view and forwards them to listeners"""

    def __init__(self, limit: int = 50):
        self.notices: Deque[Notice] = deque(maxlen=limit)
        self._listeners: List[NoticeListener] = []

    def add_listener(self, listener: NoticeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: NoticeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, notice: Notice) -> None:
        self.notices.append(notice)
        for listener in list(self._listeners):
            try:
                await listener(notice)
            except Exception as e:
                logger.warning(f"Notice listener failed: {e}")

    async def info(self, title: str, description: Optional[str] = None) -> None:
        await self.publish(Notice(level=NoticeLevel.INFO, title=title, description=description))

    async def error(self, title: str, description: Optional[str] = None) -> None:
        await self.publish(Notice(level=NoticeLevel.ERROR, title=title, description=description))

    async def from_error(self, title: str, error: FeedSyncError) -> None:
        await self.error(title, error.message)

    @property
    def latest(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None
