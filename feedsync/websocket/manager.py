import asyncio
import logging
from typing import Dict, Optional, Set
from collections import defaultdict

from feedsync.websocket.views import FeedView

logger = logging.getLogger(__name__)

class ViewManager:
    """Tracks open views per viewer so they can be torn down together"""

    def __init__(self):
        self.active_views: Dict[Optional[str], Set[FeedView]] = defaultdict(set)
        self.lock = asyncio.Lock()

    async def register(self, view: FeedView) -> None:
        async with self.lock:
            self.active_views[view.viewer_id].add(view)

        logger.info(f"Viewer {view.viewer_id} opened {view.name} view. Total views: {len(self.active_views[view.viewer_id])}")

    async def unregister(self, view: FeedView) -> None:
        async with self.lock:
            views = self.active_views.get(view.viewer_id)
            if views is not None:
                views.discard(view)
                if not views:
                    del self.active_views[view.viewer_id]

        await view.close()

    async def close_viewer(self, viewer_id: str) -> int:
        """Close every view of one viewer (logout)"""
        async with self.lock:
            views = self.active_views.pop(viewer_id, set())

        for view in views:
            await view.close()
        logger.info(f"Closed {len(views)} view(s) for viewer {viewer_id}")
        return len(views)

    async def close_all(self) -> None:
        async with self.lock:
            views = [view for group in self.active_views.values() for view in group]
            self.active_views.clear()

        for view in views:
            await view.close()

    async def get_connected_viewers_count(self) -> int:
        async with self.lock:
            return len([viewer_id for viewer_id in self.active_views if viewer_id is not None])

    async def get_total_views_count(self) -> int:
        async with self.lock:
            return sum(len(views) for views in self.active_views.values())
