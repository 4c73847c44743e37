from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from pydantic import ValidationError as SchemaValidationError
from typing import Optional, Type
import logging

from feedsync.context import AppContext
from feedsync.exceptions import FeedSyncError
from feedsync.schemas.view_schema import ViewAction
from feedsync.websocket.views import CommentThreadView, FeedView, NotificationView, PostFeedView

logger = logging.getLogger(__name__)

router = APIRouter()

async def run_view(websocket: WebSocket, view_class: Type[FeedView], token: Optional[str], **view_kwargs) -> None:
    """Serve one view for the lifetime of the socket"""
    context: AppContext = websocket.app.state.context

    try:
        viewer = await context.auth.get_viewer(token)
    except FeedSyncError as e:
        logger.info(f"Refusing {view_class.name} view: {e.message}")
        await websocket.close(code=1008)  # Policy violation
        return

    await websocket.accept()

    async def disconnect() -> None:
        # Only when the server ends the session, e.g. on logout
        if websocket.client_state == WebSocketState.CONNECTED and websocket.application_state == WebSocketState.CONNECTED:
            await websocket.close()

    view = view_class(
        context.store,
        context.change_feed(),
        viewer,
        send=websocket.send_json,
        disconnect=disconnect,
        **view_kwargs,
    )
    await context.views.register(view)

    try:
        await view.open()
        while True:
            data = await websocket.receive_json()
            try:
                action = ViewAction.model_validate(data)
            except SchemaValidationError:
                await websocket.send_json({"type": "validation_error", "field": "action", "message": "Unsupported message"})
                continue
            await view.handle(action)
    except WebSocketDisconnect:
        logger.info(f"{view.name} view disconnected for viewer {view.viewer_id}")
    finally:
        await context.views.unregister(view)

@router.websocket("/ws/feed")
async def feed_view(websocket: WebSocket, token: Optional[str] = None):
    """Live post feed with like toggling"""
    await run_view(websocket, PostFeedView, token)

@router.websocket("/ws/posts/{post_id}/comments")
async def comment_thread_view(websocket: WebSocket, post_id: str, token: Optional[str] = None):
    """Live comment thread of one post"""
    await run_view(websocket, CommentThreadView, token, post_id=post_id)

@router.websocket("/ws/notifications")
async def notification_view(websocket: WebSocket, token: Optional[str] = None):
    """Live notifications with the unread badge"""
    await run_view(websocket, NotificationView, token)
