from fastapi import APIRouter, Depends
import logging

from feedsync.api.deps import get_context, get_current_viewer, get_token
from feedsync.context import AppContext
from feedsync.schemas.profile_schema import ProfileRecord

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/logout")
async def logout(
    token: str = Depends(get_token),
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """Invalidate the access token and close the viewer's open views"""
    await context.auth.logout(token)
    closed = await context.views.close_viewer(viewer.id)
    logger.info(f"Viewer {viewer.id} logged out")
    return {"detail": "Logged out", "closed_views": closed}
