from fastapi import APIRouter, Depends
import logging

from feedsync.api.deps import get_context, get_current_viewer
from feedsync.context import AppContext
from feedsync.schemas.profile_schema import AvatarUpdate, ProfileRecord, ProfileUpdate
from feedsync.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/me", response_model=ProfileRecord)
async def get_my_profile(viewer: ProfileRecord = Depends(get_current_viewer)):
    """The signed-in viewer's profile"""
    return viewer

@router.patch("/me", response_model=ProfileRecord)
async def update_my_profile(
    update: ProfileUpdate,
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """Change the viewer's username"""
    return await ProfileService(context.store, context.settings).update_username(viewer.id, update.username)

@router.post("/me/avatar", response_model=ProfileRecord)
async def set_my_avatar(
    avatar: AvatarUpdate,
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """Use an uploaded object as the viewer's avatar"""
    return await ProfileService(context.store, context.settings).set_avatar(viewer.id, avatar.path)

@router.post("/me/verify", response_model=ProfileRecord)
async def verify_my_account(
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """Mark the viewer's account as verified"""
    return await ProfileService(context.store, context.settings).verify_account(viewer.id)
