from fastapi import APIRouter, Depends, status
from typing import List
import logging

from feedsync.api.deps import get_context, get_current_viewer
from feedsync.context import AppContext
from feedsync.schemas.post_schema import PostRecord
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.services.moderation_service import ModerationService

logger = logging.getLogger(__name__)

router = APIRouter()

def get_moderation_service(
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
) -> ModerationService:
    """Dependency that only resolves for admins"""
    return ModerationService(context.store, viewer)

@router.get("/profiles", response_model=List[ProfileRecord])
async def list_profiles(service: ModerationService = Depends(get_moderation_service)):
    """All profiles, newest first"""
    return await service.list_profiles()

@router.get("/posts", response_model=List[PostRecord])
async def list_posts(service: ModerationService = Depends(get_moderation_service)):
    """All posts, newest first"""
    return await service.list_posts()

@router.post("/profiles/{profile_id}/ban", response_model=ProfileRecord)
async def toggle_ban(profile_id: str, service: ModerationService = Depends(get_moderation_service)):
    """Ban or unban a profile"""
    return await service.toggle_ban(profile_id)

@router.post("/profiles/{profile_id}/verify", response_model=ProfileRecord)
async def toggle_verified(profile_id: str, service: ModerationService = Depends(get_moderation_service)):
    """Grant or revoke the verified badge"""
    return await service.toggle_verified(profile_id)

@router.post("/profiles/{profile_id}/admin", response_model=ProfileRecord)
async def toggle_admin(profile_id: str, service: ModerationService = Depends(get_moderation_service)):
    """Grant or revoke admin rights"""
    return await service.toggle_admin(profile_id)

@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, service: ModerationService = Depends(get_moderation_service)):
    """Delete any post"""
    await service.delete_post(post_id)
