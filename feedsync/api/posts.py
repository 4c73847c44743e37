from fastapi import APIRouter, Depends, status
from typing import List
import logging

from feedsync.api.deps import get_context, get_current_viewer
from feedsync.context import AppContext
from feedsync.schemas.post_schema import PostCreate, PostRecord
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.services.post_service import PostService

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/", response_model=PostRecord, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """Publish a post"""
    return await PostService(context.store).create_post(viewer.id, post_data)

@router.get("/mine", response_model=List[PostRecord])
async def list_my_posts(
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """The viewer's own posts, newest first"""
    return await PostService(context.store).list_own_posts(viewer.id)

@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    viewer: ProfileRecord = Depends(get_current_viewer),
    context: AppContext = Depends(get_context),
):
    """Delete one of the viewer's posts"""
    await PostService(context.store).delete_own_post(viewer.id, post_id)
