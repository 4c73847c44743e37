from fastapi import APIRouter, Depends
from typing import Optional

from feedsync.api.deps import get_context, get_optional_viewer
from feedsync.context import AppContext
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.schemas.view_schema import ThemePreference

router = APIRouter()

def _viewer_id(viewer: Optional[ProfileRecord]) -> Optional[str]:
    return viewer.id if viewer else None

@router.get("/theme", response_model=ThemePreference)
async def get_theme(
    viewer: Optional[ProfileRecord] = Depends(get_optional_viewer),
    context: AppContext = Depends(get_context),
):
    return ThemePreference(theme=await context.preferences.get_theme(_viewer_id(viewer)))

@router.put("/theme", response_model=ThemePreference)
async def set_theme(
    preference: ThemePreference,
    viewer: Optional[ProfileRecord] = Depends(get_optional_viewer),
    context: AppContext = Depends(get_context),
):
    return ThemePreference(theme=await context.preferences.set_theme(preference.theme, _viewer_id(viewer)))

@router.post("/theme/toggle", response_model=ThemePreference)
async def toggle_theme(
    viewer: Optional[ProfileRecord] = Depends(get_optional_viewer),
    context: AppContext = Depends(get_context),
):
    return ThemePreference(theme=await context.preferences.toggle_theme(_viewer_id(viewer)))
