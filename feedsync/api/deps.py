from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from feedsync.context import AppContext
from feedsync.exceptions import AuthenticationRequired
from feedsync.schemas.profile_schema import ProfileRecord

bearer_scheme = HTTPBearer(auto_error=False)

def get_context(request: Request) -> AppContext:
    """Dependency to get the application context"""
    return request.app.state.context

def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    return credentials.credentials if credentials else None

async def get_optional_viewer(
    token: Optional[str] = Depends(get_token),
    context: AppContext = Depends(get_context),
) -> Optional[ProfileRecord]:
    """Dependency to get the viewer, or None when anonymous"""
    return await context.auth.get_viewer(token)

async def get_current_viewer(
    viewer: Optional[ProfileRecord] = Depends(get_optional_viewer),
) -> ProfileRecord:
    """Dependency to get the signed-in viewer"""
    if viewer is None:
        raise AuthenticationRequired()
    return viewer
