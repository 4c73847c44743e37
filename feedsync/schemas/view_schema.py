from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from enum import Enum

class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"

class Notice(BaseModel):
    """Transient user-visible message"""
    type: Literal["notice"] = "notice"
    level: NoticeLevel = NoticeLevel.INFO
    title: str
    description: Optional[str] = None

class SnapshotMessage(BaseModel):
    """Full copy of a synchronized collection sent after each refresh"""
    type: Literal["snapshot"] = "snapshot"
    collection: str
    state: str
    items: List[Dict[str, Any]] = Field(default_factory=list)
    has_unread: Optional[bool] = None
    unread_count: Optional[int] = None
    busy: List[str] = Field(default_factory=list)

class ViewAction(BaseModel):
    """Action message sent by a connected view"""
    action: Literal["refresh", "toggle_like", "submit_comment", "mark_read", "mark_all_read", "ping"]
    post_id: Optional[str] = None
    notification_id: Optional[str] = None
    body: Optional[str] = None
    timestamp: Optional[Any] = None

class ThemePreference(BaseModel):
    theme: Literal["dark", "light"]
