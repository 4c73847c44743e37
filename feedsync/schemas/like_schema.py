from pydantic import BaseModel, ConfigDict
from typing import Literal
from datetime import datetime
from enum import Enum

class LikeRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    kind: Literal["like"] = "like"
    id: str
    post_id: str
    user_id: str
    created_at: datetime

class ToggleOutcome(str, Enum):
    LIKED = "liked"
    UNLIKED = "unliked"
    IGNORED_BUSY = "ignored_busy"
    REJECTED_UNAUTHENTICATED = "rejected_unauthenticated"
    REJECTED_PERMISSION = "rejected_permission"
    FAILED = "failed"
