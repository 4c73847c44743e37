from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal
from datetime import datetime

from feedsync.schemas.profile_schema import AuthorInfo

class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)

class PostRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    kind: Literal["post"] = "post"
    id: str
    user_id: str
    title: str
    content: str
    likes_count: int = 0
    created_at: datetime
    author: Optional[AuthorInfo] = None
    # Per viewer, never stored; None when it could not be computed
    has_liked: Optional[bool] = None
