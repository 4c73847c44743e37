from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal
from datetime import datetime

from feedsync.schemas.profile_schema import AuthorInfo

class CommentRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    kind: Literal["comment"] = "comment"
    id: str
    post_id: str
    user_id: str
    content: str
    created_at: datetime
    author: Optional[AuthorInfo] = None
