from pydantic import BaseModel, ConfigDict
from typing import Optional, Literal
from datetime import datetime
from enum import Enum

class NotificationType(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    SYSTEM = "system"

class NotificationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    kind: Literal["notification"] = "notification"
    id: str
    user_id: str
    title: str
    message: str
    type: str = NotificationType.SYSTEM.value
    read: bool = False
    created_at: datetime
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None
