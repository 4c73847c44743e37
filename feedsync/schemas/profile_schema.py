from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Literal
from datetime import datetime

class AuthorInfo(BaseModel):
    """Author fields joined onto posts and comments"""
    model_config = ConfigDict(from_attributes=True)
    
    id: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    is_verified: bool = False

class ProfileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    
    kind: Literal["profile"] = "profile"
    id: str
    username: str
    avatar_url: Optional[str] = None
    is_verified: bool = False
    is_admin: bool = False
    is_banned: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

class ProfileUpdate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)

class AvatarUpdate(BaseModel):
    # Path of an object already uploaded to the avatars bucket
    path: str = Field(..., min_length=1, max_length=400)
