from pydantic import BaseModel, Field
from typing import Optional

class TokenData(BaseModel):
    """Claims taken from a platform-issued access token"""
    user_id: str = Field(..., description="Account id (the token subject)")
    role: Optional[str] = Field(default=None, description="Platform role claim")
    email: Optional[str] = Field(default=None, description="Email claim")
