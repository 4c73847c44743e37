from sqlalchemy import Column, String, Boolean, DateTime, Index
from feedsync.models.base import BaseModel, utcnow

class Profile(BaseModel):
    __tablename__ = "profiles"
    
    # Same id as the platform account
    username = Column(String(50), unique=True, nullable=False)
    avatar_url = Column(String(512))
    is_verified = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_banned = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    
    __table_args__ = (
        Index('ix_profiles_created_at', 'created_at'),
    )
