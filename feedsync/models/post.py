from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, Index
from feedsync.models.base import BaseModel, utcnow

class Post(BaseModel):
    __tablename__ = "posts"
    
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    
    # Denormalized, maintained by the likes triggers
    likes_count = Column(Integer, default=0, nullable=False)
    
    __table_args__ = (
        Index('ix_posts_user_id', 'user_id'),
        Index('ix_posts_created_at', 'created_at'),
    )
