from sqlalchemy import Column, String, Text, ForeignKey, Index
from feedsync.models.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"
    
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    
    __table_args__ = (
        Index('ix_comments_post_id', 'post_id'),
        Index('ix_comments_created_at', 'created_at'),
    )
