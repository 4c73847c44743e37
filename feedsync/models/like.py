from sqlalchemy import Column, String, ForeignKey, Index, UniqueConstraint
from feedsync.models.base import BaseModel

class Like(BaseModel):
    __tablename__ = "likes"
    
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    
    __table_args__ = (
        # At most one like per (post, user)
        UniqueConstraint('post_id', 'user_id', name='uq_likes_post_user'),
        Index('ix_likes_user_id', 'user_id'),
    )
