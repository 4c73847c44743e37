from sqlalchemy import Column, String, Text, Boolean, ForeignKey, Index
from feedsync.models.base import BaseModel

class Notification(BaseModel):
    __tablename__ = "notifications"
    
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False, default="system")  # like, comment, system
    read = Column(Boolean, default=False, nullable=False)
    related_entity_id = Column(String(36), nullable=True)
    related_entity_type = Column(String(50), nullable=True)
    
    __table_args__ = (
        Index('ix_notifications_user_id', 'user_id'),
        Index('ix_notifications_created_at', 'created_at'),
    )
