"""
Models package for the community feed
"""
from feedsync.models.base import Base, BaseModel
from feedsync.models.profile import Profile
from feedsync.models.post import Post
from feedsync.models.comment import Comment
from feedsync.models.like import Like
from feedsync.models.notification import Notification
from feedsync.models import triggers  # noqa: F401

__all__ = [
    'Base',
    'BaseModel',
    'Profile',
    'Post',
    'Comment',
    'Like',
    'Notification',
]
