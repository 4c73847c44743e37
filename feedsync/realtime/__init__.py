from feedsync.realtime.transport import (
    ChangeFeedTransport,
    ChangeRegistration,
    InMemoryChangeFeed,
    RedisChangeFeed,
)
from feedsync.realtime.subscription import ChangeFeed, ChangeFeedSubscription

__all__ = [
    'ChangeFeedTransport',
    'ChangeRegistration',
    'InMemoryChangeFeed',
    'RedisChangeFeed',
    'ChangeFeed',
    'ChangeFeedSubscription',
]
