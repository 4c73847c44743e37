import pytest

from feedsync.exceptions import TransientNetworkError
from feedsync.schemas.notification_schema import NotificationRecord
from feedsync.schemas.view_schema import NoticeLevel
from feedsync.services.notification_feed import (
    NotificationSynchronizer,
    UnreadBadgeAggregator,
    has_unread,
    unread_count,
)
from feedsync.tests.factories import at, create_notification

def record(read: bool) -> NotificationRecord:
    return NotificationRecord(id="n", user_id="u", title="t", message="m", read=read, created_at=at(0))

def test_has_unread():
    assert has_unread([]) is False
    assert has_unread([record(True), record(True)]) is False
    assert has_unread([record(True), record(False)]) is True
    assert unread_count([record(False), record(True), record(False)]) == 2

async def loaded_badge(store, viewer, **kwargs):
    feed = NotificationSynchronizer(store, viewer_id=viewer["id"])
    await feed.refresh()
    return UnreadBadgeAggregator(store, feed, **kwargs)

async def stored_read_flags(store, viewer):
    rows = await store.select("notifications", filters={"user_id": viewer["id"]})
    return [row["read"] for row in rows]

@pytest.mark.asyncio
async def test_mark_read(store, alice):
    first = await create_notification(store, alice, title="first", created_at=at(0))
    await create_notification(store, alice, title="second", created_at=at(1))
    badge = await loaded_badge(store, alice)
    assert badge.unread_count == 2

    assert await badge.mark_read(first["id"], alice["id"]) is True

    assert badge.feed.get(first["id"]).read is True
    assert badge.unread_count == 1
    assert badge.has_unread is True
    row = await store.single("notifications", {"id": first["id"]})
    assert row["read"] is True

@pytest.mark.asyncio
async def test_mark_read_failure_rolls_back(store, alice, monkeypatch):
    notification = await create_notification(store, alice)
    badge = await loaded_badge(store, alice)

    async def failing_update(*args, **kwargs):
        raise TransientNetworkError("timeout")

    monkeypatch.setattr(store, "update", failing_update)

    assert await badge.mark_read(notification["id"], alice["id"]) is False
    assert badge.feed.get(notification["id"]).read is False
    assert badge.has_unread is True
    assert badge.notices.latest.level == NoticeLevel.ERROR
    assert badge.notices.latest.title == "Failed to update notification"

@pytest.mark.asyncio
async def test_mark_read_failure_without_rollback(store, alice, monkeypatch):
    notification = await create_notification(store, alice)
    badge = await loaded_badge(store, alice, rollback_on_failure=False)

    async def failing_update(*args, **kwargs):
        raise TransientNetworkError("timeout")

    monkeypatch.setattr(store, "update", failing_update)

    assert await badge.mark_read(notification["id"], alice["id"]) is False
    assert badge.feed.get(notification["id"]).read is True
    assert badge.notices.latest.title == "Failed to update notification"

@pytest.mark.asyncio
async def test_mark_read_requires_viewer(store, alice):
    notification = await create_notification(store, alice)
    badge = await loaded_badge(store, alice)

    assert await badge.mark_read(notification["id"], None) is False

    assert badge.notices.latest.title == "Sign in required"
    assert badge.feed.get(notification["id"]).read is False
    assert await stored_read_flags(store, alice) == [False]

@pytest.mark.asyncio
async def test_cannot_mark_someone_elses_notification(store, alice, bob):
    notification = await create_notification(store, alice)
    badge = await loaded_badge(store, bob)

    assert await badge.mark_read(notification["id"], bob["id"]) is False

    assert badge.notices.latest.title == "Failed to update notification"
    assert badge.notices.latest.description == "Notification not found"
    assert await stored_read_flags(store, alice) == [False]

@pytest.mark.asyncio
async def test_mark_all_read(store, alice, bob):
    await create_notification(store, alice, created_at=at(0))
    await create_notification(store, alice, read=True, created_at=at(1))
    await create_notification(store, alice, created_at=at(2))
    await create_notification(store, bob)
    badge = await loaded_badge(store, alice)
    updates = []

    async def listener(synchronizer):
        updates.append(unread_count(synchronizer.items))

    badge.feed.add_listener(listener)

    assert await badge.mark_all_read(alice["id"]) is True

    assert badge.has_unread is False
    assert updates == [0]
    assert await stored_read_flags(store, alice) == [True, True, True]
    assert await stored_read_flags(store, bob) == [False]
    assert badge.notices.latest.level == NoticeLevel.INFO
    assert badge.notices.latest.title == "All notifications marked as read"

@pytest.mark.asyncio
async def test_mark_all_read_failure_rolls_back(store, alice, monkeypatch):
    await create_notification(store, alice, created_at=at(0))
    await create_notification(store, alice, read=True, created_at=at(1))
    badge = await loaded_badge(store, alice)

    async def failing_update(*args, **kwargs):
        raise TransientNetworkError("timeout")

    monkeypatch.setattr(store, "update", failing_update)

    assert await badge.mark_all_read(alice["id"]) is False
    assert [item.read for item in badge.feed.items] == [True, False]
    assert badge.notices.latest.title == "Failed to update notifications"

@pytest.mark.asyncio
async def test_mark_all_read_noop_without_viewer_or_items(store, alice, monkeypatch):
    badge = await loaded_badge(store, alice)
    calls = []

    async def spy(*args, **kwargs):
        calls.append(args)
        return []

    monkeypatch.setattr(store, "update", spy)

    # Empty collection
    assert await badge.mark_all_read(alice["id"]) is False
    # Anonymous
    assert await badge.mark_all_read(None) is False
    assert calls == []
    assert badge.notices.latest is None
