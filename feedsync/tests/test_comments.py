import pytest

from feedsync.exceptions import ValidationError
from feedsync.realtime.subscription import ChangeFeed
from feedsync.services.comment_thread import CommentThreadSynchronizer

async def stored_comments(store, post_id):
    return await store.select("comments", filters={"post_id": post_id})

@pytest.mark.asyncio
async def test_submit_comment_appears_in_thread(store, bob, post):
    thread = CommentThreadSynchronizer(store, post["id"])
    await thread.refresh()

    comment = await thread.submit(bob["id"], "Great post!")

    assert comment.content == "Great post!"
    assert comment.user_id == bob["id"]
    assert [item.content for item in thread.items] == ["Great post!"]
    assert thread.items[0].author.username == "bob"

@pytest.mark.asyncio
async def test_submit_comment_reaches_other_subscribers(store, transport, alice, bob, post):
    """Another view of the same thread refreshes from the change feed"""
    mine = CommentThreadSynchronizer(store, post["id"])
    theirs = CommentThreadSynchronizer(store, post["id"])
    await theirs.refresh()

    async def refresh_theirs(event):
        await theirs.refresh()

    feed = ChangeFeed(transport)
    subscription = await feed.open("comments", refresh_theirs, change_filter=f"post_id=eq.{post['id']}")

    await mine.submit(bob["id"], "Hello from bob")
    await subscription.drain()

    assert [item.content for item in theirs.items] == ["Hello from bob"]
    await feed.close_all()

@pytest.mark.asyncio
async def test_blank_comment_rejected_before_any_write(store, bob, post):
    thread = CommentThreadSynchronizer(store, post["id"])

    with pytest.raises(ValidationError) as exc_info:
        await thread.submit(bob["id"], "   ")

    assert exc_info.value.field == "body"
    assert await stored_comments(store, post["id"]) == []

@pytest.mark.asyncio
async def test_anonymous_comment_rejected(store, post):
    thread = CommentThreadSynchronizer(store, post["id"])

    assert await thread.submit(None, "hello") is None
    assert thread.notices.latest.title == "Sign in required"
    assert await stored_comments(store, post["id"]) == []

@pytest.mark.asyncio
async def test_banned_viewer_comment_rejected(store, banned_user, post):
    thread = CommentThreadSynchronizer(store, post["id"])
    await thread.refresh()

    assert await thread.submit(banned_user["id"], "spam") is None

    assert thread.notices.latest.title == "Not permitted"
    assert thread.items == []
    assert await stored_comments(store, post["id"]) == []

@pytest.mark.asyncio
async def test_comments_removed_with_their_post(store, bob, post):
    thread = CommentThreadSynchronizer(store, post["id"])
    await thread.submit(bob["id"], "soon gone")

    await store.delete("posts", {"id": post["id"]})
    await thread.refresh()

    assert thread.items == []
