import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from feedsync.exceptions import (
    AuthenticationRequired,
    NotFoundError,
    PermissionDenied,
    TransientNetworkError,
    ValidationError,
)
from feedsync.schemas.post_schema import PostCreate
from feedsync.schemas.profile_schema import ProfileRecord
from feedsync.services.auth_service import AuthService
from feedsync.services.moderation_service import ModerationService
from feedsync.services.post_service import PostService
from feedsync.services.preference_service import PreferenceService
from feedsync.services.profile_service import ProfileService
from feedsync.tests.factories import at, create_post, make_settings, make_token

# Posts

@pytest.mark.asyncio
async def test_create_and_list_own_posts(store, alice, bob):
    service = PostService(store)
    created = await service.create_post(alice["id"], PostCreate(title="Hi", content="First"))
    await create_post(store, bob, title="Not mine")

    assert created.user_id == alice["id"]
    assert created.likes_count == 0

    mine = await service.list_own_posts(alice["id"])
    assert [post.title for post in mine] == ["Hi"]
    assert mine[0].has_liked is False

@pytest.mark.asyncio
async def test_create_post_rejects_blank_fields(store, alice):
    service = PostService(store)
    with pytest.raises(ValidationError) as exc_info:
        await service.create_post(alice["id"], PostCreate(title="  ", content="body"))
    assert exc_info.value.field == "title"

@pytest.mark.asyncio
async def test_delete_own_post_only(store, alice, bob, post):
    service = PostService(store)

    with pytest.raises(NotFoundError):
        await service.delete_own_post(bob["id"], post["id"])

    await service.delete_own_post(alice["id"], post["id"])
    assert await store.maybe_single("posts", {"id": post["id"]}) is None

# Profiles

@pytest.mark.asyncio
async def test_update_username(store, test_settings, alice, bob):
    service = ProfileService(store, test_settings)

    profile = await service.update_username(alice["id"], "  alice_new ")
    assert profile.username == "alice_new"

    with pytest.raises(ValidationError) as exc_info:
        await service.update_username(bob["id"], "alice_new")
    assert exc_info.value.message == "Username already taken"

    # Keeping your own name is not a conflict
    assert (await service.update_username(alice["id"], "alice_new")).username == "alice_new"

@pytest.mark.asyncio
async def test_update_username_lost_race_is_validation_error(store, test_settings, alice, bob, monkeypatch):
    service = ProfileService(store, test_settings)

    async def nobody(*args, **kwargs):
        return None

    # The availability check passes but the unique constraint still fires
    monkeypatch.setattr(store, "maybe_single", nobody)

    with pytest.raises(ValidationError) as exc_info:
        await service.update_username(alice["id"], "bob")
    assert exc_info.value.message == "Username already taken"
    assert exc_info.value.field == "username"

@pytest.mark.asyncio
async def test_set_avatar_uses_public_bucket_url(store, alice):
    settings = make_settings(STORAGE_PUBLIC_URL="https://cdn.example.com/storage/", AVATAR_BUCKET="avatars")
    service = ProfileService(store, settings)

    profile = await service.set_avatar(alice["id"], "/alice/photo.png")

    assert profile.avatar_url == "https://cdn.example.com/storage/avatars/alice/photo.png"

@pytest.mark.asyncio
async def test_verify_account(store, test_settings, bob):
    service = ProfileService(store, test_settings)
    assert (await service.verify_account(bob["id"])).is_verified is True

    with pytest.raises(NotFoundError):
        await service.verify_account("missing")

# Moderation

@pytest.mark.asyncio
async def test_moderation_requires_admin(store, bob):
    with pytest.raises(PermissionDenied):
        ModerationService(store, ProfileRecord.model_validate(bob))

@pytest.mark.asyncio
async def test_toggle_ban_and_flags(store, admin, bob):
    service = ModerationService(store, ProfileRecord.model_validate(admin))

    assert (await service.toggle_ban(bob["id"])).is_banned is True
    assert (await service.toggle_ban(bob["id"])).is_banned is False
    assert (await service.toggle_verified(bob["id"])).is_verified is True
    assert (await service.toggle_admin(bob["id"])).is_admin is True

    with pytest.raises(ValidationError):
        await service.toggle_ban(admin["id"])
    with pytest.raises(ValidationError):
        await service.toggle_admin(admin["id"])
    with pytest.raises(NotFoundError):
        await service.toggle_verified("missing")

@pytest.mark.asyncio
async def test_moderator_lists_and_deletes_posts(store, admin, alice, bob):
    await create_post(store, alice, title="Older", created_at=at(0))
    newer = await create_post(store, bob, title="Newer", created_at=at(1))
    service = ModerationService(store, ProfileRecord.model_validate(admin))

    assert [post.title for post in await service.list_posts()] == ["Newer", "Older"]
    assert {profile.username for profile in await service.list_profiles()} == {"alice", "bob", "moderator"}

    await service.delete_post(newer["id"])
    assert [post.title for post in await service.list_posts()] == ["Older"]
    with pytest.raises(NotFoundError):
        await service.delete_post(newer["id"])

# Preferences

@pytest.mark.asyncio
async def test_theme_defaults_and_toggles(redis_service):
    service = PreferenceService(redis_service, default_theme="light")

    assert await service.get_theme("viewer-1") == "light"
    assert await service.toggle_theme("viewer-1") == "dark"
    assert await service.get_theme("viewer-1") == "dark"
    # Anonymous preference is kept apart
    assert await service.get_theme() == "light"

    with pytest.raises(ValidationError):
        await service.set_theme("sepia")

@pytest.mark.asyncio
async def test_theme_falls_back_when_redis_down(redis_service, fake_redis, monkeypatch):
    service = PreferenceService(redis_service, default_theme="dark")

    async def down(*args, **kwargs):
        raise RedisConnectionError("Connection refused")

    monkeypatch.setattr(fake_redis, "get", down)
    monkeypatch.setattr(fake_redis, "set", down)

    assert await service.get_theme("viewer-1") == "dark"
    with pytest.raises(TransientNetworkError):
        await service.set_theme("light", "viewer-1")

# Auth

@pytest.mark.asyncio
async def test_get_viewer_from_token(store, redis_service, test_settings, alice):
    auth = AuthService(store, redis_service, test_settings)

    assert await auth.get_viewer(None) is None

    viewer = await auth.get_viewer(make_token(alice["id"]))
    assert viewer.id == alice["id"]
    assert viewer.username == "alice"

@pytest.mark.asyncio
async def test_invalid_tokens_rejected(store, redis_service, test_settings, alice):
    auth = AuthService(store, redis_service, test_settings)

    for token in (
        make_token(alice["id"], secret="some-other-secret"),
        make_token(alice["id"], expires_in=-60),
        make_token(alice["id"], audience="anon"),
        make_token("no-such-profile"),
    ):
        with pytest.raises(AuthenticationRequired):
            await auth.get_viewer(token)

@pytest.mark.asyncio
async def test_logout_blacklists_token(store, redis_service, fake_redis, test_settings, alice):
    auth = AuthService(store, redis_service, test_settings)
    token = make_token(alice["id"], expires_in=120)

    assert await auth.verify_token(token) is not None
    await auth.logout(token)

    assert await auth.verify_token(token) is None
    # Never kept longer than the token would have lived
    assert 1 <= fake_redis.expiry[f"blacklist:{token}"] <= 120
    with pytest.raises(AuthenticationRequired):
        await auth.get_viewer(token)

@pytest.mark.asyncio
async def test_verify_token_when_blacklist_unavailable(store, redis_service, fake_redis, test_settings, alice, monkeypatch):
    auth = AuthService(store, redis_service, test_settings)

    async def down(*args, **kwargs):
        raise RedisConnectionError("Connection refused")

    monkeypatch.setattr(fake_redis, "get", down)

    token_data = await auth.verify_token(make_token(alice["id"]))
    assert token_data.user_id == alice["id"]

@pytest.mark.asyncio
async def test_get_profile(store, test_settings, alice):
    service = ProfileService(store, test_settings)

    profile = await service.get_profile(alice["id"])
    assert profile.username == "alice"
    assert profile.avatar_url == "https://cdn.example.com/alice.png"

    with pytest.raises(NotFoundError):
        await service.get_profile("missing")
