import pytest
from sqlalchemy import text

from feedsync.db.session import create_engine_from_settings, create_session_factory, init_db
from feedsync.realtime.transport import InMemoryChangeFeed
from feedsync.services.redis_service import RedisService
from feedsync.services.remote_store import RemoteStore
from feedsync.tests.factories import (
    BANNED_WRITE_TRIGGERS,
    FakeRedis,
    at,
    create_post,
    create_profile,
    make_settings,
)

@pytest.fixture
def test_settings(tmp_path):
    # A file database gives every session its own connection
    return make_settings(TEST_DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'feed.db'}")

@pytest.fixture
async def engine(test_settings):
    engine = create_engine_from_settings(test_settings)
    await init_db(engine)
    async with engine.begin() as conn:
        for statement in BANNED_WRITE_TRIGGERS:
            await conn.execute(text(statement))
    yield engine
    await engine.dispose()

@pytest.fixture
def transport() -> InMemoryChangeFeed:
    return InMemoryChangeFeed()

@pytest.fixture
def store(engine, transport) -> RemoteStore:
    return RemoteStore(create_session_factory(engine), change_feed=transport)

@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()

@pytest.fixture
def redis_service(fake_redis) -> RedisService:
    return RedisService(redis=fake_redis)

@pytest.fixture
async def alice(store):
    return await create_profile(store, "alice", avatar_url="https://cdn.example.com/alice.png", is_verified=True)

@pytest.fixture
async def bob(store):
    return await create_profile(store, "bob")

@pytest.fixture
async def banned_user(store):
    return await create_profile(store, "mallory", is_banned=True)

@pytest.fixture
async def admin(store):
    return await create_profile(store, "moderator", is_admin=True)

@pytest.fixture
async def post(store, alice):
    return await create_post(store, alice, title="Welcome", content="Hello community", created_at=at(0))
