#!/usr/bin/env python3
"""
Database initialization script
"""
import asyncio
import sys
from pathlib import Path

# Add the project root to the Python path
current_dir = Path(__file__).parent
root_dir = current_dir.parent
sys.path.insert(0, str(root_dir))

async def init_database() -> None:
    """Create tables and the likes counter triggers"""
    from feedsync.config import settings
    from feedsync.db.session import close_db, create_engine_from_settings, init_db

    print(f"🚀 Initializing database: {settings.database_url}")

    engine = create_engine_from_settings(settings)
    try:
        await init_db(engine)
        print("✅ Database initialized successfully")
    finally:
        await close_db(engine)

async def seed_database() -> None:
    """Create a moderator, a couple of members and some activity for development"""
    from feedsync.config import settings
    from feedsync.db.session import close_db, create_engine_from_settings, create_session_factory
    from feedsync.exceptions import FeedSyncError
    from feedsync.models.base import generate_uuid
    from feedsync.services.remote_store import RemoteStore

    print("👤 Creating initial data...")

    engine = create_engine_from_settings(settings)
    store = RemoteStore(create_session_factory(engine))
    try:
        profiles = {}
        for username, flags in [
            ("admin", {"is_admin": True, "is_verified": True}),
            ("john_doe", {"is_verified": True}),
            ("jane_smith", {}),
        ]:
            existing = await store.maybe_single("profiles", {"username": username})
            profiles[username] = existing or await store.insert("profiles", {"id": generate_uuid(), "username": username, **flags})

        if await store.select("posts", limit=1):
            print("ℹ️  Posts already present, skipping activity")
            return

        post = await store.insert("posts", {
            "user_id": profiles["john_doe"]["id"],
            "title": "Welcome to the community",
            "content": "Say hello below!",
        })
        await store.insert("comments", {"post_id": post["id"], "user_id": profiles["jane_smith"]["id"], "content": "Hello!"})
        await store.insert("likes", {"post_id": post["id"], "user_id": profiles["jane_smith"]["id"]})
        await store.insert("notifications", {
            "user_id": profiles["john_doe"]["id"],
            "title": "New comment",
            "message": "jane_smith commented on your post",
            "type": "comment",
            "related_entity_id": post["id"],
            "related_entity_type": "post",
        })
        print(f"✅ Seeded {len(profiles)} profiles and a welcome post")
    except FeedSyncError as e:
        print(f"⚠️  Error creating initial data: {e.message}")
    finally:
        await close_db(engine)

async def check_database_connection() -> bool:
    """Check if database is accessible"""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError
    from feedsync.config import settings
    from feedsync.db.session import close_db, create_engine_from_settings

    engine = create_engine_from_settings(settings)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        print("✅ Database connection successful")
        return True
    except (SQLAlchemyError, OSError) as e:
        print(f"❌ Database connection failed: {e}")
        return False
    finally:
        await close_db(engine)

async def drop_database(confirm: bool = False) -> None:
    """Drop all database tables"""
    if not confirm:
        print("⚠️  WARNING: This will drop ALL tables and data!")
        print("   Use --confirm flag to proceed")
        return

    from feedsync.config import settings
    from feedsync.db.session import close_db, create_engine_from_settings
    from feedsync.models import Base

    engine = create_engine_from_settings(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        print("✅ Database dropped successfully")
    finally:
        await close_db(engine)

def main() -> None:
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Database Initialization")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Initialize database")
    subparsers.add_parser("check", help="Check database connection")

    drop_parser = subparsers.add_parser("drop", help="Drop database (DANGEROUS!)")
    drop_parser.add_argument("--confirm", action="store_true", help="Confirm drop")

    subparsers.add_parser("seed", help="Seed development data")

    reset_parser = subparsers.add_parser("reset", help="Drop and reinitialize")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm reset")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "init":
            asyncio.run(init_database())

        elif args.command == "check":
            success = asyncio.run(check_database_connection())
            sys.exit(0 if success else 1)

        elif args.command == "drop":
            asyncio.run(drop_database(args.confirm))

        elif args.command == "seed":
            asyncio.run(seed_database())

        elif args.command == "reset":
            if not args.confirm:
                print("⚠️  WARNING: This will drop ALL tables and data!")
                print("   Use --confirm flag to proceed")
                return

            asyncio.run(drop_database(True))
            asyncio.run(init_database())

    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user")
        sys.exit(1)

if __name__ == "__main__":
    main()
