"""
Async data API over the hosted relational store.

Mirrors the small surface the feed needs from the platform's data client:
filtered selects with an optional author join, single-row reads, and
insert/update/delete by equality filters. Failures leave this module already
classified; successful writes are announced on the change feed, one event per
affected row.
"""
from typing import Any, Dict, List, Optional, Tuple, Type
import logging

from sqlalchemy import asc, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from feedsync.exceptions import NotFoundError, ValidationError, classify_error
from feedsync.models import Comment, Like, Notification, Post, Profile
from feedsync.models.base import BaseModel
from feedsync.realtime.transport import ChangeFeedTransport
from feedsync.schemas.realtime_schema import ChangeEvent, ChangeEventType

logger = logging.getLogger(__name__)

TABLES: Dict[str, Type[BaseModel]] = {
    "profiles": Profile,
    "posts": Post,
    "comments": Comment,
    "likes": Like,
    "notifications": Notification,
}

AUTHOR_FIELDS = ("id", "username", "avatar_url", "is_verified")

# Rows removed by ON DELETE CASCADE, announced alongside their parent
CASCADES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "profiles": (("posts", "user_id"), ("comments", "user_id"), ("likes", "user_id"), ("notifications", "user_id")),
    "posts": (("comments", "post_id"), ("likes", "post_id")),
}

def row_to_dict(obj: BaseModel) -> Dict[str, Any]:
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}

def author_to_dict(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {name: getattr(profile, name) for name in AUTHOR_FIELDS}

class RemoteStore:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        change_feed: Optional[ChangeFeedTransport] = None,
        schema_name: str = "public",
        permission_marker: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.change_feed = change_feed
        self.schema_name = schema_name
        self.permission_marker = permission_marker

    def _model(self, table: str) -> Type[BaseModel]:
        try:
            return TABLES[table]
        except KeyError:
            raise ValidationError(f"Unknown table: {table}")

    def _conditions(self, model: Type[BaseModel], filters: Optional[Dict[str, Any]]) -> list:
        conditions = []
        columns = model.__table__.columns
        for name, value in (filters or {}).items():
            if name not in columns:
                raise ValidationError(f"Unknown column {model.__tablename__}.{name}", field=name)
            conditions.append(getattr(model, name) == value)
        return conditions

    def _classify(self, exc: BaseException):
        return classify_error(exc, self.permission_marker)

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = "created_at",
        descending: bool = False,
        limit: Optional[int] = None,
        with_author: bool = False,
    ) -> List[Dict[str, Any]]:
        """Select rows matching every equality filter, optionally joined with their author"""
        model = self._model(table)
        conditions = self._conditions(model, filters)

        if with_author:
            stmt = select(model, Profile).outerjoin(Profile, Profile.id == model.user_id)
        else:
            stmt = select(model)
        stmt = stmt.where(*conditions)

        if order_by:
            direction = desc if descending else asc
            stmt = stmt.order_by(direction(getattr(model, order_by)), direction(model.id))
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                if with_author:
                    return [
                        {**row_to_dict(obj), "author": author_to_dict(profile)}
                        for obj, profile in result.all()
                    ]
                return [row_to_dict(obj) for obj in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            raise self._classify(e) from e

    async def maybe_single(self, table: str, filters: Dict[str, Any], with_author: bool = False) -> Optional[Dict[str, Any]]:
        """Return the one matching row, or None"""
        rows = await self.select(table, filters=filters, order_by=None, limit=2, with_author=with_author)
        if len(rows) > 1:
            raise ValidationError(f"Expected at most one row from {table}")
        return rows[0] if rows else None

    async def single(self, table: str, filters: Dict[str, Any], with_author: bool = False) -> Dict[str, Any]:
        """Return the one matching row or raise NotFoundError"""
        row = await self.maybe_single(table, filters, with_author=with_author)
        if row is None:
            raise NotFoundError(f"No row in {table} matching {filters}")
        return row

    async def insert(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        try:
            async with self.session_factory() as session:
                obj = model(**values)
                session.add(obj)
                await session.flush()
                await session.refresh(obj)
                row = row_to_dict(obj)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise self._classify(e) from e
        except TypeError as e:
            raise ValidationError(str(e)) from e

        logger.info(f"Inserted {table} row {row['id']}")
        await self._publish(table, ChangeEventType.INSERT, new=row)
        return row

    async def update(self, table: str, values: Dict[str, Any], filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        model = self._model(table)
        conditions = self._conditions(model, filters)
        for name in values:
            if name not in model.__table__.columns:
                raise ValidationError(f"Unknown column {table}.{name}", field=name)

        changes = []
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(model).where(*conditions))
                objs = result.scalars().all()
                for obj in objs:
                    old = row_to_dict(obj)
                    for name, value in values.items():
                        setattr(obj, name, value)
                    changes.append((old, obj))
                await session.flush()
                for _, obj in changes:
                    await session.refresh(obj)
                await session.commit()
                rows = [(old, row_to_dict(obj)) for old, obj in changes]
        except (SQLAlchemyError, OSError) as e:
            raise self._classify(e) from e

        logger.info(f"Updated {len(rows)} {table} row(s)")
        for old, new in rows:
            await self._publish(table, ChangeEventType.UPDATE, new=new, old=old)
        return [new for _, new in rows]

    async def delete(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        model = self._model(table)
        conditions = self._conditions(model, filters)
        if not conditions:
            raise ValidationError(f"Refusing to delete every row of {table}")

        try:
            async with self.session_factory() as session:
                result = await session.execute(select(model).where(*conditions))
                objs = result.scalars().all()
                rows = [row_to_dict(obj) for obj in objs]
                cascaded = await self._cascaded(session, table, rows)
                for obj in objs:
                    await session.delete(obj)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise self._classify(e) from e

        logger.info(f"Deleted {len(rows)} {table} row(s), {len(cascaded)} cascaded")
        for dependent_table, old in cascaded:
            await self._publish(dependent_table, ChangeEventType.DELETE, old=old)
        for old in rows:
            await self._publish(table, ChangeEventType.DELETE, old=old)
        return rows

    async def _cascaded(self, session, table: str, rows: List[Dict[str, Any]]) -> List[Tuple[str, Dict[str, Any]]]:
        """Dependent rows the database will remove together with ``rows``"""
        found = []
        parent_ids = [row["id"] for row in rows]
        if not parent_ids:
            return found
        for dependent_table, column in CASCADES.get(table, ()):
            dependent = TABLES[dependent_table]
            result = await session.execute(select(dependent).where(getattr(dependent, column).in_(parent_ids)))
            dependent_rows = [row_to_dict(obj) for obj in result.scalars().all()]
            seen = {row["id"] for _, row in found}
            dependent_rows = [row for row in dependent_rows if row["id"] not in seen]
            found.extend(await self._cascaded(session, dependent_table, dependent_rows))
            found.extend((dependent_table, row) for row in dependent_rows)
        return found

    async def _publish(
        self,
        table: str,
        event_type: ChangeEventType,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self.change_feed is None:
            return
        event = ChangeEvent(
            schema_name=self.schema_name,
            table=table,
            event_type=event_type,
            new=new or {},
            old=old or {},
        )
        try:
            await self.change_feed.publish(event)
        except Exception as e:
            # The write already committed; subscribers catch up on their next refresh
            logger.warning(f"Failed to publish {event_type.value} on {table}: {e}")
