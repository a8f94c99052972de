# app/services/gateway.py
"""
Persistence gateway: table-scoped CRUD over the SQLAlchemy models plus the
live feed of committed changes.

Session work runs in a worker thread so the event loop stays free, and
change events are published back on the loop after commit. A caller that
stops waiting (a loading timeout) abandons the thread's result.

Every call returns a GatewayResult; errors never propagate as exceptions
across this boundary. Callers decide whether to ``unwrap()`` or inspect
``error`` themselves.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Union

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import HubError, TransientIOError, ValidationError
from app.models import Client, Comment, Deliverable, Notification, Profile, Project, SocialPost
from app.services.realtime import ALL_EVENTS, DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed, Listener

logger = logging.getLogger(__name__)

TABLES = {
    "profiles": Profile,
    "clients": Client,
    "projects": Project,
    "deliverables": Deliverable,
    "notifications": Notification,
    "comments": Comment,
    "social_media_posts": SocialPost,
}


class Filter(NamedTuple):
    column: str
    op: str = "eq"
    value: Any = None


OPERATORS = {
    "eq": lambda col, value: col == value,
    "neq": lambda col, value: col != value,
    "lt": lambda col, value: col < value,
    "lte": lambda col, value: col <= value,
    "gt": lambda col, value: col > value,
    "gte": lambda col, value: col >= value,
    "is": lambda col, value: col.is_(value),
    "not_is": lambda col, value: col.is_not(value),
    "in": lambda col, value: col.in_(list(value)),
}

Filters = Union[Dict[str, Any], Sequence[Filter], None]


@dataclass
class GatewayResult:
    data: Any = None
    error: Optional[HubError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.data


def row_to_dict(obj) -> Dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def normalize_filters(filters: Filters) -> List[Filter]:
    if not filters:
        return []
    if isinstance(filters, dict):
        return [Filter(column, "eq", value) for column, value in filters.items()]
    return list(filters)


class SqlGateway:
    """Gateway over a SQLAlchemy session factory"""

    def __init__(self, session_factory: Callable[[], Session], feed: Optional[ChangeFeed] = None):
        self.session_factory = session_factory
        self.feed = feed or ChangeFeed()

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise ValidationError(f"Unknown table: {table}")
        return model

    def _apply_filters(self, query, model, filters: Filters):
        for f in normalize_filters(filters):
            column = getattr(model, f.column, None)
            operator = OPERATORS.get(f.op)
            if column is None or operator is None:
                raise ValidationError(f"Unsupported filter {f.column} {f.op} on {model.__tablename__}")
            query = query.filter(operator(column, f.value))
        return query

    def _apply_order(self, query, model, order_by: Iterable[str]):
        for key in order_by:
            descending = key.startswith("-")
            column = getattr(model, key.lstrip("-"), None)
            if column is None:
                raise ValidationError(f"Unknown order column {key} on {model.__tablename__}")
            query = query.order_by(column.desc() if descending else column.asc())
        return query

    async def select(
        self,
        table: str,
        filters: Filters = None,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> GatewayResult:
        def work():
            model = self._model(table)
            with self.session_factory() as db:
                query = self._apply_filters(db.query(model), model, filters)
                query = self._apply_order(query, model, order_by)
                if limit is not None:
                    query = query.limit(limit)
                return [row_to_dict(obj) for obj in query.all()]

        try:
            return GatewayResult(data=await asyncio.to_thread(work))
        except HubError as e:
            return GatewayResult(error=e)
        except SQLAlchemyError as e:
            logger.error(f"Error selecting from {table}: {e}")
            return GatewayResult(error=TransientIOError(f"Failed to read {table}"))

    async def select_one(self, table: str, filters: Filters = None) -> GatewayResult:
        """Like select, but data is the first row or None"""
        result = await self.select(table, filters, limit=1)
        if not result.ok:
            return result
        return GatewayResult(data=result.data[0] if result.data else None)

    async def insert(self, table: str, row: Dict[str, Any]) -> GatewayResult:
        def work():
            model = self._model(table)
            with self.session_factory() as db:
                try:
                    obj = model(**row)
                except TypeError as e:
                    raise ValidationError(f"Invalid row for {table}: {e}")
                db.add(obj)
                db.commit()
                db.refresh(obj)
                return row_to_dict(obj)

        try:
            created = await asyncio.to_thread(work)
        except HubError as e:
            return GatewayResult(error=e)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting into {table}: {e}")
            return GatewayResult(error=TransientIOError(f"Failed to write {table}"))

        await self.feed.publish(ChangeEvent(table, INSERT, new=created))
        return GatewayResult(data=created)

    async def update(self, table: str, filters: Filters, patch: Dict[str, Any]) -> GatewayResult:
        """Apply patch to every matching row; data is the list of updated rows"""
        def work():
            model = self._model(table)
            for field in patch:
                if not hasattr(model, field):
                    raise ValidationError(f"Unknown column {field} on {table}")
            with self.session_factory() as db:
                objs = self._apply_filters(db.query(model), model, filters).all()
                changes = []
                for obj in objs:
                    old = row_to_dict(obj)
                    for field, value in patch.items():
                        setattr(obj, field, value)
                    changes.append((old, obj))
                db.commit()
                return [(old, row_to_dict(obj)) for old, obj in changes]

        try:
            changes = await asyncio.to_thread(work)
        except HubError as e:
            return GatewayResult(error=e)
        except SQLAlchemyError as e:
            logger.error(f"Error updating {table}: {e}")
            return GatewayResult(error=TransientIOError(f"Failed to update {table}"))

        for old, new in changes:
            await self.feed.publish(ChangeEvent(table, UPDATE, new=new, old=old))
        return GatewayResult(data=[new for _, new in changes])

    async def delete(self, table: str, filters: Filters) -> GatewayResult:
        """Delete every matching row in one transaction; data is the list of deleted rows"""
        def work():
            model = self._model(table)
            with self.session_factory() as db:
                query = self._apply_filters(db.query(model), model, filters)
                removed = [row_to_dict(obj) for obj in query.all()]
                query.delete(synchronize_session=False)
                db.commit()
                return removed

        try:
            removed = await asyncio.to_thread(work)
        except HubError as e:
            return GatewayResult(error=e)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting from {table}: {e}")
            return GatewayResult(error=TransientIOError(f"Failed to delete from {table}"))

        for old in removed:
            await self.feed.publish(ChangeEvent(table, DELETE, old=old))
        return GatewayResult(data=removed)

    def subscribe(
        self,
        name: str,
        table: str,
        filters: Optional[Dict[str, Any]],
        listener: Listener,
        events: Sequence[str] = (ALL_EVENTS,),
    ) -> Callable[[], None]:
        self._model(table)
        return self.feed.subscribe(name, table, filters, listener, events)
