"""
Document store collaborator — key/value records grouped in collections.

Two implementations share one interface:
  • SqlDocumentStore      — Postgres JSONB rows via AsyncSession.
  • InMemoryDocumentStore — process-local dicts (dev mode and tests).

Contract notes:
  • Records go in and come out as plain dicts; reads add the key as "id".
  • create() is create-if-absent. The SQL variant uses
    INSERT … ON CONFLICT DO NOTHING, so two concurrent creates of the same
    key cannot both succeed.
  • update() is a shallow merge; a None value removes the field.
  • Store errors are never swallowed here — callers decide what to do.
"""

from __future__ import annotations

import abc
import copy
import datetime
import logging
import secrets
import time
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session_factory
from app.models.document import Document

logger = logging.getLogger(__name__)

# Collection names
PROJECTS = "projects"
FEEDBACK = "feedback"
CONTACT_REQUESTS = "contact_requests"
PAST_PROJECTS = "past_projects"


# ── Time helpers ────────────────────────────────────────────
def now_ms() -> int:
    """Current time as epoch milliseconds (the stored timestamp format)."""
    return int(time.time() * 1000)


def ms_to_datetime(value: int | float) -> datetime.datetime:
    """Convert stored epoch milliseconds back to an aware UTC datetime."""
    return datetime.datetime.fromtimestamp(value / 1000, tz=datetime.timezone.utc)


def datetime_to_ms(value: datetime.datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return int(value.timestamp() * 1000)


def new_record_id(prefix: str) -> str:
    """Generated key for records without a natural ID, e.g. feedback_1700000000000_k3x9q2a."""
    return f"{prefix}_{now_ms()}_{secrets.token_hex(4)}"


def _merge(current: dict[str, Any], partial: dict[str, Any]) -> dict[str, Any]:
    merged = {**current, **partial}
    return {k: v for k, v in merged.items() if v is not None}


def _sort_key(order_by: str):
    # Records missing the field sort as oldest.
    return lambda record: record.get(order_by) or 0


# ── Interface ───────────────────────────────────────────────
class DocumentStore(abc.ABC):
    """Async key/value access to named collections."""

    @abc.abstractmethod
    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """Return the record (with "id") or None."""

    @abc.abstractmethod
    async def create(self, collection: str, key: str, record: dict[str, Any]) -> bool:
        """Write only if the key is free. True if written, False if it already existed."""

    @abc.abstractmethod
    async def set(self, collection: str, key: str, record: dict[str, Any]) -> None:
        """Insert or replace the record under key."""

    @abc.abstractmethod
    async def update(self, collection: str, key: str, partial: dict[str, Any]) -> bool:
        """Shallow-merge partial into an existing record. False if absent."""

    @abc.abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """Remove the record. False if nothing was there."""

    @abc.abstractmethod
    async def query_all(
        self,
        collection: str,
        order_by: str,
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        """Every record in the collection, ordered by a numeric field."""

    async def add(self, collection: str, record: dict[str, Any], prefix: str | None = None) -> str:
        """Insert under a freshly generated key and return it."""
        key = new_record_id(prefix or collection)
        await self.set(collection, key, record)
        return key


# ── Postgres implementation ─────────────────────────────────
class SqlDocumentStore(DocumentStore):
    """
    Document store over the `documents` table.

    Each write commits immediately — one request performs at most a couple
    of writes, and the token flow needs the create to be durable before
    the response goes out.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        stmt = select(Document.data).where(
            Document.collection == collection,
            Document.id == key,
        )
        result = await self._session.execute(stmt)
        data = result.scalar_one_or_none()
        if data is None:
            return None
        return {**data, "id": key}

    async def create(self, collection: str, key: str, record: dict[str, Any]) -> bool:
        stmt = (
            pg_insert(Document)
            .values(collection=collection, id=key, data=record)
            .on_conflict_do_nothing(index_elements=["collection", "id"])
            .returning(Document.id)
        )
        try:
            result = await self._session.execute(stmt)
            inserted = result.scalar_one_or_none()
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            logger.exception("Failed to create %s/%s", collection, key)
            raise
        return inserted is not None

    async def set(self, collection: str, key: str, record: dict[str, Any]) -> None:
        stmt = (
            pg_insert(Document)
            .values(collection=collection, id=key, data=record)
            .on_conflict_do_update(
                index_elements=["collection", "id"],
                set_={"data": record},
            )
        )
        try:
            await self._session.execute(stmt)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

    async def update(self, collection: str, key: str, partial: dict[str, Any]) -> bool:
        stmt = (
            select(Document)
            .where(Document.collection == collection, Document.id == key)
            .with_for_update()
        )
        try:
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            if row is None:
                await self._session.rollback()
                return False
            row.data = _merge(row.data, partial)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            logger.exception("Failed to update %s/%s", collection, key)
            raise
        return True

    async def delete(self, collection: str, key: str) -> bool:
        stmt = (
            delete(Document)
            .where(Document.collection == collection, Document.id == key)
            .returning(Document.id)
        )
        try:
            result = await self._session.execute(stmt)
            deleted = result.scalar_one_or_none()
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return deleted is not None

    async def query_all(
        self,
        collection: str,
        order_by: str,
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        sort_col = Document.data[order_by].as_float()
        stmt = (
            select(Document.id, Document.data)
            .where(Document.collection == collection)
            .order_by(sort_col.desc().nulls_last() if descending else sort_col.asc().nulls_first())
        )
        result = await self._session.execute(stmt)
        return [{**row.data, "id": row.id} for row in result.all()]


# ── In-memory implementation ────────────────────────────────
class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed store.

    Records are deep-copied on the way in and out so callers can never
    mutate stored state by accident. Safe within a single event loop:
    no method awaits between its check and its write.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _bucket(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        record = self._bucket(collection).get(key)
        if record is None:
            return None
        return {**copy.deepcopy(record), "id": key}

    async def create(self, collection: str, key: str, record: dict[str, Any]) -> bool:
        bucket = self._bucket(collection)
        if key in bucket:
            return False
        bucket[key] = copy.deepcopy(record)
        return True

    async def set(self, collection: str, key: str, record: dict[str, Any]) -> None:
        self._bucket(collection)[key] = copy.deepcopy(record)

    async def update(self, collection: str, key: str, partial: dict[str, Any]) -> bool:
        bucket = self._bucket(collection)
        if key not in bucket:
            return False
        bucket[key] = _merge(bucket[key], copy.deepcopy(partial))
        return True

    async def delete(self, collection: str, key: str) -> bool:
        return self._bucket(collection).pop(key, None) is not None

    async def query_all(
        self,
        collection: str,
        order_by: str,
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        records = [
            {**copy.deepcopy(record), "id": key}
            for key, record in self._bucket(collection).items()
        ]
        records.sort(key=_sort_key(order_by), reverse=descending)
        return records


# ── Dependency ──────────────────────────────────────────────
# Shared by every request when STORE_BACKEND=memory; lost on restart.
_memory_store = InMemoryDocumentStore()


async def get_document_store() -> AsyncGenerator[DocumentStore, None]:
    """
    FastAPI dependency: one store per request.

    Postgres: the store owns a fresh AsyncSession, closed on exit.
    Memory:   the process-wide InMemoryDocumentStore.
    """
    if settings.STORE_BACKEND == "memory":
        yield _memory_store
        return

    async with async_session_factory() as session:
        yield SqlDocumentStore(session)
