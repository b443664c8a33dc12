"""
Past-projects gallery.

Completed work shown on the marketing site. Each entry holds a curated
set of ImageKit images; only images flagged is_featured are ever served
publicly, and only entries flagged is_featured_on_home_page (with at least
one featured image) appear on the home page.
"""

from __future__ import annotations

import logging
from typing import Any

from app.schemas.past_projects import (
    GalleryImage,
    PastProjectCreate,
    PastProjectOut,
    PastProjectUpdate,
)
from app.services.document_store import (
    PAST_PROJECTS,
    DocumentStore,
    ms_to_datetime,
    now_ms,
)
from app.services.tokens import normalize_token

logger = logging.getLogger(__name__)


class PastProjectNotFound(Exception):
    """No gallery entry with the given ID."""


def _to_out(record: dict[str, Any]) -> PastProjectOut:
    return PastProjectOut(
        id=record["id"],
        project_token=record.get("project_token"),
        title=record["title"],
        description=record.get("description"),
        selected_images=[GalleryImage(**img) for img in record.get("selected_images", [])],
        is_featured_on_home_page=record.get("is_featured_on_home_page", False),
        created_at=ms_to_datetime(record["created_at"]),
        completed_at=ms_to_datetime(record.get("completed_at", record["created_at"])),
    )


def _featured_only(entry: PastProjectOut) -> PastProjectOut:
    return entry.model_copy(
        update={"selected_images": [img for img in entry.selected_images if img.is_featured]}
    )


async def create_past_project(store: DocumentStore, payload: PastProjectCreate) -> PastProjectOut:
    now = now_ms()
    record: dict[str, Any] = {
        "title": payload.title.strip(),
        "selected_images": [img.model_dump() for img in payload.selected_images],
        "is_featured_on_home_page": payload.is_featured_on_home_page,
        "created_at": now,
        "completed_at": now,
    }
    if payload.project_token and payload.project_token.strip():
        record["project_token"] = normalize_token(payload.project_token)
    if payload.description and payload.description.strip():
        record["description"] = payload.description.strip()

    key = await store.add(PAST_PROJECTS, record, prefix="past")
    logger.info("Gallery entry %s created", key)
    return _to_out({**record, "id": key})


async def list_past_projects(store: DocumentStore) -> list[PastProjectOut]:
    """All entries, most recently completed first (admin view)."""
    records = await store.query_all(PAST_PROJECTS, order_by="completed_at")
    return [_to_out(r) for r in records]


async def list_public_past_projects(store: DocumentStore) -> list[PastProjectOut]:
    """All entries, stripped down to their featured images."""
    return [_featured_only(entry) for entry in await list_past_projects(store)]


async def list_home_page_projects(store: DocumentStore) -> list[PastProjectOut]:
    """Entries flagged for the home page that still have a featured image."""
    entries = [
        _featured_only(entry)
        for entry in await list_past_projects(store)
        if entry.is_featured_on_home_page
    ]
    return [entry for entry in entries if entry.selected_images]


async def get_past_project(store: DocumentStore, entry_id: str) -> PastProjectOut:
    record = await store.get(PAST_PROJECTS, entry_id)
    if record is None:
        raise PastProjectNotFound(entry_id)
    return _to_out(record)


async def find_by_project_token(store: DocumentStore, raw_token: str) -> PastProjectOut | None:
    token = normalize_token(raw_token)
    for entry in await list_past_projects(store):
        if entry.project_token == token:
            return entry
    return None


async def update_past_project(
    store: DocumentStore,
    entry_id: str,
    payload: PastProjectUpdate,
) -> PastProjectOut:
    changes = payload.model_dump(exclude_unset=True)
    partial: dict[str, Any] = {}

    if changes.get("title") is not None:
        partial["title"] = changes["title"].strip()
    if "description" in changes:
        # blank clears the description
        partial["description"] = (changes["description"] or "").strip() or None
    if changes.get("selected_images") is not None:
        partial["selected_images"] = changes["selected_images"]
    if changes.get("is_featured_on_home_page") is not None:
        partial["is_featured_on_home_page"] = changes["is_featured_on_home_page"]

    if not await store.update(PAST_PROJECTS, entry_id, partial):
        raise PastProjectNotFound(entry_id)
    return await get_past_project(store, entry_id)


async def delete_past_project(store: DocumentStore, entry_id: str) -> None:
    if not await store.delete(PAST_PROJECTS, entry_id):
        raise PastProjectNotFound(entry_id)
