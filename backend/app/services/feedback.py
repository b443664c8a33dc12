"""Feedback and testimonial persistence."""

from __future__ import annotations

import logging
from typing import Any

from app.schemas.feedback import (
    AdminFeedbackCreate,
    ClientFeedbackCreate,
    FeedbackOut,
    FeedbackUpdate,
)
from app.services.document_store import FEEDBACK, DocumentStore, ms_to_datetime, now_ms
from app.services.projects import ProjectNotFound, find_project

logger = logging.getLogger(__name__)


class FeedbackNotFound(Exception):
    """No feedback with the given ID."""


def _to_out(record: dict[str, Any]) -> FeedbackOut:
    return FeedbackOut(
        id=record["id"],
        project_token=record.get("project_token"),
        project_name=record["project_name"],
        rating=record["rating"],
        comment=record["comment"],
        client_name=record.get("client_name"),
        title=record.get("title"),
        allow_testimonial=record.get("allow_testimonial", False),
        is_testimonial=record.get("is_testimonial", False),
        created_at=ms_to_datetime(record["created_at"]),
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


async def _insert(store: DocumentStore, record: dict[str, Any]) -> FeedbackOut:
    record = {k: v for k, v in record.items() if v is not None}
    key = await store.add(FEEDBACK, record, prefix="feedback")
    return _to_out({**record, "id": key})


async def submit_client_feedback(
    store: DocumentStore,
    raw_token: str,
    payload: ClientFeedbackCreate,
) -> FeedbackOut:
    """Feedback from the client portal. Never published directly."""
    project = await find_project(store, raw_token)
    if project is None:
        raise ProjectNotFound(raw_token)

    feedback = await _insert(store, {
        "project_token": project["id"],
        "project_name": project["client_label"],
        "rating": payload.rating,
        "comment": payload.comment.strip(),
        "client_name": _clean(payload.client_name),
        "allow_testimonial": payload.allow_testimonial,
        "is_testimonial": False,
        "created_at": now_ms(),
    })
    logger.info("Feedback %s received for project %s", feedback.id, project["id"])
    return feedback


async def create_feedback(store: DocumentStore, payload: AdminFeedbackCreate) -> FeedbackOut:
    return await _insert(store, {
        "project_token": _clean(payload.project_token),
        "project_name": payload.project_name.strip(),
        "rating": payload.rating,
        "comment": payload.comment.strip(),
        "client_name": _clean(payload.client_name),
        "title": _clean(payload.title),
        "allow_testimonial": payload.allow_testimonial,
        "is_testimonial": payload.is_testimonial,
        "created_at": now_ms(),
    })


async def list_feedback(store: DocumentStore) -> list[FeedbackOut]:
    """All feedback, newest first."""
    return [_to_out(r) for r in await store.query_all(FEEDBACK, order_by="created_at")]


async def list_testimonials(store: DocumentStore) -> list[FeedbackOut]:
    """Published testimonials only, newest first."""
    return [f for f in await list_feedback(store) if f.is_testimonial]


async def update_feedback(
    store: DocumentStore,
    feedback_id: str,
    payload: FeedbackUpdate,
) -> FeedbackOut:
    changes = payload.model_dump(exclude_unset=True)
    partial: dict[str, Any] = {}
    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip() or None
        partial[field] = value

    # Required fields can be changed but not cleared
    for required in ("rating", "comment"):
        if required in partial and partial[required] is None:
            del partial[required]

    if not await store.update(FEEDBACK, feedback_id, partial):
        raise FeedbackNotFound(feedback_id)

    record = await store.get(FEEDBACK, feedback_id)
    if record is None:
        raise FeedbackNotFound(feedback_id)
    return _to_out(record)


async def delete_feedback(store: DocumentStore, feedback_id: str) -> None:
    if not await store.delete(FEEDBACK, feedback_id):
        raise FeedbackNotFound(feedback_id)
