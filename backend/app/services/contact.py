"""
Contact request persistence.

The public form predates the portal and only has one free-text column in
the inbox, so optional answers (budget, contractor/designer involvement,
extra details) are appended to the message the way the old form did, as
well as being kept as separate fields.
"""

from __future__ import annotations

import logging
from typing import Any

from app.schemas.contact import (
    ContactRequestCreate,
    ContactRequestOut,
    ContactStatus,
)
from app.services.document_store import (
    CONTACT_REQUESTS,
    DocumentStore,
    ms_to_datetime,
    now_ms,
)

logger = logging.getLogger(__name__)


class ContactRequestNotFound(Exception):
    """No contact request with the given ID."""


def compose_message(payload: ContactRequestCreate) -> str:
    """Main message followed by the optional form answers."""
    parts = [payload.message.strip()]
    if payload.budget:
        parts.append(f"Budget: {payload.budget}")
    if payload.contractor_involved:
        parts.append("Contractor Involved: Yes")
    if payload.designer_involved:
        parts.append("Designer Involved: Yes")
    if payload.additional_details:
        parts.append(f"Additional Details:\n{payload.additional_details}")
    return "\n\n".join(parts).strip()


def _to_out(record: dict[str, Any]) -> ContactRequestOut:
    return ContactRequestOut(
        id=record["id"],
        name=record["name"],
        email=record["email"],
        phone=record.get("phone"),
        message=record["message"],
        budget=record.get("budget"),
        contractor_involved=record.get("contractor_involved"),
        designer_involved=record.get("designer_involved"),
        additional_details=record.get("additional_details"),
        status=record.get("status", "new"),
        created_at=ms_to_datetime(record["created_at"]),
    )


async def create_contact_request(
    store: DocumentStore,
    payload: ContactRequestCreate,
) -> ContactRequestOut:
    record: dict[str, Any] = {
        "name": payload.name.strip(),
        "email": payload.email.strip(),
        "message": compose_message(payload),
        "contractor_involved": payload.contractor_involved,
        "designer_involved": payload.designer_involved,
        "status": "new",
        "created_at": now_ms(),
    }
    for optional in ("phone", "budget", "additional_details"):
        value = getattr(payload, optional)
        if value and value.strip():
            record[optional] = value.strip()

    key = await store.add(CONTACT_REQUESTS, record, prefix="contact")
    logger.info("Contact request %s stored", key)
    return _to_out({**record, "id": key})


async def list_contact_requests(store: DocumentStore) -> list[ContactRequestOut]:
    """All requests, newest first."""
    records = await store.query_all(CONTACT_REQUESTS, order_by="created_at")
    return [_to_out(r) for r in records]


async def set_contact_status(
    store: DocumentStore,
    request_id: str,
    status: ContactStatus,
) -> ContactRequestOut:
    if not await store.update(CONTACT_REQUESTS, request_id, {"status": status}):
        raise ContactRequestNotFound(request_id)
    record = await store.get(CONTACT_REQUESTS, request_id)
    if record is None:
        raise ContactRequestNotFound(request_id)
    return _to_out(record)


async def delete_contact_request(store: DocumentStore, request_id: str) -> None:
    if not await store.delete(CONTACT_REQUESTS, request_id):
        raise ContactRequestNotFound(request_id)
