"""
Project service — the project repository plus token uniqueness.

Token allocation:
  • Manual code: normalize → validate → existence check → create-if-absent.
  • Auto-generated: up to TOKEN_MAX_ATTEMPTS candidates, each checked and
    then written with create-if-absent.

Every precondition (label uniqueness, token format, token collision) is
checked BEFORE the single write, so a rejected creation leaves nothing
behind. The write itself is the store's create-if-absent primitive, which
turns the check-then-act race into a clean TokenAlreadyExists for the
losing request instead of a silent overwrite.
"""

from __future__ import annotations

import logging
from typing import Any

from app.core.config import settings
from app.schemas.projects import (
    ClientProjectView,
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
    StatusUpdateCreate,
    StatusUpdateEdit,
    StatusUpdateOut,
    TokenCheckResult,
)
from app.services.document_store import (
    PROJECTS,
    DocumentStore,
    datetime_to_ms,
    ms_to_datetime,
    new_record_id,
    now_ms,
)
from app.services.payments import payment_links
from app.services.tokens import (
    TokenAllocationExhausted,
    TokenAlreadyExists,
    TokenGenerator,
    is_valid_token,
    normalize_token,
    parse_token,
)

logger = logging.getLogger(__name__)

MAX_STATUS_PHOTOS = 3


class ProjectNotFound(Exception):
    """No project under the given token."""


class ProjectNameTaken(Exception):
    """Another project already uses this client label (case-insensitive)."""


class StatusUpdateNotFound(Exception):
    """The project has no status update with the given ID."""


# ── Record ↔ schema ─────────────────────────────────────────
def _status_updates_out(record: dict[str, Any]) -> list[StatusUpdateOut]:
    updates = sorted(
        record.get("status_updates", []),
        key=lambda u: u.get("created_at", 0),
        reverse=True,
    )
    return [
        StatusUpdateOut(
            id=u["id"],
            title=u["title"],
            message=u["message"],
            photos=u.get("photos", []),
            created_at=ms_to_datetime(u.get("created_at", 0)),
        )
        for u in updates
    ]


def _optional_datetime(value: int | None):
    return ms_to_datetime(value) if value is not None else None


def to_project_out(record: dict[str, Any]) -> ProjectOut:
    links = payment_links()
    return ProjectOut(
        token=record["id"],
        client_label=record["client_label"],
        description=record.get("description"),
        project_type=record.get("project_type", []),
        project_start_date=_optional_datetime(record.get("project_start_date")),
        payment_code=record.get("payment_code"),
        deposit_paid=record.get("deposit_paid", False),
        final_paid=record.get("final_paid", False),
        is_completed=record.get("is_completed", False),
        venmo_handle=links.venmo_handle,
        paypal_handle=links.paypal_handle,
        status_updates=_status_updates_out(record),
        created_at=ms_to_datetime(record["created_at"]),
    )


def to_client_view(record: dict[str, Any]) -> ClientProjectView:
    pin_required = bool(record.get("payment_code"))
    return ClientProjectView(
        token=record["id"],
        client_label=record["client_label"],
        description=record.get("description"),
        project_start_date=_optional_datetime(record.get("project_start_date")),
        deposit_paid=record.get("deposit_paid", False),
        final_paid=record.get("final_paid", False),
        is_completed=record.get("is_completed", False),
        status_updates=_status_updates_out(record),
        payment_pin_required=pin_required,
        payment=None if pin_required else payment_links(),
    )


def _normalize_label(label: str) -> str:
    return label.strip().lower()


# ── Token allocation ────────────────────────────────────────
async def claim_manual_token(
    store: DocumentStore,
    raw_token: str,
    record: dict[str, Any],
) -> str:
    """
    Commit record under an operator-supplied token.

    Raises:
        InvalidTokenFormat: the normalized code is not JW-XXXX-XXXX-XXXX.
        TokenAlreadyExists: the code is taken (checked, then re-checked
            atomically by the create).
    """
    token = parse_token(raw_token)

    if await store.get(PROJECTS, token) is not None:
        raise TokenAlreadyExists(token)

    if not await store.create(PROJECTS, token, record):
        logger.warning("Token %s was claimed concurrently", token)
        raise TokenAlreadyExists(token)

    return token


async def allocate_generated_token(
    store: DocumentStore,
    generator: TokenGenerator,
    record: dict[str, Any],
    max_attempts: int,
) -> str:
    """
    Commit record under a freshly generated token.

    Makes exactly max_attempts tries before raising TokenAllocationExhausted.
    A candidate that is already taken is never written.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        candidate = generator.generate()

        if await store.get(PROJECTS, candidate) is not None:
            logger.info("Generated token collided (attempt %d/%d)", attempt, max_attempts)
            continue

        if await store.create(PROJECTS, candidate, record):
            return candidate

        logger.info("Generated token claimed concurrently (attempt %d/%d)", attempt, max_attempts)

    logger.error("Token allocation exhausted after %d attempts", max_attempts)
    raise TokenAllocationExhausted(max_attempts)


async def check_token(store: DocumentStore, raw: str) -> TokenCheckResult:
    """Normalize + validate + availability, for live feedback in the admin form."""
    normalized = normalize_token(raw)
    if not is_valid_token(normalized):
        return TokenCheckResult(normalized=normalized, valid=False)

    existing = await store.get(PROJECTS, normalized)
    return TokenCheckResult(normalized=normalized, valid=True, available=existing is None)


# ── Projects ────────────────────────────────────────────────
async def _ensure_label_free(
    store: DocumentStore,
    label: str,
    exclude_token: str | None = None,
) -> None:
    wanted = _normalize_label(label)
    for project in await store.query_all(PROJECTS, order_by="created_at"):
        if project["id"] == exclude_token:
            continue
        if _normalize_label(project.get("client_label", "")) == wanted:
            raise ProjectNameTaken(
                f'A project named "{label.strip()}" already exists. '
                "Please use a different project name."
            )


async def create_project(
    store: DocumentStore,
    generator: TokenGenerator,
    payload: ProjectCreate,
    max_attempts: int | None = None,
) -> ProjectOut:
    """
    Create a project under a manual or generated token.

    Raises:
        ProjectNameTaken, InvalidTokenFormat, TokenAlreadyExists,
        TokenAllocationExhausted. Store errors propagate unchanged.
    """
    label = payload.client_label.strip()
    if not label:
        raise ValueError("Project name is required.")

    await _ensure_label_free(store, label)

    record: dict[str, Any] = {
        "client_label": label,
        "project_type": payload.project_type,
        "deposit_paid": payload.deposit_paid,
        "final_paid": payload.final_paid,
        "is_completed": False,
        "status_updates": [],
        "created_at": now_ms(),
    }
    if payload.description and payload.description.strip():
        record["description"] = payload.description.strip()
    if payload.project_start_date is not None:
        record["project_start_date"] = datetime_to_ms(payload.project_start_date)
    if payload.payment_code:
        record["payment_code"] = payload.payment_code

    if payload.token is not None and payload.token.strip():
        token = await claim_manual_token(store, payload.token, record)
    else:
        attempts = max_attempts if max_attempts is not None else settings.TOKEN_MAX_ATTEMPTS
        token = await allocate_generated_token(store, generator, record, attempts)

    logger.info("Created project %s (%s)", token, label)
    return to_project_out({**record, "id": token})


async def find_project(store: DocumentStore, raw_token: str) -> dict[str, Any] | None:
    """
    Look up a project by any casing/spacing of its token.

    Malformed codes are answered without touching the store.
    """
    token = normalize_token(raw_token)
    if not is_valid_token(token):
        return None
    return await store.get(PROJECTS, token)


async def _require_project(store: DocumentStore, raw_token: str) -> dict[str, Any]:
    record = await find_project(store, raw_token)
    if record is None:
        raise ProjectNotFound(normalize_token(raw_token))
    return record


async def get_project(store: DocumentStore, raw_token: str) -> ProjectOut:
    return to_project_out(await _require_project(store, raw_token))


async def get_client_view(store: DocumentStore, raw_token: str) -> ClientProjectView:
    return to_client_view(await _require_project(store, raw_token))


async def list_projects(store: DocumentStore) -> list[ProjectOut]:
    """All projects, newest first."""
    records = await store.query_all(PROJECTS, order_by="created_at")
    return [to_project_out(r) for r in records]


async def update_project(
    store: DocumentStore,
    raw_token: str,
    payload: ProjectUpdate,
) -> ProjectOut:
    """Apply the fields present in payload. The token never changes."""
    record = await _require_project(store, raw_token)
    token = record["id"]
    changes = payload.model_dump(exclude_unset=True)

    partial: dict[str, Any] = {}

    if "client_label" in changes and changes["client_label"] is not None:
        label = changes["client_label"].strip()
        if not label:
            raise ValueError("Project name cannot be empty.")
        if _normalize_label(label) != _normalize_label(record["client_label"]):
            await _ensure_label_free(store, label, exclude_token=token)
        partial["client_label"] = label

    if "description" in changes:
        description = (changes["description"] or "").strip()
        partial["description"] = description or None

    if "project_type" in changes:
        partial["project_type"] = changes["project_type"] or []

    if "project_start_date" in changes:
        start = changes["project_start_date"]
        partial["project_start_date"] = datetime_to_ms(start) if start is not None else None

    if "payment_code" in changes:
        # "" (or null) removes the PIN
        partial["payment_code"] = changes["payment_code"] or None

    for flag in ("deposit_paid", "final_paid", "is_completed"):
        if changes.get(flag) is not None:
            partial[flag] = changes[flag]

    if partial:
        if not await store.update(PROJECTS, token, partial):
            raise ProjectNotFound(token)
        logger.info("Updated project %s: %s", token, sorted(partial))

    updated = await store.get(PROJECTS, token)
    if updated is None:
        raise ProjectNotFound(token)
    return to_project_out(updated)


async def delete_project(store: DocumentStore, raw_token: str) -> None:
    token = normalize_token(raw_token)
    if not is_valid_token(token) or not await store.delete(PROJECTS, token):
        raise ProjectNotFound(token)
    logger.info("Deleted project %s", token)


# ── Status updates ──────────────────────────────────────────
async def add_status_update(
    store: DocumentStore,
    raw_token: str,
    payload: StatusUpdateCreate,
) -> StatusUpdateOut:
    record = await _require_project(store, raw_token)
    update = {
        "id": new_record_id("update"),
        "title": payload.title.strip(),
        "message": payload.message.strip(),
        "photos": payload.photos[:MAX_STATUS_PHOTOS],
        "created_at": now_ms(),
    }
    updates = [*record.get("status_updates", []), update]
    if not await store.update(PROJECTS, record["id"], {"status_updates": updates}):
        raise ProjectNotFound(record["id"])

    return StatusUpdateOut(
        id=update["id"],
        title=update["title"],
        message=update["message"],
        photos=update["photos"],
        created_at=ms_to_datetime(update["created_at"]),
    )


async def edit_status_update(
    store: DocumentStore,
    raw_token: str,
    update_id: str,
    payload: StatusUpdateEdit,
) -> StatusUpdateOut:
    record = await _require_project(store, raw_token)
    updates = record.get("status_updates", [])

    target = next((u for u in updates if u["id"] == update_id), None)
    if target is None:
        raise StatusUpdateNotFound(update_id)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "title" in changes:
        target["title"] = changes["title"].strip()
    if "message" in changes:
        target["message"] = changes["message"].strip()
    if "photos" in changes:
        target["photos"] = changes["photos"][:MAX_STATUS_PHOTOS]

    if not await store.update(PROJECTS, record["id"], {"status_updates": updates}):
        raise ProjectNotFound(record["id"])

    return StatusUpdateOut(
        id=target["id"],
        title=target["title"],
        message=target["message"],
        photos=target.get("photos", []),
        created_at=ms_to_datetime(target.get("created_at", 0)),
    )


async def delete_status_update(
    store: DocumentStore,
    raw_token: str,
    update_id: str,
) -> None:
    record = await _require_project(store, raw_token)
    updates = record.get("status_updates", [])
    remaining = [u for u in updates if u["id"] != update_id]
    if len(remaining) == len(updates):
        raise StatusUpdateNotFound(update_id)

    if not await store.update(PROJECTS, record["id"], {"status_updates": remaining}):
        raise ProjectNotFound(record["id"])
