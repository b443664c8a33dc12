"""
Past-projects gallery.

Public:
  GET /past-projects            — every entry, featured images only
  GET /past-projects/featured   — home-page entries

Admin (/admin/past-projects):
  GET    /                      — every entry, all images
  POST   /
  GET    /by-token/{token}      — entry created from a portal project
  GET    /{entry_id}
  PATCH  /{entry_id}
  DELETE /{entry_id}
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.auth.dependencies import require_admin
from app.schemas.past_projects import PastProjectCreate, PastProjectOut, PastProjectUpdate
from app.services import past_projects as gallery
from app.services.document_store import DocumentStore, get_document_store
from app.services.past_projects import PastProjectNotFound

public_router = APIRouter(tags=["Past Projects"])
router = APIRouter(tags=["Past Projects"], dependencies=[Depends(require_admin)])

Store = Annotated[DocumentStore, Depends(get_document_store)]

_NOT_FOUND = HTTPException(
    status_code=status.HTTP_404_NOT_FOUND,
    detail="Past project not found.",
)


# ── Public ──────────────────────────────────────────────────
@public_router.get(
    "/past-projects",
    response_model=list[PastProjectOut],
    summary="Gallery (featured images only)",
)
async def public_gallery(store: Store) -> list[PastProjectOut]:
    return await gallery.list_public_past_projects(store)


@public_router.get(
    "/past-projects/featured",
    response_model=list[PastProjectOut],
    summary="Entries shown on the home page",
)
async def home_page_gallery(store: Store) -> list[PastProjectOut]:
    return await gallery.list_home_page_projects(store)


# ── Admin ───────────────────────────────────────────────────
@router.get("", response_model=list[PastProjectOut], summary="List gallery entries")
async def list_entries(store: Store) -> list[PastProjectOut]:
    return await gallery.list_past_projects(store)


@router.post(
    "",
    response_model=PastProjectOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add a gallery entry",
)
async def create_entry(payload: PastProjectCreate, store: Store) -> PastProjectOut:
    return await gallery.create_past_project(store, payload)


@router.get(
    "/by-token/{token}",
    response_model=PastProjectOut,
    summary="Gallery entry for a portal project",
)
async def get_entry_by_token(token: str, store: Store) -> PastProjectOut:
    entry = await gallery.find_by_project_token(store, token)
    if entry is None:
        raise _NOT_FOUND
    return entry


@router.get("/{entry_id}", response_model=PastProjectOut, summary="Get a gallery entry")
async def get_entry(entry_id: str, store: Store) -> PastProjectOut:
    try:
        return await gallery.get_past_project(store, entry_id)
    except PastProjectNotFound as exc:
        raise _NOT_FOUND from exc


@router.patch("/{entry_id}", response_model=PastProjectOut, summary="Edit a gallery entry")
async def update_entry(
    entry_id: str,
    payload: PastProjectUpdate,
    store: Store,
) -> PastProjectOut:
    try:
        return await gallery.update_past_project(store, entry_id, payload)
    except PastProjectNotFound as exc:
        raise _NOT_FOUND from exc


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a gallery entry",
)
async def delete_entry(entry_id: str, store: Store) -> Response:
    try:
        await gallery.delete_past_project(store, entry_id)
    except PastProjectNotFound as exc:
        raise _NOT_FOUND from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
