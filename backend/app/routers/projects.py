"""
Admin project router.

Endpoints (all under /admin/projects, admin only):
  GET    /                                  — every project, newest first
  POST   /                                  — create (manual or generated token)
  GET    /{token}                           — one project
  PATCH  /{token}                           — partial update (token immutable)
  DELETE /{token}
  POST   /{token}/status-updates            — add a status update
  PATCH  /{token}/status-updates/{id}       — edit one
  DELETE /{token}/status-updates/{id}

Error mapping:
  InvalidTokenFormat       → 422
  TokenAlreadyExists       → 409
  ProjectNameTaken         → 409
  TokenAllocationExhausted → 503 (retryable)
  ProjectNotFound / StatusUpdateNotFound → 404
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.auth.dependencies import AdminContext, require_admin
from app.schemas.projects import (
    ProjectCreate,
    ProjectOut,
    ProjectUpdate,
    StatusUpdateCreate,
    StatusUpdateEdit,
    StatusUpdateOut,
)
from app.services import projects as project_service
from app.services.document_store import DocumentStore, get_document_store
from app.services.projects import ProjectNameTaken, ProjectNotFound, StatusUpdateNotFound
from app.services.tokens import (
    TOKEN_FORMAT_HINT,
    InvalidTokenFormat,
    TokenAllocationExhausted,
    TokenAlreadyExists,
    TokenGenerator,
    get_token_generator,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Projects"])

Store = Annotated[DocumentStore, Depends(get_document_store)]
Generator = Annotated[TokenGenerator, Depends(get_token_generator)]
Admin = Annotated[AdminContext, Depends(require_admin)]


def _project_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Project not found.",
    )


# ── Projects ────────────────────────────────────────────────
@router.get(
    "",
    response_model=list[ProjectOut],
    summary="List all projects",
)
async def list_projects(store: Store, _admin: Admin) -> list[ProjectOut]:
    return await project_service.list_projects(store)


@router.post(
    "",
    response_model=ProjectOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
    description=(
        "Supply `token` to use a specific access code (any casing/spacing), "
        "or omit it to have one generated. Either way the code is unique."
    ),
)
async def create_project(
    payload: ProjectCreate,
    store: Store,
    generator: Generator,
    admin: Admin,
) -> ProjectOut:
    try:
        project = await project_service.create_project(store, generator, payload)
    except InvalidTokenFormat as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Token must match format: {TOKEN_FORMAT_HINT}",
        ) from exc
    except TokenAlreadyExists as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Token "{exc.token}" already exists. Please use a different token.',
        ) from exc
    except ProjectNameTaken as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except TokenAllocationExhausted as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not allocate a unique project token. Please try again.",
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc

    logger.info("Project %s created by %s", project.token, admin.email)
    return project


@router.get(
    "/{token}",
    response_model=ProjectOut,
    summary="Get one project",
)
async def get_project(token: str, store: Store, _admin: Admin) -> ProjectOut:
    try:
        return await project_service.get_project(store, token)
    except ProjectNotFound as exc:
        raise _project_not_found() from exc


@router.patch(
    "/{token}",
    response_model=ProjectOut,
    summary="Update a project",
    description=(
        'Only the fields present are changed. `payment_code: ""` removes the '
        "payment PIN. The token itself can never be changed."
    ),
)
async def update_project(
    token: str,
    payload: ProjectUpdate,
    store: Store,
    _admin: Admin,
) -> ProjectOut:
    try:
        return await project_service.update_project(store, token, payload)
    except ProjectNotFound as exc:
        raise _project_not_found() from exc
    except ProjectNameTaken as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


@router.delete(
    "/{token}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a project",
)
async def delete_project(token: str, store: Store, admin: Admin) -> Response:
    try:
        await project_service.delete_project(store, token)
    except ProjectNotFound as exc:
        raise _project_not_found() from exc
    logger.info("Project %s deleted by %s", token, admin.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Status updates ──────────────────────────────────────────
@router.post(
    "/{token}/status-updates",
    response_model=StatusUpdateOut,
    status_code=status.HTTP_201_CREATED,
    summary="Post a status update",
)
async def add_status_update(
    token: str,
    payload: StatusUpdateCreate,
    store: Store,
    _admin: Admin,
) -> StatusUpdateOut:
    try:
        return await project_service.add_status_update(store, token, payload)
    except ProjectNotFound as exc:
        raise _project_not_found() from exc


@router.patch(
    "/{token}/status-updates/{update_id}",
    response_model=StatusUpdateOut,
    summary="Edit a status update",
)
async def edit_status_update(
    token: str,
    update_id: str,
    payload: StatusUpdateEdit,
    store: Store,
    _admin: Admin,
) -> StatusUpdateOut:
    try:
        return await project_service.edit_status_update(store, token, update_id, payload)
    except ProjectNotFound as exc:
        raise _project_not_found() from exc
    except StatusUpdateNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Status update not found.",
        ) from exc


@router.delete(
    "/{token}/status-updates/{update_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a status update",
)
async def delete_status_update(
    token: str,
    update_id: str,
    store: Store,
    _admin: Admin,
) -> Response:
    try:
        await project_service.delete_status_update(store, token, update_id)
    except ProjectNotFound as exc:
        raise _project_not_found() from exc
    except StatusUpdateNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Status update not found.",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
