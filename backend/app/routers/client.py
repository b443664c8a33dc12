"""
Client portal router — public, authenticated only by the project token.

Endpoints:
  POST /client/lookup                     — token → project view
  GET  /client/projects/{token}           — same, token in the path
  POST /client/projects/{token}/payment   — unlock payment links with the PIN
  POST /client/projects/{token}/feedback  — leave a rating + comment

The token is accepted in any casing/spacing. A malformed token and an
unknown token both answer 404 with the same message, so the portal never
tells a guesser which codes exist.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas.feedback import ClientFeedbackCreate, FeedbackOut
from app.schemas.projects import ClientProjectView, PaymentLinks, PaymentUnlock, TokenLookup
from app.services import projects as project_service
from app.services.document_store import DocumentStore, get_document_store
from app.services.feedback import submit_client_feedback
from app.services.payments import payment_links, pin_matches
from app.services.projects import ProjectNotFound

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Client Portal"])

Store = Annotated[DocumentStore, Depends(get_document_store)]

_NOT_FOUND = HTTPException(
    status_code=status.HTTP_404_NOT_FOUND,
    detail="Project not found. Please check your access code.",
)


async def _client_view(store: DocumentStore, token: str) -> ClientProjectView:
    try:
        return await project_service.get_client_view(store, token)
    except ProjectNotFound as exc:
        raise _NOT_FOUND from exc


@router.post(
    "/lookup",
    response_model=ClientProjectView,
    summary="Open a project by access code",
)
async def lookup_project(payload: TokenLookup, store: Store) -> ClientProjectView:
    return await _client_view(store, payload.token)


@router.get(
    "/projects/{token}",
    response_model=ClientProjectView,
    summary="Project as seen by the client",
)
async def get_client_project(token: str, store: Store) -> ClientProjectView:
    return await _client_view(store, token)


@router.post(
    "/projects/{token}/payment",
    response_model=PaymentLinks,
    summary="Unlock payment links",
    description="Only for projects with a payment PIN; others show links directly.",
)
async def unlock_payment(token: str, payload: PaymentUnlock, store: Store) -> PaymentLinks:
    project = await project_service.find_project(store, token)
    if project is None:
        raise _NOT_FOUND

    expected = project.get("payment_code")
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This project does not use a payment PIN.",
        )

    if not pin_matches(expected, payload.pin):
        logger.info("Wrong payment PIN for project %s", project["id"])
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Incorrect PIN.",
        )

    return payment_links()


@router.post(
    "/projects/{token}/feedback",
    response_model=FeedbackOut,
    status_code=status.HTTP_201_CREATED,
    summary="Leave feedback on a project",
)
async def leave_feedback(
    token: str,
    payload: ClientFeedbackCreate,
    store: Store,
) -> FeedbackOut:
    try:
        return await submit_client_feedback(store, token, payload)
    except ProjectNotFound as exc:
        raise _NOT_FOUND from exc
