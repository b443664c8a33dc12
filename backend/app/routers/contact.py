"""
Contact form + admin inbox.

Public:
  POST /contact — multipart/urlencoded form from the marketing site

Admin (/admin/contact-requests):
  GET    /              — all requests, newest first
  PATCH  /{request_id}  — set status (new / read / replied / archived)
  DELETE /{request_id}

The public form posts `username` on older pages and `name` on newer ones;
both are accepted. Checkbox answers arrive as "Yes", "true", "on" or "1".
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, HTTPException, Response, status

from app.auth.dependencies import require_admin
from app.schemas.contact import (
    ContactRequestCreate,
    ContactRequestOut,
    ContactRequestUpdate,
    ContactSubmitted,
)
from app.services import contact as contact_service
from app.services.contact import ContactRequestNotFound
from app.services.document_store import DocumentStore, get_document_store

logger = logging.getLogger(__name__)

public_router = APIRouter(tags=["Contact"])
router = APIRouter(tags=["Contact"], dependencies=[Depends(require_admin)])

Store = Annotated[DocumentStore, Depends(get_document_store)]

_TRUTHY = {"yes", "true", "on", "1"}


def _form_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _form_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


@public_router.post(
    "/contact",
    response_model=ContactSubmitted,
    status_code=status.HTTP_201_CREATED,
    summary="Submit the contact form",
)
async def submit_contact(
    store: Store,
    name: Annotated[str | None, Form()] = None,
    username: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
    phone: Annotated[str | None, Form()] = None,
    message: Annotated[str | None, Form()] = None,
    budget: Annotated[str | None, Form()] = None,
    contractor_involved: Annotated[str | None, Form()] = None,
    designer_involved: Annotated[str | None, Form()] = None,
    additional_details: Annotated[str | None, Form()] = None,
) -> ContactSubmitted:
    sender = _form_text(name) or _form_text(username)
    email = _form_text(email)
    message = _form_text(message)

    if not sender or not email or not message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: name, email, and message are required",
        )

    payload = ContactRequestCreate(
        name=sender,
        email=email,
        phone=_form_text(phone),
        budget=_form_text(budget),
        contractor_involved=_form_flag(contractor_involved),
        designer_involved=_form_flag(designer_involved),
        additional_details=_form_text(additional_details),
        message=message,
    )
    try:
        await contact_service.create_contact_request(store, payload)
    except Exception:
        logger.exception("Failed to store contact request")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit contact request. Please try again.",
        )

    return ContactSubmitted()


@router.get("", response_model=list[ContactRequestOut], summary="List contact requests")
async def list_contact_requests(store: Store) -> list[ContactRequestOut]:
    return await contact_service.list_contact_requests(store)


@router.patch(
    "/{request_id}",
    response_model=ContactRequestOut,
    summary="Change a request's status",
)
async def update_contact_request(
    request_id: str,
    payload: ContactRequestUpdate,
    store: Store,
) -> ContactRequestOut:
    try:
        return await contact_service.set_contact_status(store, request_id, payload.status)
    except ContactRequestNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact request not found.",
        ) from exc


@router.delete(
    "/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a contact request",
)
async def delete_contact_request(request_id: str, store: Store) -> Response:
    try:
        await contact_service.delete_contact_request(store, request_id)
    except ContactRequestNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Contact request not found.",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
