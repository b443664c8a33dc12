"""
Feedback and testimonials.

Public:
  GET /testimonials                — published testimonials, newest first

Admin (/admin/feedback):
  GET    /                         — all feedback
  POST   /                         — record feedback received elsewhere
  PATCH  /{feedback_id}            — edit / publish as testimonial
  DELETE /{feedback_id}
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.auth.dependencies import require_admin
from app.schemas.feedback import AdminFeedbackCreate, FeedbackOut, FeedbackUpdate
from app.services import feedback as feedback_service
from app.services.document_store import DocumentStore, get_document_store
from app.services.feedback import FeedbackNotFound

public_router = APIRouter(tags=["Testimonials"])
router = APIRouter(tags=["Feedback"], dependencies=[Depends(require_admin)])

Store = Annotated[DocumentStore, Depends(get_document_store)]

_NOT_FOUND = HTTPException(
    status_code=status.HTTP_404_NOT_FOUND,
    detail="Feedback not found.",
)


@public_router.get(
    "/testimonials",
    response_model=list[FeedbackOut],
    summary="Published testimonials",
)
async def get_testimonials(store: Store) -> list[FeedbackOut]:
    return await feedback_service.list_testimonials(store)


@router.get("", response_model=list[FeedbackOut], summary="List all feedback")
async def list_feedback(store: Store) -> list[FeedbackOut]:
    return await feedback_service.list_feedback(store)


@router.post(
    "",
    response_model=FeedbackOut,
    status_code=status.HTTP_201_CREATED,
    summary="Add feedback manually",
)
async def create_feedback(payload: AdminFeedbackCreate, store: Store) -> FeedbackOut:
    return await feedback_service.create_feedback(store, payload)


@router.patch("/{feedback_id}", response_model=FeedbackOut, summary="Edit feedback")
async def update_feedback(
    feedback_id: str,
    payload: FeedbackUpdate,
    store: Store,
) -> FeedbackOut:
    try:
        return await feedback_service.update_feedback(store, feedback_id, payload)
    except FeedbackNotFound as exc:
        raise _NOT_FOUND from exc


@router.delete(
    "/{feedback_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete feedback",
)
async def delete_feedback(feedback_id: str, store: Store) -> Response:
    try:
        await feedback_service.delete_feedback(store, feedback_id)
    except FeedbackNotFound as exc:
        raise _NOT_FOUND from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
