"""
Admin token tools — used by the "new project" form.

Endpoints:
  GET  /admin/tokens/generate — a fresh candidate (not reserved)
  POST /admin/tokens/check    — normalize + validate + availability
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.auth.dependencies import require_admin
from app.schemas.projects import GeneratedToken, TokenCheckRequest, TokenCheckResult
from app.services.document_store import DocumentStore, get_document_store
from app.services.projects import check_token
from app.services.tokens import TokenGenerator, get_token_generator

router = APIRouter(tags=["Tokens"], dependencies=[Depends(require_admin)])

Store = Annotated[DocumentStore, Depends(get_document_store)]
Generator = Annotated[TokenGenerator, Depends(get_token_generator)]


@router.get(
    "/generate",
    response_model=GeneratedToken,
    summary="Suggest a new project token",
    description=(
        "Returns a well-formed token. Nothing is reserved: uniqueness is "
        "only enforced when the project is created."
    ),
)
async def generate_token(generator: Generator) -> GeneratedToken:
    return GeneratedToken(token=generator.generate(), secure=generator.is_secure)


@router.post(
    "/check",
    response_model=TokenCheckResult,
    summary="Check a manually entered token",
)
async def check_manual_token(payload: TokenCheckRequest, store: Store) -> TokenCheckResult:
    return await check_token(store, payload.raw)
