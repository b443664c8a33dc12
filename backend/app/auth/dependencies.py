"""
FastAPI dependency for admin access.

Flow:
  1. Read the X-Admin-Email header (set by the admin front end after
     its identity-provider sign-in)
  2. Lowercase + trim
  3. Check it against settings.ADMIN_EMAILS

Responses:
  • 401 when the header is missing or blank
  • 403 when the email is not on the allow-list
Both use a fixed message so nothing about the allow-list leaks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Header, HTTPException, status

from app.core.config import settings

logger = logging.getLogger(__name__)

_NOT_AUTHENTICATED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Admin sign-in required.",
)

_NOT_AUTHORIZED = HTTPException(
    status_code=status.HTTP_403_FORBIDDEN,
    detail="This account is not allowed to use the admin dashboard.",
)


@dataclass(frozen=True, slots=True)
class AdminContext:
    """Authenticated admin injected into every /admin route."""

    email: str


def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    return email.strip().lower() or None


def is_admin_email(email: str | None) -> bool:
    normalized = normalize_email(email)
    if normalized is None:
        return False
    allowed = {normalize_email(e) for e in settings.ADMIN_EMAILS}
    return normalized in allowed


async def require_admin(
    admin_email: str | None = Header(default=None, alias="X-Admin-Email"),
) -> AdminContext:
    """
    FastAPI dependency — resolves the caller to an AdminContext.

    Usage in routers:
        Admin = Annotated[AdminContext, Depends(require_admin)]
    """
    email = normalize_email(admin_email)
    if email is None:
        raise _NOT_AUTHENTICATED

    if not is_admin_email(email):
        logger.warning("Rejected admin request from %s", email)
        raise _NOT_AUTHORIZED

    return AdminContext(email=email)
