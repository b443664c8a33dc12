"""
Pydantic v2 schemas for projects, status updates, and client views.

Separation:
  • *Create / *Update — what the ADMIN sends. extra="forbid", so an attempt
    to smuggle in payment handles or a new token is a 422, not a no-op.
  • ProjectOut        — full admin view.
  • ClientProjectView — what a client sees after entering their token.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field

_PIN_PATTERN = r"^\d{4}$"


# ── Status updates ──────────────────────────────────────────
class StatusUpdateCreate(BaseModel):
    """One timeline entry. At most three photos."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    photos: list[str] = Field(
        default_factory=list,
        max_length=3,
        description="Photo URLs (ImageKit), up to 3.",
    )


class StatusUpdateEdit(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    message: str | None = Field(default=None, min_length=1, max_length=5000)
    photos: list[str] | None = Field(default=None, max_length=3)


class StatusUpdateOut(BaseModel):
    id: str
    title: str
    message: str
    photos: list[str]
    created_at: datetime.datetime


# ── Projects ────────────────────────────────────────────────
class ProjectCreate(BaseModel):
    """
    Payload accepted by POST /admin/projects.

    token is optional: leave it out to auto-generate one, or supply a code
    in any casing/spacing (it is normalized and validated server-side).
    """

    model_config = ConfigDict(extra="forbid")

    client_label: str = Field(
        ...,
        min_length=1,
        max_length=200,
        examples=["Custom Walnut Dining Table"],
        description="Project name shown to the client. Unique, case-insensitive.",
    )
    description: str | None = Field(default=None, max_length=5000)
    project_type: list[str] = Field(
        default_factory=list,
        examples=[["furniture", "kitchen"]],
    )
    project_start_date: datetime.datetime | None = None
    payment_code: str | None = Field(
        default=None,
        pattern=_PIN_PATTERN,
        examples=["4821"],
        description="4-digit PIN that unlocks the payment links.",
    )
    deposit_paid: bool = False
    final_paid: bool = False
    token: str | None = Field(
        default=None,
        max_length=64,
        examples=["JW-A3B7-K9M2-P4Q8"],
        description="Manual token code. Omit to auto-generate.",
    )


class ProjectUpdate(BaseModel):
    """
    Payload accepted by PATCH /admin/projects/{token}.

    Fields left out are untouched. payment_code="" removes the PIN.
    The token itself can never change.
    """

    model_config = ConfigDict(extra="forbid")

    client_label: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    project_type: list[str] | None = None
    project_start_date: datetime.datetime | None = None
    payment_code: str | None = Field(default=None, pattern=r"^(\d{4})?$")
    deposit_paid: bool | None = None
    final_paid: bool | None = None
    is_completed: bool | None = None


class ProjectOut(BaseModel):
    """Full project record returned to admins."""

    token: str
    client_label: str
    description: str | None = None
    project_type: list[str] = Field(default_factory=list)
    project_start_date: datetime.datetime | None = None
    payment_code: str | None = None
    deposit_paid: bool = False
    final_paid: bool = False
    is_completed: bool = False
    venmo_handle: str
    paypal_handle: str
    status_updates: list[StatusUpdateOut] = Field(default_factory=list)
    created_at: datetime.datetime


# ── Client-facing ───────────────────────────────────────────
class TokenLookup(BaseModel):
    model_config = ConfigDict(extra="forbid")

    token: str = Field(..., min_length=1, max_length=64, examples=["jw-a3b7-k9m2-p4q8"])


class PaymentLinks(BaseModel):
    venmo_handle: str
    paypal_handle: str
    venmo_url: str
    paypal_url: str


class ClientProjectView(BaseModel):
    """
    Project as seen through the client portal.

    payment is populated only when the project has no PIN; otherwise the
    client must unlock it via POST /client/projects/{token}/payment.
    """

    token: str
    client_label: str
    description: str | None = None
    project_start_date: datetime.datetime | None = None
    deposit_paid: bool
    final_paid: bool
    is_completed: bool
    status_updates: list[StatusUpdateOut]
    payment_pin_required: bool
    payment: PaymentLinks | None = None


class PaymentUnlock(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pin: str = Field(..., pattern=_PIN_PATTERN)


# ── Admin token tools ───────────────────────────────────────
class GeneratedToken(BaseModel):
    token: str
    secure: bool = Field(
        ...,
        description="False when the server fell back to non-cryptographic randomness.",
    )


class TokenCheckRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    raw: str = Field(..., max_length=64)


class TokenCheckResult(BaseModel):
    """Live-typing feedback for the manual token field."""

    normalized: str
    valid: bool
    available: bool | None = Field(
        default=None,
        description="Only checked when the token is valid.",
    )
