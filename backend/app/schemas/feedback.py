"""
Pydantic v2 schemas for client feedback and testimonials.

A client can only *allow* their feedback to be used as a testimonial;
publishing it (is_testimonial) is an admin decision.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field


class ClientFeedbackCreate(BaseModel):
    """Payload accepted by POST /client/projects/{token}/feedback."""

    model_config = ConfigDict(extra="forbid")

    rating: int = Field(..., ge=1, le=5, examples=[5])
    comment: str = Field(..., min_length=1, max_length=5000)
    client_name: str | None = Field(default=None, max_length=200)
    allow_testimonial: bool = False


class AdminFeedbackCreate(BaseModel):
    """Feedback entered by an admin (e.g. a review received by email)."""

    model_config = ConfigDict(extra="forbid")

    project_token: str | None = Field(default=None, max_length=64)
    project_name: str = Field(..., min_length=1, max_length=200)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=5000)
    client_name: str | None = Field(default=None, max_length=200)
    title: str | None = Field(default=None, max_length=200)
    allow_testimonial: bool = True
    is_testimonial: bool = False


class FeedbackUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, min_length=1, max_length=5000)
    client_name: str | None = Field(default=None, max_length=200)
    title: str | None = Field(default=None, max_length=200)
    allow_testimonial: bool | None = None
    is_testimonial: bool | None = None


class FeedbackOut(BaseModel):
    id: str
    project_token: str | None = None
    project_name: str
    rating: int
    comment: str
    client_name: str | None = None
    title: str | None = None
    allow_testimonial: bool = False
    is_testimonial: bool = False
    created_at: datetime.datetime
