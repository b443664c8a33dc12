"""
Pydantic v2 schemas for the past-projects gallery.

Public endpoints only ever return featured images; the admin sees all.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field


class GalleryImage(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = Field(..., min_length=1)
    file_id: str | None = None
    is_featured: bool = False


class PastProjectCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    project_token: str | None = Field(default=None, max_length=64)
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    selected_images: list[GalleryImage] = Field(default_factory=list)
    is_featured_on_home_page: bool = False


class PastProjectUpdate(BaseModel):
    """The originating project token cannot be changed."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    selected_images: list[GalleryImage] | None = None
    is_featured_on_home_page: bool | None = None


class PastProjectOut(BaseModel):
    id: str
    project_token: str | None = None
    title: str
    description: str | None = None
    selected_images: list[GalleryImage]
    is_featured_on_home_page: bool = False
    created_at: datetime.datetime
    completed_at: datetime.datetime
