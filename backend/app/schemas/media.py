"""Pydantic v2 schemas for the ImageKit media library."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MediaFile(BaseModel):
    """One image as stored on the CDN."""

    file_id: str
    name: str
    url: str
    size: int | None = None
    width: int | None = None
    height: int | None = None


class MediaList(BaseModel):
    files: list[MediaFile] = Field(default_factory=list)


class UploadAuthParams(BaseModel):
    """Short-lived signature letting the browser upload straight to ImageKit."""

    token: str
    expire: int
    signature: str
    public_key: str
