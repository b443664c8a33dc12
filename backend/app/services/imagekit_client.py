"""
ImageKit client for the media library.

Uses ImageKit's REST API via httpx (no SDK):
  • POST   upload.imagekit.io/api/v1/files/upload   — multipart upload
  • DELETE api.imagekit.io/v1/files/{fileId}
  • GET    api.imagekit.io/v1/files                 — list, newest first

Configuration:
  IMAGEKIT_PRIVATE_KEY — server-side only (HTTP basic auth username)
  IMAGEKIT_PUBLIC_KEY  — returned to the browser with upload signatures

Safety:
  • Only image MIME types, at most 10 MB
  • Filenames sanitized and made unique before upload
  • Any non-2xx response raises RuntimeError; the body is logged, truncated
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
import time
import uuid
from typing import Any
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.schemas.media import MediaFile, UploadAuthParams

logger = logging.getLogger(__name__)

_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
_API_BASE_URL = "https://api.imagekit.io/v1"

DEFAULT_FOLDER = "/media/"
MAX_UPLOAD_MB = 10
ALLOWED_IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
})

# Signed upload parameters stay valid this long (ImageKit's own default).
_SIGNATURE_TTL_SECONDS = 30 * 60

_MAX_FILENAME = 255


# ── Upload validation ───────────────────────────────────────
def is_valid_image_type(content_type: str | None) -> bool:
    return (content_type or "").lower() in ALLOWED_IMAGE_TYPES


def is_valid_file_size(size: int, max_size_mb: int = MAX_UPLOAD_MB) -> bool:
    return size <= max_size_mb * 1024 * 1024


def sanitize_filename(filename: str) -> str:
    """Strip path separators and characters ImageKit or browsers choke on."""
    sanitized = re.sub(r"[/\\]", "_", filename)
    sanitized = re.sub(r'[<>:"|?*]', "", sanitized)
    sanitized = re.sub(r"\s+", "_", sanitized)
    sanitized = re.sub(r"_{2,}", "_", sanitized)
    sanitized = sanitized.strip("_")

    if len(sanitized) > _MAX_FILENAME:
        stem, dot, ext = sanitized.rpartition(".")
        if dot:
            ext = "." + ext
            sanitized = stem[: _MAX_FILENAME - len(ext)] + ext
        else:
            sanitized = sanitized[:_MAX_FILENAME]

    return sanitized or f"image_{int(time.time() * 1000)}"


def unique_filename(original: str) -> str:
    """<name>_<epoch ms>_<random><ext>, e.g. walnut_table_1700000000000_k3x9q2a.jpg"""
    sanitized = sanitize_filename(original)
    stem, dot, ext = sanitized.rpartition(".")
    if not dot:
        stem, ext = sanitized, ""
    else:
        ext = "." + ext
    stem = stem or "image"
    return f"{stem}_{int(time.time() * 1000)}_{secrets.token_hex(4)}{ext}"


# ── Client ──────────────────────────────────────────────────
def _to_media_file(data: dict[str, Any]) -> MediaFile:
    return MediaFile(
        file_id=data["fileId"],
        name=data.get("name", ""),
        url=data["url"],
        size=data.get("size"),
        width=data.get("width"),
        height=data.get("height"),
    )


class ImageKitClient:
    """
    Thin async wrapper over the ImageKit REST API.

    transport is only for tests (httpx.MockTransport); production traffic
    uses httpx's default transport.
    """

    def __init__(
        self,
        public_key: str,
        private_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._public_key = public_key
        self._private_key = private_key
        self._transport = transport
        self._timeout = timeout

    def _require_credentials(self) -> None:
        if not self._public_key or not self._private_key:
            raise RuntimeError(
                "ImageKit credentials are not configured. Set IMAGEKIT_PUBLIC_KEY "
                "and IMAGEKIT_PRIVATE_KEY."
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=(self._private_key, ""),
            timeout=self._timeout,
            transport=self._transport,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        logger.error(
            "ImageKit %s error: status=%d body=%s",
            action,
            response.status_code,
            response.text[:500],
        )
        raise RuntimeError(f"ImageKit {action} failed")

    async def upload(
        self,
        content: bytes,
        filename: str,
        folder: str = DEFAULT_FOLDER,
    ) -> MediaFile:
        """Upload bytes under filename (already made unique by the caller)."""
        self._require_credentials()

        async with self._client() as client:
            response = await client.post(
                _UPLOAD_URL,
                files={"file": (filename, content)},
                data={
                    "fileName": filename,
                    "folder": folder,
                    "useUniqueFileName": "false",
                },
            )
        self._raise_for_status(response, "upload")

        try:
            return _to_media_file(response.json())
        except (KeyError, ValueError) as exc:
            logger.error("Unexpected ImageKit upload response: %s", exc)
            raise RuntimeError("Could not parse ImageKit upload response") from exc

    async def delete(self, file_id: str) -> None:
        self._require_credentials()

        async with self._client() as client:
            response = await client.delete(f"{_API_BASE_URL}/files/{quote(file_id, safe='')}")
        self._raise_for_status(response, "delete")

    async def list_files(
        self,
        path: str = DEFAULT_FOLDER,
        limit: int = 100,
        skip: int = 0,
    ) -> list[MediaFile]:
        """Images under path, newest first. limit is clamped to 1–1000."""
        self._require_credentials()

        params = {
            "path": path,
            "limit": min(max(limit, 1), 1000),
            "skip": max(skip, 0),
            "sort": "DESC_CREATED",
            "fileType": "image",
        }
        async with self._client() as client:
            response = await client.get(f"{_API_BASE_URL}/files", params=params)
        self._raise_for_status(response, "list")

        try:
            return [_to_media_file(item) for item in response.json()]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("Unexpected ImageKit list response: %s", exc)
            raise RuntimeError("Could not parse ImageKit list response") from exc

    def authentication_parameters(self, now: float | None = None) -> UploadAuthParams:
        """
        Signature for browser-side uploads.

        signature = HMAC-SHA1(private_key, token + expire), hex encoded.
        """
        self._require_credentials()

        token = str(uuid.uuid4())
        expire = int(now if now is not None else time.time()) + _SIGNATURE_TTL_SECONDS
        signature = hmac.new(
            self._private_key.encode("utf-8"),
            f"{token}{expire}".encode("utf-8"),
            hashlib.sha1,
        ).hexdigest()
        return UploadAuthParams(
            token=token,
            expire=expire,
            signature=signature,
            public_key=self._public_key,
        )


def get_media_client() -> ImageKitClient:
    """FastAPI dependency — client built from settings."""
    return ImageKitClient(
        public_key=settings.IMAGEKIT_PUBLIC_KEY,
        private_key=settings.IMAGEKIT_PRIVATE_KEY,
    )
