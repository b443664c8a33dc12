"""
Media library router (ImageKit) — admin only.

Endpoints (/admin/media):
  POST   /upload      — multipart image upload (≤ 10 MB)
  GET    /            — list images, newest first
  DELETE /{file_id}
  GET    /auth        — signed parameters for direct browser uploads

ImageKit failures (RuntimeError from the client) answer 502.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status

from app.auth.dependencies import require_admin
from app.schemas.media import MediaFile, MediaList, UploadAuthParams
from app.services.imagekit_client import (
    ALLOWED_IMAGE_TYPES,
    DEFAULT_FOLDER,
    MAX_UPLOAD_MB,
    ImageKitClient,
    get_media_client,
    is_valid_file_size,
    is_valid_image_type,
    unique_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Media"], dependencies=[Depends(require_admin)])

Media = Annotated[ImageKitClient, Depends(get_media_client)]


def _bad_gateway(exc: RuntimeError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(exc) or "Media service error.",
    )


@router.post(
    "/upload",
    response_model=MediaFile,
    status_code=status.HTTP_201_CREATED,
    summary="Upload an image",
)
async def upload_image(
    media: Media,
    file: Annotated[UploadFile, File()],
    folder: Annotated[str, Form()] = DEFAULT_FOLDER,
) -> MediaFile:
    if not is_valid_image_type(file.content_type):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}",
        )

    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    if not is_valid_file_size(len(content)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Maximum size is {MAX_UPLOAD_MB}MB.",
        )

    filename = unique_filename(file.filename or "image")
    try:
        uploaded = await media.upload(content, filename, folder=folder)
    except RuntimeError as exc:
        raise _bad_gateway(exc) from exc

    logger.info("Uploaded %s (%d bytes)", uploaded.name, len(content))
    return uploaded


@router.get("", response_model=MediaList, summary="List images")
async def list_images(
    media: Media,
    path: str = DEFAULT_FOLDER,
    limit: Annotated[int, Query()] = 100,
    skip: Annotated[int, Query()] = 0,
) -> MediaList:
    try:
        files = await media.list_files(path=path, limit=limit, skip=skip)
    except RuntimeError as exc:
        raise _bad_gateway(exc) from exc
    return MediaList(files=files)


@router.get("/auth", response_model=UploadAuthParams, summary="Signed upload parameters")
async def upload_auth(media: Media) -> UploadAuthParams:
    try:
        return media.authentication_parameters()
    except RuntimeError as exc:
        raise _bad_gateway(exc) from exc


@router.delete(
    "/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an image",
)
async def delete_image(file_id: str, media: Media) -> Response:
    try:
        await media.delete(file_id)
    except RuntimeError as exc:
        raise _bad_gateway(exc) from exc
    logger.info("Deleted media file %s", file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
