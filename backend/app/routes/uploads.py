"""
RecipeShare Backend — Image Upload & File Route Handlers
=========================================================

What:  POST /api/uploads/images stores a recipe photo and returns its URL;
       GET <files prefix>/{path} serves stored photos.
How:   The route reads the multipart body and hands the bytes to
       FileService, which validates and writes them. Serving resolves the
       path inside the storage root and lets FileResponse stream it.

Request Flow (upload):
    1. Client sends multipart/form-data with a 'file' field (signed in)
    2. FileService: bucket → extension → size → magic-byte MIME → write
    3. 201 with {url, path, content_type, size}; the client then puts
       `url` in the recipe's image_url
"""

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from app.config import settings
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.common import ErrorResponse
from app.schemas.upload import ImageUploadResponse
from app.services.file_service import DEFAULT_BUCKET, file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Uploads"])
# Served under the public URL prefix that FileService puts in image URLs
files_router = APIRouter(tags=["Uploads"])


@router.post(
    "/uploads/images",
    status_code=201,
    response_model=ImageUploadResponse,
    responses={
        400: {"description": "Not an image, empty, or too large", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Upload a recipe image",
    description="PNG, JPEG, WebP or GIF up to 5MB by default.",
)
async def upload_image(
    file: UploadFile = File(..., description="Image file"),
    bucket: str = Form(default=DEFAULT_BUCKET),
    user: User = Depends(get_current_user),
) -> ImageUploadResponse:
    content = await file.read()
    logger.info(
        "Image upload from user %s: filename=%s, size=%d bytes",
        user.id, file.filename or "unknown", len(content),
    )
    try:
        relative_path, url, mime_type = await file_service.store_image(
            filename=file.filename or "upload.jpg",
            content=content,
            owner_id=user.id,
            content_length=file.size,
            bucket=bucket,
        )
    finally:
        await file.close()

    return ImageUploadResponse(url=url, path=relative_path, content_type=mime_type, size=len(content))


@files_router.get(
    settings.files_url_prefix + "/{file_path:path}",
    summary="Serve a stored image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve_path(file_path)
    # Stored names are UUIDs, so content never changes under a URL
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
