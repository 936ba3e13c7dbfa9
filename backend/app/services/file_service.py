"""
RecipeShare Backend — Image Storage Service
============================================

What:  Validates, stores, serves and cleans up uploaded recipe images.
How:   Checks extension, size and real MIME type (libmagic), then writes the
       bytes to a bucket folder under a date-organized path with a UUID
       filename. Returns a public URL the client saves on the recipe.
Who:   The uploads router (store, serve), RecipeService (who owns a URL) and
       the recipe routes (cleanup once an edit or delete has committed).

Directory Structure:
    storage/
    └── recipe-images/
        └── <uploader user id>/
            └── 2024/
                └── 01/
                    └── 15/
                        └── a1b2c3d4-....jpg

Security Model:
    1. Extension check: fast rejection before looking at content
    2. Size check: Content-Length first, then the actual byte count
    3. MIME check: magic bytes, catches renamed files
    4. UUID filename: no user input ever reaches the file system path
    5. Serving: resolved path must stay inside the storage root
    6. Ownership: the uploader's id is part of the path, so a URL alone
       tells RecipeService whose file it is (owner_of_url)
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Storage buckets that accept uploads (the avatars bucket was retired;
# avatars are plain URLs on the profile).
BUCKETS = {"recipe-images"}
DEFAULT_BUCKET = "recipe-images"

ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

_EXTENSION_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


class FileService:
    """
    Manages the lifecycle of uploaded images.

    Lifecycle of an upload:
        1. uploads router reads the multipart body → store_image()
        2. bucket, extension, size and MIME type are validated
        3. bytes are written to <bucket>/<owner id>/<YYYY>/<MM>/<DD>/<uuid><ext>
        4. public URL <files_url_prefix>/<relative path> is returned
        5. GET <files_url_prefix>/<path> → resolve_path() → FileResponse
        6. recipe routes call cleanup_url() after the commit that dropped the image
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_bucket(self, bucket: str) -> str:
        if bucket not in BUCKETS:
            raise ValidationError(
                message=f"Unknown storage bucket '{bucket}'.",
                field="bucket",
                context={"bucket": bucket, "allowed": sorted(BUCKETS)},
            )
        return bucket

    def validate_extension(self, filename: str) -> str:
        """
        Returns the normalized extension (lowercase with dot).
        Raises ValidationError if the extension is not an allowed image type.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks the Content-Length header (if any) and the real byte count
        against settings.max_image_size.
        """
        max_mb = settings.max_image_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(
                message="The uploaded file is empty.",
                field="file",
            )

        if content_length and content_length > settings.max_image_size:
            raise ValidationError(
                message=f"File size must be less than {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_image_size:
            raise ValidationError(
                message=(
                    f"File is too large ({actual_size / (1024 * 1024):.1f}MB). "
                    f"File size must be less than {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_mime_type(self, file_content: bytes, filename: str) -> str:
        """
        Detects the real MIME type from the file's magic bytes.

        Returns the detected MIME type; raises ValidationError when it is not
        an allowed image type.
        """
        try:
            import magic
            mime_type = magic.from_buffer(file_content, mime=True)
        except ImportError:
            # libmagic missing (e.g. slim CI images): fall back to the extension
            logger.warning(
                "python-magic not available; falling back to extension-based type detection. "
                "Install libmagic for production security."
            )
            ext = Path(filename).suffix.lower()
            mime_type = _EXTENSION_MIME.get(ext, "application/octet-stream")
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"Please select an image file (PNG, JPEG, WebP or GIF)."
                ),
                field="file",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )

        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(
        self, bucket: str, owner_id: uuid.UUID, extension: str
    ) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path) for <bucket>/<owner>/YYYY/MM/DD/<uuid><ext>."""
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{bucket}/{owner_id}/{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    def public_url(self, relative_path: str) -> str:
        return f"{settings.files_url_prefix}/{relative_path}"

    def relative_path_from_url(self, url: Optional[str]) -> Optional[str]:
        """
        Inverse of public_url(). Returns None for URLs we did not issue
        (external image links pasted by the user).
        """
        prefix = settings.files_url_prefix + "/"
        if not url or not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def owner_of_url(self, url: Optional[str]) -> Optional[uuid.UUID]:
        """
        The uploader of one of our stored files, read from its path.
        None for external URLs and for paths without an owner segment.
        """
        relative_path = self.relative_path_from_url(url)
        if relative_path is None:
            return None
        parts = relative_path.split("/")
        if len(parts) < 3 or parts[0] not in BUCKETS:
            return None
        try:
            return uuid.UUID(parts[1])
        except ValueError:
            return None

    async def store_file(
        self, content: bytes, bucket: str, owner_id: uuid.UUID, extension: str
    ) -> Tuple[str, str]:
        """
        Write validated content to disk.

        Returns (absolute_path, relative_path).
        Raises FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(bucket, owner_id, extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path), relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def store_image(
        self,
        filename: str,
        content: bytes,
        owner_id: uuid.UUID,
        content_length: Optional[int] = None,
        bucket: str = DEFAULT_BUCKET,
    ) -> Tuple[str, str, str]:
        """
        Complete validation and storage pipeline.

        Validation order (cheapest first):
            1. Bucket name
            2. Extension (no content needed)
            3. Size (header, then actual)
            4. MIME type (magic bytes)

        Returns:
            (relative_path, public_url, mime_type)
        """
        self.validate_bucket(bucket)
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        mime_type = self.validate_mime_type(content, filename)

        # Trust the detected type over the client's extension
        if _EXTENSION_MIME.get(ext) != mime_type:
            ext = ALLOWED_MIME_TYPES[mime_type]

        _, relative_path = await self.store_file(content, bucket, owner_id, ext)
        return relative_path, self.public_url(relative_path), mime_type

    def resolve_path(self, relative_path: str) -> Path:
        """
        Map a public relative path to a file on disk.

        Raises ValidationError for paths escaping the storage root, and
        NotFoundError if the file does not exist.
        """
        full_path = (self.storage_root / relative_path).resolve()

        if not full_path.is_relative_to(self.storage_root):
            raise ValidationError(message="Invalid file path", field="path")

        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=relative_path)

        return full_path

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort delete of a stored file. Missing files are ignored and
        OS errors are logged, never raised.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def cleanup_url(self, url: Optional[str]) -> None:
        """Delete the file behind one of our public URLs; external URLs are left alone."""
        relative_path = self.relative_path_from_url(url)
        if relative_path is None:
            return
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            logger.warning("Refusing to clean up path outside storage root: %s", relative_path)
            return
        await self.cleanup_file(str(full_path))


file_service = FileService()
