"""
Schools24 Backend — File Upload Sink
======================================

What:  Stores uploaded files (attendance class photos) under UPLOAD_DIR and
       hands back the public URL they are served from.
How:   Extension and size checks, then an async write with a UUID filename
       inside a caller-chosen subdirectory.
Who:   TeacherService.mark_attendance (saves the photo before the DB
       transaction, cleans it up if the transaction fails).

URL ↔ disk mapping:
    save("class.jpg", data, "attendance/2025-06")
        disk: <UPLOAD_DIR>/attendance/2025-06/<uuid>.jpg
        url:  /uploads/attendance/2025-06/<uuid>.jpg

    main.py mounts UPLOAD_DIR read-only at /uploads, so the URL resolves
    without any handler code.

Security Model:
    1. Extension allow-list: .jpg .jpeg .png .webp
    2. Size limit: MAX_UPLOAD_SIZE (default 10 MB); empty files rejected
    3. UUID filename: no client-controlled path segment reaches the disk
    4. cleanup() refuses URLs that resolve outside UPLOAD_DIR
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}

URL_PREFIX = "/uploads"


class FileService:
    """
    Local-disk upload sink.

    Args:
        upload_dir: Override the storage root (tests pass a tmp_path)
        max_size:   Override MAX_UPLOAD_SIZE in bytes
    """

    def __init__(self, upload_dir: Optional[str] = None, max_size: Optional[int] = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir).resolve()
        self.max_size = max_size or settings.max_upload_size
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with upload_dir=%s", self.upload_dir)

    def validate_extension(self, filename: str) -> str:
        """Returns the lowercase extension (with dot) or raises ValidationError."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="photo",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, size: int) -> None:
        if size == 0:
            raise ValidationError(message="Uploaded file is empty", field="photo")
        if size > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="photo",
                context={"max_size": self.max_size, "actual_size": size},
            )

    def _generate_storage_path(self, subdir: str, extension: str) -> Tuple[Path, str]:
        """
        Returns (absolute_path, url). subdir is normalised so "../x" cannot
        escape the upload root.
        """
        parts = [p for p in Path(subdir.strip("/")).parts if p not in ("", ".", "..")]
        relative = Path(*parts, f"{uuid.uuid4()}{extension}") if parts else Path(
            f"{uuid.uuid4()}{extension}"
        )
        return self.upload_dir / relative, f"{URL_PREFIX}/{relative.as_posix()}"

    async def save(self, filename: str, content: bytes, subdir: str = "") -> str:
        """
        Validate and write one upload.

        Returns:
            The public URL (/uploads/<subdir>/<uuid><ext>)

        Raises:
            ValidationError: bad extension, empty or oversized file
            FileStorageError: the write failed
        """
        ext = self.validate_extension(filename)
        self.validate_size(len(content))

        absolute_path, url = self._generate_storage_path(subdir, ext)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(absolute_path)},
            )

        logger.info("File stored: %s (%d bytes)", url, len(content))
        return url

    def path_for_url(self, url: str) -> Path:
        """Maps a URL returned by save() back to its file on disk."""
        relative = url[len(URL_PREFIX):] if url.startswith(URL_PREFIX) else url
        path = (self.upload_dir / relative.lstrip("/")).resolve()
        if self.upload_dir not in path.parents:
            raise ValidationError(message="Invalid upload URL", context={"url": url})
        return path

    async def cleanup(self, url: str) -> None:
        """
        Remove a stored file. Missing files are ignored; OS errors are
        logged, since cleanup runs while another error is already propagating.
        """
        path = self.path_for_url(url)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", url)
            else:
                logger.debug("Cleanup: file already gone: %s", url)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", url, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
