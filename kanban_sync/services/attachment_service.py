"""
Attachment file storage.
Validates uploads against the media-type allow-list and size limit, stores
them under generated names and deletes them again on request. Knows nothing
about tasks.
"""
from __future__ import annotations

import logging
import os
import uuid
from pathlib import Path

from fastapi import UploadFile

from kanban_sync.core.exceptions import BadRequestException, FileTooLargeException
from kanban_sync.models.attachment import Attachment

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class AttachmentManager:
    def __init__(
        self,
        upload_dir: str | os.PathLike[str],
        *,
        url_prefix: str = "/uploads",
        max_size_bytes: int = 5 * 1024 * 1024,
        allowed_types: list[str] | None = None,
    ) -> None:
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_size_bytes = max_size_bytes
        self.allowed_types = allowed_types or ["image/*", "application/pdf"]

    def is_allowed(self, mime_type: str | None) -> bool:
        if not mime_type:
            return False
        mime_type = mime_type.split(";", 1)[0].strip().lower()
        for allowed in self.allowed_types:
            if allowed.endswith("/*"):
                if mime_type.startswith(allowed[:-1]):
                    return True
            elif mime_type == allowed:
                return True
        return False

    async def store(self, upload: UploadFile) -> Attachment:
        """
        Persist one uploaded file and describe it as an Attachment.

        Raises BadRequestException for a disallowed media type and
        FileTooLargeException when the size limit is exceeded. The temporary
        upload is closed (and thereby deleted) in every case.
        """
        try:
            if not self.is_allowed(upload.content_type):
                logger.info(
                    "Rejected upload %r with media type %s",
                    upload.filename,
                    upload.content_type,
                )
                raise BadRequestException("Only images and PDFs are allowed")

            if upload.size is not None and upload.size > self.max_size_bytes:
                raise FileTooLargeException(self.max_size_bytes // (1024 * 1024))

            original_name = upload.filename or "unknown"
            filename = f"{uuid.uuid4()}{Path(original_name).suffix.lower()}"
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            file_path = self.upload_dir / filename

            size = 0
            try:
                with open(file_path, "wb") as f:
                    while chunk := await upload.read(CHUNK_SIZE):
                        size += len(chunk)
                        if size > self.max_size_bytes:
                            raise FileTooLargeException(self.max_size_bytes // (1024 * 1024))
                        f.write(chunk)
            except BaseException:
                file_path.unlink(missing_ok=True)
                raise
        finally:
            await upload.close()

        logger.info("Stored attachment %s (%s, %d bytes)", filename, original_name, size)
        return Attachment(
            filename=filename,
            original_name=original_name,
            mime_type=upload.content_type or "application/octet-stream",
            size=size,
            path=f"{self.url_prefix}/{filename}",
        )

    def resolve(self, filename: str) -> Path | None:
        """Path of a stored file, or None if absent or outside the upload directory."""
        if not filename or Path(filename).name != filename:
            return None
        file_path = self.upload_dir / filename
        return file_path if file_path.is_file() else None

    def remove(self, filename: str) -> None:
        """Delete a stored file. Missing files and I/O errors are logged, never raised."""
        file_path = self.upload_dir / Path(filename).name
        try:
            file_path.unlink()
        except FileNotFoundError:
            logger.debug("Attachment file %s already absent", filename)
        except OSError:
            logger.exception("Failed to delete attachment file %s", filename)
        else:
            logger.info("Deleted attachment file %s", filename)
