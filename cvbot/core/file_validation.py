"""Upload reading with size enforcement."""
from __future__ import annotations

import logging

from fastapi import UploadFile

from cvbot.core.config import settings
from cvbot.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def payload_too_large(max_bytes: int, actual_bytes: int | None = None) -> ValidationAppError:
    """Build the error raised for uploads over the size ceiling."""
    max_mb = max_bytes // (1024 * 1024)
    details = {"max_bytes": max_bytes}
    if actual_bytes is not None:
        details["actual_bytes"] = actual_bytes
    return ValidationAppError(
        code="payload_too_large",
        message=f"File too large. Maximum size is {max_mb}MB.",
        details=details,
    )


async def read_upload_file_limited(file: UploadFile, max_bytes: int | None = None) -> bytes:
    """Read an uploaded file in chunks enforcing the max size limit.

    Uses ``file.size`` when the multipart parser reported it, and falls back
    to counting bytes while reading so no more than the limit plus one chunk
    is ever buffered.

    Args:
        file: FastAPI upload file instance.
        max_bytes: Size ceiling; defaults to ``storage.max_upload_size_mb``.

    Returns:
        File content as bytes if within the allowed size limit.

    Raises:
        ValidationAppError: If the file exceeds the size limit.
    """
    if max_bytes is None:
        max_bytes = settings.storage.max_upload_size_mb * 1024 * 1024

    file_size = getattr(file, "size", None)
    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise payload_too_large(max_bytes, file_size)

    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise payload_too_large(max_bytes)
        chunks.append(chunk)

    return b"".join(chunks)
