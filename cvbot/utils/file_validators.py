"""File validation utilities for content security.

Validates file signatures (magic numbers) to catch MIME type spoofing,
and checks ZIP structure of DOCX files against zip bombs.
"""

from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from typing import Literal, Optional, cast

logger = logging.getLogger(__name__)

DocumentType = Literal["pdf", "docx", "txt"]

# Magic number signatures for binary formats
SIGNATURES: dict[str, tuple[bytes, ...]] = {
    "pdf": (b"%PDF-",),
    "docx": (b"PK\x03\x04",),  # DOCX is a ZIP container
}

_MIME_TO_DOCUMENT_TYPE: dict[str, DocumentType] = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-word.document.macroEnabled.12": "docx",
    "text/plain": "txt",
}


def validate_file_signature(data: bytes, expected_type: DocumentType) -> bool:
    """Check that the content matches the declared document type.

    Binary formats must start with their magic number; plain text must not
    contain NUL bytes.

    Args:
        data: File content as bytes.
        expected_type: Declared document type.

    Returns:
        True if the content is consistent with the declared type.
    """
    if not data:
        return False

    if expected_type == "txt":
        valid = b"\x00" not in data
    else:
        valid = data.startswith(SIGNATURES.get(expected_type, ()))

    if not valid:
        logger.warning(
            "file_signature.invalid",
            extra={
                "expected_type": expected_type,
                "actual_prefix": data[:8].hex(),
            },
        )
    return valid


def get_document_type_from_mime(mime_type: str | None) -> Optional[DocumentType]:
    """Map a MIME type to the document type the text extractors understand.

    Returns:
        ``pdf``, ``docx``, ``txt`` or None if unsupported.
    """
    return cast(Optional[DocumentType], _MIME_TO_DOCUMENT_TYPE.get((mime_type or "").lower()))


def validate_zip_safety(
    data: bytes,
    max_ratio: float = 100.0,
    max_uncompressed_mb: int = 50,
) -> None:
    """Validate ZIP-based files against zip bomb attacks.

    Args:
        data: File content as bytes.
        max_ratio: Maximum allowed compression ratio.
        max_uncompressed_mb: Max total uncompressed size in MB.

    Raises:
        ValueError: If the archive is invalid or looks like a zip bomb.
    """
    try:
        with zipfile.ZipFile(BytesIO(data)) as zf:
            compressed_size = sum(info.compress_size for info in zf.filelist)
            uncompressed_size = sum(info.file_size for info in zf.filelist)
    except zipfile.BadZipFile as exc:
        logger.warning("zip_safety.bad_zip", extra={"error": str(exc)})
        raise ValueError("Invalid ZIP file structure") from exc

    if compressed_size == 0:
        logger.warning("zip_safety.invalid_zip", extra={"reason": "zero_compressed_size"})
        raise ValueError("Invalid ZIP file: compressed size is zero")

    ratio = uncompressed_size / compressed_size
    if ratio > max_ratio:
        logger.warning(
            "zip_safety.suspicious_ratio",
            extra={"ratio": ratio, "max_ratio": max_ratio},
        )
        raise ValueError(
            f"Suspicious compression ratio: {ratio:.1f}x. Maximum allowed: {max_ratio}x"
        )

    max_bytes = max_uncompressed_mb * 1024 * 1024
    if uncompressed_size > max_bytes:
        logger.warning(
            "zip_safety.excessive_size",
            extra={"uncompressed_mb": uncompressed_size / (1024 * 1024), "max_mb": max_uncompressed_mb},
        )
        raise ValueError(
            f"Uncompressed size ({uncompressed_size / (1024 * 1024):.1f}MB) "
            f"exceeds limit ({max_uncompressed_mb}MB)"
        )
