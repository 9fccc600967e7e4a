"""Upload store service: validation, naming and serving of uploaded files.

Files are addressed only by their deterministic name ``{class}-{endpoint}{ext}``;
there is no separate index. Every operation asks the storage adapter, so the
directory (or in-memory store) is the single source of truth.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import PurePath

from cvbot.adapters.storage.base import FILE_CLASSES, AbstractUploadStore, FileClass
from cvbot.core.errors import NotFoundAppError, ValidationAppError
from cvbot.core.file_validation import payload_too_large
from cvbot.schemas.files import CopiedFile, FileListing, StoredFile

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# MIME allow-list per class, with the suffix used when the upload has none
ALLOWED_MIME_TYPES: dict[FileClass, dict[str, str]] = {
    "cv": {
        "application/pdf": ".pdf",
        "application/msword": ".doc",
        DOCX_MIME: ".docx",
        "text/plain": ".txt",
    },
    "photo": {
        "image/jpeg": ".jpg",
        "image/jpg": ".jpg",
        "image/png": ".png",
    },
}

INVALID_MIME_MESSAGES: dict[FileClass, str] = {
    "cv": "Invalid file type for CV/Resume. Only PDF, DOC, DOCX, and TXT files are allowed.",
    "photo": "Invalid file type for photo. Only JPEG, JPG, and PNG files are allowed.",
}

CONTENT_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".docx": DOCX_MIME,
    ".doc": "application/msword",
    ".txt": "text/plain",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

ENDPOINT_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")
FILENAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,254}$")
EXTENSION_PATTERN = re.compile(r"^\.[a-z0-9]{1,10}$")


@dataclass(frozen=True)
class FileContent:
    """A stored file ready to be sent to a client."""

    filename: str
    data: bytes
    content_type: str
    disposition: str

    @property
    def content_disposition(self) -> str:
        return f'{self.disposition}; filename="{self.filename}"'


def content_type_for(filename: str) -> str:
    """Infer the content type from a filename extension."""
    return CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), DEFAULT_CONTENT_TYPE)


def validate_file_class(file_class: str) -> FileClass:
    """Return ``file_class`` if it names a known class.

    Raises:
        ValidationAppError: For anything other than ``cv`` or ``photo``.
    """
    if file_class not in FILE_CLASSES:
        raise ValidationAppError(
            code="invalid_file_class",
            message="Invalid file type",
            details={"file_class": file_class},
        )
    return file_class  # type: ignore[return-value]


def validate_endpoint(endpoint: str | None) -> str:
    """Check that an endpoint is present and safe to embed in a filename.

    Only letters, digits, ``-`` and ``_`` are accepted, which rules out path
    separators, ``..`` and the ``.`` that separates the extension.

    Raises:
        ValidationAppError: If the endpoint is missing or malformed.
    """
    endpoint = (endpoint or "").strip()
    if not endpoint:
        raise ValidationAppError(code="endpoint_required", message="Endpoint is required")
    if not ENDPOINT_PATTERN.match(endpoint):
        raise ValidationAppError(
            code="invalid_endpoint",
            message="Invalid endpoint. Use letters, digits, '-' or '_' only.",
            details={"endpoint": endpoint[:64]},
        )
    return endpoint


def validate_mime_type(file_class: FileClass, mime_type: str | None) -> str:
    """Return the lower-cased MIME type if the class accepts it.

    Raises:
        ValidationAppError: If the type is not on the class allow-list.
    """
    mime_type = (mime_type or "").split(";", 1)[0].strip().lower()
    if mime_type not in ALLOWED_MIME_TYPES[file_class]:
        logger.warning(
            "upload.invalid_mime_type",
            extra={"file_class": file_class, "mime_type": mime_type},
        )
        raise ValidationAppError(
            code="invalid_mime_type",
            message=INVALID_MIME_MESSAGES[file_class],
            details={
                "file_class": file_class,
                "mime_type": mime_type,
                "allowed": sorted(ALLOWED_MIME_TYPES[file_class]),
            },
        )
    return mime_type


def stored_filename(file_class: FileClass, endpoint: str, extension: str) -> str:
    return f"{file_class}-{endpoint}{extension}"


class FileService:
    """Store, fetch, list and copy uploaded CVs and photos.

    Attributes:
        store: Storage adapter holding the bytes.
        max_upload_bytes: Size ceiling for a single upload.
    """

    def __init__(self, store: AbstractUploadStore, max_upload_bytes: int = 10 * 1024 * 1024) -> None:
        self.store = store
        self.max_upload_bytes = max_upload_bytes

    def _extension_for(self, file_class: FileClass, original_name: str, mime_type: str) -> str:
        extension = os.path.splitext(PurePath(original_name or "").name)[1].lower()
        if EXTENSION_PATTERN.match(extension):
            return extension
        return ALLOWED_MIME_TYPES[file_class][mime_type]

    def _find_endpoint_files(self, file_class: FileClass, endpoint: str) -> list[str]:
        prefix = f"{file_class}-{endpoint}."
        return [obj.filename for obj in self.store.list(file_class) if obj.filename.startswith(prefix)]

    def _remove_stale_variants(self, file_class: FileClass, endpoint: str, keep: str) -> None:
        # Same endpoint, different extension: keep a single file per class
        for filename in self._find_endpoint_files(file_class, endpoint):
            if filename != keep:
                self.store.delete(file_class, filename)
                logger.info(
                    "upload.replaced_variant",
                    extra={"file_class": file_class, "removed_filename": filename},
                )

    def store_file(
        self,
        file_class: str,
        endpoint: str | None,
        data: bytes,
        original_name: str,
        mime_type: str | None,
    ) -> StoredFile:
        """Validate and persist an upload as ``{class}-{endpoint}{ext}``.

        Args:
            file_class: ``cv`` or ``photo``.
            endpoint: Profile slug owning the file.
            data: File content.
            original_name: Filename sent by the client.
            mime_type: MIME type sent by the client.

        Returns:
            Descriptor of the stored file.

        Raises:
            ValidationAppError: Bad class, MIME type, size or endpoint.
        """
        file_class = validate_file_class(file_class)
        mime_type = validate_mime_type(file_class, mime_type)

        if len(data) > self.max_upload_bytes:
            raise payload_too_large(self.max_upload_bytes, len(data))

        endpoint = validate_endpoint(endpoint)

        filename = stored_filename(file_class, endpoint, self._extension_for(file_class, original_name, mime_type))
        stored = self.store.write(file_class, filename, data)
        self._remove_stale_variants(file_class, endpoint, keep=filename)

        logger.info(
            "upload.stored",
            extra={
                "file_class": file_class,
                "endpoint": endpoint,
                "stored_filename": filename,
                "size_bytes": stored.size,
                "mime_type": mime_type,
            },
        )

        return StoredFile(
            original_name=original_name,
            filename=filename,
            path=self.store.location(file_class, filename),
            size=stored.size,
            mimetype=mime_type,
            endpoint=endpoint,
        )

    def fetch_file(self, file_class: str, filename: str, force_download: bool = False) -> FileContent:
        """Load a stored file with its content type and disposition.

        PDFs are displayed inline unless ``force_download`` is set; every
        other type is served as an attachment.

        Raises:
            ValidationAppError: Unknown class or malformed filename.
            NotFoundAppError: The file does not exist.
        """
        file_class = validate_file_class(file_class)
        if not FILENAME_PATTERN.match(filename or ""):
            raise ValidationAppError(
                code="invalid_filename",
                message="Invalid filename",
                details={"filename": (filename or "")[:64]},
            )

        try:
            data = self.store.read(file_class, filename)
        except FileNotFoundError:
            raise NotFoundAppError(
                code="file_not_found",
                message="File not found",
                details={"file_class": file_class, "filename": filename},
            ) from None

        content_type = content_type_for(filename)
        disposition = "inline" if content_type == "application/pdf" and not force_download else "attachment"

        logger.info(
            "files.served",
            extra={
                "file_class": file_class,
                "stored_filename": filename,
                "size_bytes": len(data),
                "disposition": disposition,
            },
        )
        return FileContent(filename=filename, data=data, content_type=content_type, disposition=disposition)

    def list_files(self, file_class: str) -> list[FileListing]:
        """List every stored file of a class."""
        file_class = validate_file_class(file_class)
        return [
            FileListing(
                filename=obj.filename,
                size=obj.size,
                created=obj.created_at,
                modified=obj.modified_at,
            )
            for obj in self.store.list(file_class)
        ]

    def copy_files(self, source_endpoint: str | None, target_endpoint: str | None) -> list[CopiedFile]:
        """Duplicate an endpoint's CV and photo under another endpoint.

        Classes without a source file are skipped; copying nothing is not an error.

        Raises:
            ValidationAppError: Missing, malformed or identical endpoints.
        """
        if not (source_endpoint or "").strip() or not (target_endpoint or "").strip():
            raise ValidationAppError(
                code="endpoints_required",
                message="Source and target endpoints are required",
            )
        source = validate_endpoint(source_endpoint)
        target = validate_endpoint(target_endpoint)
        if source == target:
            raise ValidationAppError(
                code="same_endpoint",
                message="Source and target endpoints must be different",
                details={"endpoint": source},
            )

        copied: list[CopiedFile] = []
        for file_class in FILE_CLASSES:
            candidates = self._find_endpoint_files(file_class, source)
            if not candidates:
                continue

            source_filename = candidates[0]
            extension = os.path.splitext(source_filename)[1]
            target_filename = stored_filename(file_class, target, extension)

            try:
                stored = self.store.copy(file_class, source_filename, target_filename)
            except FileNotFoundError:
                # Removed between listing and copy
                continue
            self._remove_stale_variants(file_class, target, keep=target_filename)

            copied.append(
                CopiedFile(
                    type=file_class,
                    original_filename=source_filename,
                    new_filename=target_filename,
                    size=stored.size,
                )
            )
            logger.info(
                "files.copied",
                extra={
                    "file_class": file_class,
                    "source_filename": source_filename,
                    "target_filename": target_filename,
                    "size_bytes": stored.size,
                },
            )

        return copied
