"""Upload store interfaces.

Services depend on this abstraction so the directory-backed store can be
swapped for the in-memory one in tests (or another backend later).
Adapters persist raw bytes by ``(file_class, filename)`` and know nothing
about endpoints, MIME types or naming rules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

FileClass = Literal["cv", "photo"]

FILE_CLASSES: tuple[FileClass, ...] = ("cv", "photo")


@dataclass(frozen=True)
class StoredObject:
    """Stat information for one stored file.

    Attributes:
        filename: Name of the file inside its class directory.
        size: Size in bytes.
        created_at: Creation time (birth time where the platform reports it).
        modified_at: Last modification time.
    """

    filename: str
    size: int
    created_at: datetime
    modified_at: datetime


class AbstractUploadStore(ABC):
    """Interface for upload stores."""

    @abstractmethod
    def write(self, file_class: FileClass, filename: str, data: bytes) -> StoredObject:
        """Write ``data`` under ``filename``, atomically replacing any previous file."""
        raise NotImplementedError

    @abstractmethod
    def read(self, file_class: FileClass, filename: str) -> bytes:
        """Return the file content.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def exists(self, file_class: FileClass, filename: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list(self, file_class: FileClass) -> list[StoredObject]:
        """Return every stored file of the class, sorted by filename."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, file_class: FileClass, filename: str) -> None:
        """Delete a file; missing files are ignored."""
        raise NotImplementedError

    @abstractmethod
    def copy(self, file_class: FileClass, source: str, target: str) -> StoredObject:
        """Duplicate ``source`` as ``target`` within the same class.

        Raises:
            FileNotFoundError: If ``source`` does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def location(self, file_class: FileClass, filename: str) -> str:
        """Return a human-readable location for the file (path or URI)."""
        raise NotImplementedError
