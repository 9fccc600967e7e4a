"""In-memory upload store.

Notes:
- Per-process only: contents are lost on restart.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from cvbot.adapters.storage.base import FILE_CLASSES, AbstractUploadStore, FileClass, StoredObject


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Entry:
    data: bytes
    created_at: datetime
    modified_at: datetime


class InMemoryUploadStore(AbstractUploadStore):
    """Dict-backed upload store for tests and ephemeral deployments."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._files: dict[FileClass, dict[str, _Entry]] = {c: {} for c in FILE_CLASSES}

    @staticmethod
    def _to_object(filename: str, entry: _Entry) -> StoredObject:
        return StoredObject(
            filename=filename,
            size=len(entry.data),
            created_at=entry.created_at,
            modified_at=entry.modified_at,
        )

    def write(self, file_class: FileClass, filename: str, data: bytes) -> StoredObject:
        now = self._clock()
        with self._lock:
            entry = _Entry(data=bytes(data), created_at=now, modified_at=now)
            self._files[file_class][filename] = entry
            return self._to_object(filename, entry)

    def read(self, file_class: FileClass, filename: str) -> bytes:
        with self._lock:
            entry = self._files[file_class].get(filename)
            if entry is None:
                raise FileNotFoundError(filename)
            return entry.data

    def exists(self, file_class: FileClass, filename: str) -> bool:
        with self._lock:
            return filename in self._files[file_class]

    def list(self, file_class: FileClass) -> list[StoredObject]:
        with self._lock:
            return [
                self._to_object(name, entry)
                for name, entry in sorted(self._files[file_class].items())
            ]

    def delete(self, file_class: FileClass, filename: str) -> None:
        with self._lock:
            self._files[file_class].pop(filename, None)

    def copy(self, file_class: FileClass, source: str, target: str) -> StoredObject:
        with self._lock:
            data = self.read(file_class, source)
            return self.write(file_class, target, data)

    def location(self, file_class: FileClass, filename: str) -> str:
        return f"memory://{file_class}/{filename}"
