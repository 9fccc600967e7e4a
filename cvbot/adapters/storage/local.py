"""Directory-backed upload store.

One flat directory per file class. Writes go to a hidden temp file in the
target directory and are moved into place with ``os.replace`` so readers
never observe a partially written file. Concurrent writers to the same name
race at the rename step and the last one wins.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from cvbot.adapters.storage.base import FILE_CLASSES, AbstractUploadStore, FileClass, StoredObject

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".upload-"


def _stat_to_object(path: Path) -> StoredObject:
    stat = path.stat()
    birth = getattr(stat, "st_birthtime", None)
    created = birth if birth is not None else stat.st_ctime
    return StoredObject(
        filename=path.name,
        size=stat.st_size,
        created_at=datetime.fromtimestamp(created, timezone.utc),
        modified_at=datetime.fromtimestamp(stat.st_mtime, timezone.utc),
    )


class LocalUploadStore(AbstractUploadStore):
    """Upload store keeping each file class in its own directory."""

    def __init__(self, directories: dict[FileClass, Path]) -> None:
        """Initialize the store and create missing directories.

        Args:
            directories: Mapping of file class to directory path.

        Raises:
            ValueError: If a file class has no directory.
        """
        missing = [c for c in FILE_CLASSES if c not in directories]
        if missing:
            raise ValueError(f"Missing upload directory for: {', '.join(missing)}")

        self._dirs: dict[FileClass, Path] = {c: Path(directories[c]) for c in FILE_CLASSES}
        for file_class, directory in self._dirs.items():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info(
                "storage.directory_ready",
                extra={"file_class": file_class, "directory": str(directory)},
            )

    @classmethod
    def from_root(cls, root: Path, cv_dir: str = "cv", photo_dir: str = "photo") -> "LocalUploadStore":
        return cls({"cv": root / cv_dir, "photo": root / photo_dir})

    def _path(self, file_class: FileClass, filename: str) -> Path:
        return self._dirs[file_class] / filename

    def write(self, file_class: FileClass, filename: str, data: bytes) -> StoredObject:
        directory = self._dirs[file_class]
        fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, directory / filename)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return _stat_to_object(directory / filename)

    def read(self, file_class: FileClass, filename: str) -> bytes:
        path = self._path(file_class, filename)
        if not path.is_file():
            raise FileNotFoundError(filename)
        return path.read_bytes()

    def exists(self, file_class: FileClass, filename: str) -> bool:
        return self._path(file_class, filename).is_file()

    def list(self, file_class: FileClass) -> list[StoredObject]:
        entries: list[StoredObject] = []
        for path in sorted(self._dirs[file_class].iterdir()):
            if path.name.startswith(_TEMP_PREFIX) or not path.is_file():
                continue
            try:
                entries.append(_stat_to_object(path))
            except FileNotFoundError:
                # Replaced or removed between iterdir() and stat()
                continue
        return entries

    def delete(self, file_class: FileClass, filename: str) -> None:
        self._path(file_class, filename).unlink(missing_ok=True)

    def copy(self, file_class: FileClass, source: str, target: str) -> StoredObject:
        source_path = self._path(file_class, source)
        if not source_path.is_file():
            raise FileNotFoundError(source)
        return self.write(file_class, target, source_path.read_bytes())

    def location(self, file_class: FileClass, filename: str) -> str:
        return str(self._path(file_class, filename))
