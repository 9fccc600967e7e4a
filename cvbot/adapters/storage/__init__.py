"""Upload storage adapters.

A small abstraction layer so the service can run against plain directories
in production and an in-memory store in tests without changing the API layer.
"""

from cvbot.adapters.storage.base import FILE_CLASSES, AbstractUploadStore, FileClass, StoredObject
from cvbot.adapters.storage.in_memory import InMemoryUploadStore
from cvbot.adapters.storage.local import LocalUploadStore

__all__ = [
    "FILE_CLASSES",
    "AbstractUploadStore",
    "FileClass",
    "InMemoryUploadStore",
    "LocalUploadStore",
    "StoredObject",
]
