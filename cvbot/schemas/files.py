"""Pydantic schemas for upload, listing and copy endpoints.

Wire names are camelCase to stay compatible with the existing web client.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoredFile(CamelModel):
    """Descriptor of a file persisted by an upload."""

    original_name: str = Field(..., description="Filename as sent by the client.")
    filename: str = Field(..., description="Stored filename: {class}-{endpoint}{ext}.")
    path: str = Field(..., description="Location of the stored file.")
    size: int = Field(..., description="Size in bytes.")
    mimetype: str = Field(..., description="MIME type declared by the client.")
    endpoint: str = Field(..., description="Profile endpoint the file belongs to.")


class UploadResponse(CamelModel):
    success: bool = True
    message: str
    file: StoredFile


class FileListing(CamelModel):
    """One entry of a directory listing."""

    filename: str
    size: int
    created: datetime
    modified: datetime


class ListFilesResponse(CamelModel):
    success: bool = True
    files: List[FileListing] = Field(default_factory=list)


class CopyFilesRequest(CamelModel):
    """Body of ``POST /api/copy-files``.

    Both fields default to empty so that missing values produce the service's
    own validation message instead of a schema error.
    """

    source_endpoint: str = ""
    target_endpoint: str = ""


class CopiedFile(CamelModel):
    type: Literal["cv", "photo"]
    original_filename: str
    new_filename: str
    size: int


class CopyFilesResponse(CamelModel):
    success: bool = True
    message: str
    copied_files: List[CopiedFile] = Field(default_factory=list)
