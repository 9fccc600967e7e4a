from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from cvbot.api.dependencies import get_file_service
from cvbot.core.errors import ValidationAppError
from cvbot.core.file_validation import read_upload_file_limited
from cvbot.schemas.files import (
    CopyFilesRequest,
    CopyFilesResponse,
    ListFilesResponse,
    UploadResponse,
)
from cvbot.services.file_service import FileService, validate_mime_type

router = APIRouter(prefix="/api", tags=["Files"])


async def _store_upload(
    service: FileService,
    file_class: str,
    upload: UploadFile | None,
    endpoint: str | None,
    missing_message: str,
    success_message: str,
) -> UploadResponse:
    if upload is None or not upload.filename:
        raise ValidationAppError(code="file_required", message=missing_message)

    # Type is checked before the body is read
    validate_mime_type(file_class, upload.content_type)
    data = await read_upload_file_limited(upload, service.max_upload_bytes)

    stored = service.store_file(
        file_class,
        endpoint,
        data,
        original_name=upload.filename,
        mime_type=upload.content_type,
    )
    return UploadResponse(message=success_message, file=stored)


@router.post("/upload/cv", response_model=UploadResponse)
async def upload_cv(
    cv_file: UploadFile | None = File(default=None, alias="cvFile"),
    endpoint: str | None = Form(default=None),
    service: FileService = Depends(get_file_service),
) -> UploadResponse:
    """Store a CV document (PDF, DOC, DOCX or TXT) as ``cv-{endpoint}{ext}``."""
    return await _store_upload(
        service, "cv", cv_file, endpoint, "No CV file uploaded", "CV file uploaded successfully"
    )


@router.post("/upload/resume", response_model=UploadResponse)
async def upload_resume(
    resume_file: UploadFile | None = File(default=None, alias="resumeFile"),
    cv_file: UploadFile | None = File(default=None, alias="cvFile"),
    endpoint: str | None = Form(default=None),
    service: FileService = Depends(get_file_service),
) -> UploadResponse:
    """Alias of the CV upload accepting a ``resumeFile`` field."""
    return await _store_upload(
        service,
        "cv",
        resume_file or cv_file,
        endpoint,
        "No resume file uploaded",
        "Resume file uploaded successfully",
    )


@router.post("/upload/photo", response_model=UploadResponse)
async def upload_photo(
    photo_file: UploadFile | None = File(default=None, alias="photoFile"),
    endpoint: str | None = Form(default=None),
    service: FileService = Depends(get_file_service),
) -> UploadResponse:
    """Store a profile photo (JPEG or PNG) as ``photo-{endpoint}{ext}``."""
    return await _store_upload(
        service, "photo", photo_file, endpoint, "No photo file uploaded", "Photo uploaded successfully"
    )


@router.get("/files/{file_type}/{filename}")
def get_file(
    file_type: str,
    filename: str,
    download: bool = Query(default=False, description="Force an attachment disposition."),
    service: FileService = Depends(get_file_service),
) -> Response:
    """Serve a stored file. PDFs are displayed inline unless ``download`` is set."""
    content = service.fetch_file(file_type, filename, force_download=download)
    return Response(
        content=content.data,
        media_type=content.content_type,
        headers={"Content-Disposition": content.content_disposition},
    )


@router.get("/files/{file_type}", response_model=ListFilesResponse)
def list_files(file_type: str, service: FileService = Depends(get_file_service)) -> ListFilesResponse:
    return ListFilesResponse(files=service.list_files(file_type))


@router.post("/copy-files", response_model=CopyFilesResponse)
def copy_files(
    payload: CopyFilesRequest,
    service: FileService = Depends(get_file_service),
) -> CopyFilesResponse:
    """Copy the CV and photo of one endpoint to another.

    Copying an endpoint that has no files succeeds with an empty list.
    """
    copied = service.copy_files(payload.source_endpoint, payload.target_endpoint)
    return CopyFilesResponse(
        message=f"Copied {len(copied)} file(s) from {payload.source_endpoint.strip()} to {payload.target_endpoint.strip()}",
        copied_files=copied,
    )
