"""File storage endpoints for the meme bucket."""

from fastapi import APIRouter, File, Query, Request, UploadFile, status

from ..config import settings
from ..dependencies import AdminUser, Files
from ..exceptions import FileError
from ..middleware import limiter
from ..validation import UploadedFile, validate_file_size

router = APIRouter(prefix="/api/files", tags=["files"])

MAX_FILES_PER_REQUEST = 10


async def to_uploaded_file(upload: UploadFile, max_size: int | None = None) -> UploadedFile:
    """Read a multipart upload into memory, at most one byte past ``max_size``.

    Raises:
        FileError: If the upload is larger than ``max_size`` bytes.
    """
    max_size = max_size or settings.max_file_size
    if upload.size is not None:
        validate_file_size(upload.size, max_size)

    data = await upload.read(max_size + 1)
    validate_file_size(len(data), max_size)
    return UploadedFile(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        data=data,
    )


@router.get("")
async def list_files(
    service: Files,
    limit: int | None = Query(None),
    offset: int | None = Query(None),
) -> dict:
    result = await service.list_files(limit=limit, offset=offset)
    return {"success": True, **result}


@router.post("/upload", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.upload_rate_limit)
async def upload_file(
    request: Request, service: Files, _: AdminUser, file: UploadFile | None = File(None)
) -> dict:
    if file is None:
        raise FileError("No file provided")
    result = await service.upload_file(await to_uploaded_file(file))
    return {"success": True, "file": result}


@router.post("/upload/multiple", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.multiple_upload_rate_limit)
async def upload_multiple_files(
    request: Request,
    service: Files,
    _: AdminUser,
    files: list[UploadFile] | None = File(None),
) -> dict:
    if not files:
        raise FileError("No files provided")
    if len(files) > MAX_FILES_PER_REQUEST:
        raise FileError(f"Too many files. Maximum allowed is {MAX_FILES_PER_REQUEST}")
    uploads = [await to_uploaded_file(f) for f in files]
    results = await service.upload_multiple_files(uploads)
    return {"success": True, "files": results}


@router.get("/{file_id}/metadata")
async def get_file_metadata(file_id: str, service: Files) -> dict:
    return {"success": True, "file": await service.get_file_metadata(file_id)}


@router.get("/{file_id}/download")
async def get_file_download(file_id: str, service: Files) -> dict:
    return {"success": True, "downloadUrl": service.get_file_download_url(file_id)}


@router.get("/{file_id}/preview")
async def get_file_preview(
    file_id: str,
    service: Files,
    width: int | None = None,
    height: int | None = None,
    quality: int | None = None,
) -> dict:
    url = service.get_file_preview_url(file_id, width=width, height=height, quality=quality)
    return {"success": True, "previewUrl": url}


@router.get("/{file_id}/view")
async def get_file_view(file_id: str, service: Files) -> dict:
    return {"success": True, "viewUrl": service.get_file_view_url(file_id)}


@router.delete("/{file_id}")
async def delete_file(file_id: str, service: Files, _: AdminUser) -> dict:
    await service.delete_file(file_id)
    return {"success": True, "message": "File deleted successfully"}
