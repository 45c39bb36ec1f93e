"""Image endpoints and public proxy redirects."""

from fastapi import APIRouter, File, Form, Query, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from loguru import logger

from ..config import settings
from ..dependencies import AdminUser, Images, OptionalAuth
from ..exceptions import FileError
from ..middleware import limiter
from ..services import ImagePlatform, ImagePreviewOptions, ImageUploadOptions
from ..validation import IMAGE_MAX_FILE_SIZE
from .files import to_uploaded_file

router = APIRouter(prefix="/api/images", tags=["images"])


def _upload_options(
    folder: str | None,
    tags: str | None,
    file_name: str | None,
    is_private: bool,
    use_unique_file_name: bool,
) -> ImageUploadOptions:
    return ImageUploadOptions(
        folder=folder,
        tags=[t.strip() for t in tags.split(",") if t.strip()] if tags else [],
        file_name=file_name,
        is_private=is_private,
        use_unique_file_name=use_unique_file_name,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.upload_rate_limit)
async def upload_image(
    request: Request,
    service: Images,
    user_id: AdminUser,
    file: UploadFile | None = File(None),
    platform: ImagePlatform | None = Form(None),
    folder: str | None = Form(None),
    tags: str | None = Form(None),
    file_name: str | None = Form(None, alias="fileName"),
    is_private: bool = Form(False, alias="isPrivate"),
    use_unique_file_name: bool = Form(True, alias="useUniqueFileName"),
) -> dict:
    if file is None:
        raise FileError("No file uploaded")

    options = _upload_options(folder, tags, file_name, is_private, use_unique_file_name)
    upload = await to_uploaded_file(file, IMAGE_MAX_FILE_SIZE)
    result = await service.upload_image(upload, options, platform)
    logger.info(f"Image uploaded: {result['id']}", user_id=user_id)
    return {"success": True, "data": result}


@router.post("/multiple", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.multiple_upload_rate_limit)
async def upload_multiple_images(
    request: Request,
    service: Images,
    user_id: AdminUser,
    files: list[UploadFile] | None = File(None),
    platform: ImagePlatform | None = Form(None),
    folder: str | None = Form(None),
    tags: str | None = Form(None),
    is_private: bool = Form(False, alias="isPrivate"),
    use_unique_file_name: bool = Form(True, alias="useUniqueFileName"),
) -> dict:
    if not files:
        raise FileError("No files uploaded")

    options = _upload_options(folder, tags, None, is_private, use_unique_file_name)
    uploads = [await to_uploaded_file(f, IMAGE_MAX_FILE_SIZE) for f in files]
    results = await service.upload_multiple_images(uploads, options, platform)
    logger.info(f"Multiple images uploaded: {len(results)} images", user_id=user_id)
    return {"success": True, "data": results}


@router.get("")
async def list_images(
    service: Images,
    platform: ImagePlatform | None = None,
    limit: int | None = None,
    offset: int | None = None,
    folder: str | None = None,
    search: str | None = None,
    tags: str | None = Query(None, description="Comma-separated tags"),
) -> dict:
    result = await service.list_images(
        platform,
        limit=limit,
        offset=offset,
        folder=folder,
        search=search,
        tags=tags.split(",") if tags else None,
    )
    return {"success": True, "data": result}


@router.get("/preview/{image_id}")
async def preview_image(
    image_id: str,
    service: Images,
    auth: OptionalAuth,
    width: int | None = None,
    height: int | None = None,
    quality: int | None = None,
    format: str | None = None,
    platform: ImagePlatform = ImagePlatform.APPWRITE,
) -> RedirectResponse:
    """Redirect to a transformed preview of the image."""
    options = ImagePreviewOptions(width=width, height=height, quality=quality, format=format)
    url = service.get_image_preview_url(image_id, options, platform)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get("/view/{image_id}")
async def view_image(
    image_id: str,
    service: Images,
    auth: OptionalAuth,
    platform: ImagePlatform = ImagePlatform.APPWRITE,
) -> RedirectResponse:
    return RedirectResponse(
        service.get_image_view_url(image_id, platform), status_code=status.HTTP_302_FOUND
    )


@router.get("/download/{image_id}")
async def download_image(
    image_id: str,
    service: Images,
    auth: OptionalAuth,
    platform: ImagePlatform = ImagePlatform.APPWRITE,
) -> RedirectResponse:
    return RedirectResponse(
        service.get_image_download_url(image_id, platform), status_code=status.HTTP_302_FOUND
    )


@router.get("/{image_id}")
async def get_image(image_id: str, service: Images, platform: ImagePlatform | None = None) -> dict:
    return {"success": True, "data": await service.get_image_metadata(image_id, platform)}


@router.delete("/{image_id}")
async def delete_image(
    image_id: str, service: Images, user_id: AdminUser, platform: ImagePlatform | None = None
) -> dict:
    await service.delete_image(image_id, platform)
    logger.info(f"Image deleted: {image_id}", user_id=user_id)
    return {"success": True, "message": "Image deleted successfully"}
