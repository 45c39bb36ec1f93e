"""Image storage on Appwrite or ImageKit behind one interface."""

import asyncio
import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Protocol, TypeVar

from imagekitio.models.ListAndSearchFileRequestOptions import ListAndSearchFileRequestOptions
from imagekitio.models.UploadFileRequestOptions import UploadFileRequestOptions
from loguru import logger

from ..clients import appwrite_file_url, get_imagekit
from ..config import Settings, settings
from ..exceptions import ConfigError, FileError, ValidationError
from ..storage import FileStore
from ..types import ImageListResponse, ImageMetadata
from ..validation import (
    ImageValidationOptions,
    UploadedFile,
    generate_secure_file_id,
    validate_image_file,
)
from .files import file_errors

T = TypeVar("T")

MAX_IMAGES_PER_UPLOAD = 20
PROXY_PREFIX = "/api/images"


class ImagePlatform(str, Enum):
    """Where images are stored."""

    APPWRITE = "appwrite"
    IMAGEKIT = "imagekit"
    AUTO = "auto"


@dataclass
class ImageUploadOptions:
    folder: str | None = None
    tags: list[str] = field(default_factory=list)
    file_name: str | None = None
    is_private: bool = False
    use_unique_file_name: bool = True
    custom_metadata: dict[str, Any] | None = None
    validation: ImageValidationOptions | None = None


@dataclass
class ImagePreviewOptions:
    width: int | None = None
    height: int | None = None
    quality: int | None = None
    format: str | None = None
    crop: str | None = None
    focus: str | None = None


class ImagePlatformService(Protocol):
    """Operations every image platform supports."""

    def is_configured(self) -> bool: ...

    async def upload_image(
        self, upload: UploadedFile, options: ImageUploadOptions | None = None
    ) -> ImageMetadata: ...

    async def upload_multiple_images(
        self, uploads: list[UploadedFile], options: ImageUploadOptions | None = None
    ) -> list[ImageMetadata]: ...

    async def get_image_metadata(self, image_id: str) -> ImageMetadata: ...

    async def list_images(
        self,
        limit: int | None = None,
        offset: int | None = None,
        folder: str | None = None,
        tags: list[str] | None = None,
        search: str | None = None,
    ) -> ImageListResponse: ...

    async def delete_image(self, image_id: str) -> None: ...

    def get_image_download_url(self, image_id: str) -> str: ...

    def get_image_preview_url(
        self, image_id: str, options: ImagePreviewOptions | None = None
    ) -> str: ...

    def get_image_view_url(self, image_id: str) -> str: ...


def _check_image_id(image_id: str) -> None:
    if not image_id or not isinstance(image_id, str):
        raise FileError("Invalid image ID provided")


def _check_upload_count(uploads: list[UploadedFile]) -> None:
    if not uploads:
        raise FileError("No files provided for upload")
    if len(uploads) > MAX_IMAGES_PER_UPLOAD:
        raise FileError(f"Too many files. Maximum allowed is {MAX_IMAGES_PER_UPLOAD}")


def _check_pagination(limit: int | None, offset: int | None) -> None:
    if limit is not None and limit < 0:
        raise FileError("Invalid limit parameter")
    if offset is not None and offset < 0:
        raise FileError("Invalid offset parameter")


class AppwriteImagePlatform:
    """Images stored as files in the Appwrite meme bucket."""

    def __init__(self, store: FileStore | None, config: Settings | None = None):
        self._store = store
        self.config = config or settings

    def is_configured(self) -> bool:
        return bool(
            self._store is not None
            and self.config.appwrite_meme_bucket_id
            and self.config.is_appwrite_configured
        )

    @property
    def store(self) -> FileStore:
        if self._store is None or not self.config.appwrite_meme_bucket_id:
            raise ConfigError("APPWRITE_MEME_BUCKET_ID not configured")
        return self._store

    def to_metadata(self, file: dict[str, Any]) -> ImageMetadata:
        """Map an Appwrite file record to image metadata with proxy URLs."""
        image_id = file.get("$id", "")
        permissions = [p for p in file.get("$permissions") or [] if isinstance(p, str)]
        chunks_total = file.get("chunksTotal") or 0
        chunks_uploaded = file.get("chunksUploaded") or 0

        return {
            "id": image_id,
            "name": file.get("name", ""),
            "mimeType": file.get("mimeType", ""),
            "size": file.get("sizeOriginal", 0),
            "width": file.get("width"),
            "height": file.get("height"),
            "url": f"{PROXY_PREFIX}/view/{image_id}",
            "downloadUrl": f"{PROXY_PREFIX}/download/{image_id}",
            "thumbnailUrl": f"{PROXY_PREFIX}/preview/{image_id}",
            "createdAt": file.get("$createdAt"),
            "updatedAt": file.get("$updatedAt"),
            "bucketId": file.get("bucketId", ""),
            "signature": file.get("signature", ""),
            "tags": [p[len("tag:") :] for p in permissions if p.startswith("tag:")],
            "isUploaded": chunks_uploaded >= chunks_total,
            "uploadProgress": round(chunks_uploaded / chunks_total * 100) if chunks_total else 100,
        }

    async def upload_image(
        self, upload: UploadedFile, options: ImageUploadOptions | None = None
    ) -> ImageMetadata:
        options = options or ImageUploadOptions()
        with file_errors("uploading image to Appwrite", filename=upload.filename):
            store = self.store
            validate_image_file(upload, options.validation)
            result = await store.create_file(
                generate_secure_file_id(), options.file_name or upload.filename, upload.data
            )
            logger.info(f"Uploaded image {result['$id']} to Appwrite")
            return self.to_metadata(result)

    async def upload_multiple_images(
        self, uploads: list[UploadedFile], options: ImageUploadOptions | None = None
    ) -> list[ImageMetadata]:
        options = options or ImageUploadOptions()
        with file_errors("uploading multiple images to Appwrite", file_count=len(uploads)):
            _check_upload_count(uploads)
            for upload in uploads:
                validate_image_file(upload, options.validation)
            return list(await asyncio.gather(*(self.upload_image(u, options) for u in uploads)))

    async def get_image_metadata(self, image_id: str) -> ImageMetadata:
        with file_errors("fetching image metadata", image_id=image_id):
            _check_image_id(image_id)
            return self.to_metadata(await self.store.get_file(image_id))

    async def list_images(
        self,
        limit: int | None = None,
        offset: int | None = None,
        folder: str | None = None,
        tags: list[str] | None = None,
        search: str | None = None,
    ) -> ImageListResponse:
        with file_errors("listing images", limit=limit, offset=offset):
            store = self.store
            _check_pagination(limit, offset)

            files = await store.list_files()
            if folder:
                files = [
                    f
                    for f in files
                    if any(f"folder:{folder}" in p for p in f.get("$permissions") or [])
                ]
            if search:
                files = [f for f in files if search.lower() in f.get("name", "").lower()]

            images = [self.to_metadata(f) for f in files]
            if tags:
                images = [i for i in images if set(tags) & set(i["tags"])]

            total = len(images)
            start = offset or 0
            end = start + limit if limit else None
            return {
                "images": images[start:end],
                "total": total,
                "hasMore": end is not None and end < total,
            }

    async def delete_image(self, image_id: str) -> None:
        with file_errors("deleting image", image_id=image_id):
            _check_image_id(image_id)
            await self.store.delete_file(image_id)

    def _url(self, image_id: str, action: str, **params: Any) -> str:
        _check_image_id(image_id)
        if not self.config.appwrite_meme_bucket_id:
            raise ConfigError("APPWRITE_MEME_BUCKET_ID not configured")
        return appwrite_file_url(image_id, action, self.config, **params)

    def get_image_download_url(self, image_id: str) -> str:
        with file_errors("getting download URL", image_id=image_id):
            return self._url(image_id, "download")

    def get_image_preview_url(
        self, image_id: str, options: ImagePreviewOptions | None = None
    ) -> str:
        options = options or ImagePreviewOptions()
        params: dict[str, Any] = {}
        if options.width:
            params["width"] = options.width
        if options.height:
            params["height"] = options.height
        if options.quality is not None and 0 <= options.quality <= 100:
            params["quality"] = options.quality
        if options.format:
            params["output"] = options.format
        with file_errors("getting preview URL", image_id=image_id):
            return self._url(image_id, "preview", **params)

    def get_image_view_url(self, image_id: str) -> str:
        with file_errors("getting view URL", image_id=image_id):
            return self._url(image_id, "view")


class ImageKitImagePlatform:
    """Images stored on the ImageKit CDN.

    The ImageKit SDK is synchronous; calls run in the default executor.
    """

    def __init__(self, config: Settings | None = None):
        self.config = config or settings

    def is_configured(self) -> bool:
        return self.config.is_imagekit_configured

    @property
    def imagekit(self) -> Any:
        if not self.is_configured():
            raise ConfigError("ImageKit configuration is missing")
        return get_imagekit(self.config)

    async def _run(self, func: Callable[[], T]) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func)

    def to_metadata(self, result: Any) -> ImageMetadata:
        """Map an ImageKit SDK result object to image metadata."""
        image_id = str(getattr(result, "file_id", "") or "")
        tags = getattr(result, "tags", None) or []
        created_at = getattr(result, "created_at", None)
        return {
            "id": image_id,
            "name": str(getattr(result, "name", "") or ""),
            "mimeType": str(getattr(result, "mime", None) or getattr(result, "file_type", "") or ""),
            "size": int(getattr(result, "size", 0) or 0),
            "width": getattr(result, "width", None),
            "height": getattr(result, "height", None),
            "url": getattr(result, "url", None) or self.get_image_view_url(image_id),
            "thumbnailUrl": getattr(result, "thumbnail_url", None)
            or getattr(result, "thumbnail", None)
            or self.get_image_preview_url(image_id, ImagePreviewOptions(width=200)),
            "createdAt": str(created_at) if created_at else None,
            "tags": [str(tag) for tag in tags],
        }

    async def upload_image(
        self, upload: UploadedFile, options: ImageUploadOptions | None = None
    ) -> ImageMetadata:
        options = options or ImageUploadOptions()
        with file_errors("uploading image to ImageKit", filename=upload.filename):
            imagekit = self.imagekit
            validate_image_file(upload, options.validation)

            request_options = UploadFileRequestOptions(
                use_unique_file_name=options.use_unique_file_name,
                tags=options.tags or None,
                folder=options.folder or "/",
                is_private_file=options.is_private,
                custom_metadata=options.custom_metadata,
            )
            result = await self._run(
                partial(
                    imagekit.upload_file,
                    file=base64.b64encode(upload.data).decode(),
                    file_name=options.file_name or upload.filename,
                    options=request_options,
                )
            )
            logger.info(f"Uploaded image {result.file_id} to ImageKit")
            return self.to_metadata(result)

    async def upload_multiple_images(
        self, uploads: list[UploadedFile], options: ImageUploadOptions | None = None
    ) -> list[ImageMetadata]:
        options = options or ImageUploadOptions()
        with file_errors("uploading multiple images to ImageKit", file_count=len(uploads)):
            _check_upload_count(uploads)
            for upload in uploads:
                validate_image_file(upload, options.validation)
            return list(await asyncio.gather(*(self.upload_image(u, options) for u in uploads)))

    async def get_image_metadata(self, image_id: str) -> ImageMetadata:
        with file_errors("fetching image metadata", image_id=image_id):
            _check_image_id(image_id)
            imagekit = self.imagekit
            result = await self._run(partial(imagekit.get_file_details, file_id=image_id))
            return self.to_metadata(result)

    async def list_images(
        self,
        limit: int | None = None,
        offset: int | None = None,
        folder: str | None = None,
        tags: list[str] | None = None,
        search: str | None = None,
    ) -> ImageListResponse:
        with file_errors("listing images", limit=limit, offset=offset):
            imagekit = self.imagekit
            _check_pagination(limit, offset)

            params: dict[str, Any] = {"type": "file"}
            if limit:
                params["limit"] = limit
            if offset:
                params["skip"] = offset
            if folder:
                params["path"] = folder
            if search:
                params["search_query"] = f'name : "{search}"'
            if tags:
                params["tags"] = tags

            result = await self._run(
                partial(imagekit.list_files, options=ListAndSearchFileRequestOptions(**params))
            )
            files = getattr(result, "list", None) or []
            return {
                "images": [self.to_metadata(f) for f in files],
                "total": len(files),
                "hasMore": False,
            }

    async def delete_image(self, image_id: str) -> None:
        with file_errors("deleting image", image_id=image_id):
            _check_image_id(image_id)
            imagekit = self.imagekit
            await self._run(partial(imagekit.delete_file, file_id=image_id))

    def _endpoint(self) -> str:
        if not self.is_configured():
            raise ConfigError("ImageKit configuration is missing")
        return self.config.imagekit_url_endpoint.rstrip("/")

    def get_image_download_url(self, image_id: str) -> str:
        _check_image_id(image_id)
        return f"{self._endpoint()}/{image_id}?download=true"

    def get_image_preview_url(
        self, image_id: str, options: ImagePreviewOptions | None = None
    ) -> str:
        _check_image_id(image_id)
        options = options or ImagePreviewOptions()
        transformation: dict[str, Any] = {}
        if options.width or options.height:
            transformation = {
                key: value
                for key, value in {
                    "width": options.width,
                    "height": options.height,
                    "crop": options.crop,
                    "focus": options.focus,
                    "quality": options.quality,
                    "format": options.format,
                }.items()
                if value
            }
        with file_errors("getting preview URL", image_id=image_id):
            return self.imagekit.url(
                {
                    "path": image_id,
                    "transformation": [transformation] if transformation else [],
                }
            )

    def get_image_view_url(self, image_id: str) -> str:
        _check_image_id(image_id)
        return f"{self._endpoint()}/{image_id}"


class ImageService:
    """Routes image operations to the selected platform.

    An explicit platform must be configured. ``auto`` prefers ImageKit and
    falls back to Appwrite.
    """

    def __init__(
        self,
        appwrite: ImagePlatformService,
        imagekit: ImagePlatformService,
        default_platform: ImagePlatform = ImagePlatform.AUTO,
    ):
        self.appwrite = appwrite
        self.imagekit = imagekit
        self.default_platform = default_platform

        if not (appwrite.is_configured() or imagekit.is_configured()):
            logger.warning("No image storage platform is configured")

    def platform(self, platform: ImagePlatform | str | None = None) -> ImagePlatformService:
        """Pick the platform service for a request.

        Raises:
            ConfigError: If the requested platform, or every platform, is unconfigured.
        """
        try:
            selected = ImagePlatform(platform) if platform else self.default_platform
        except ValueError:
            raise ValidationError(f"Unknown image platform: {platform}", field="platform") from None

        match selected:
            case ImagePlatform.APPWRITE:
                if not self.appwrite.is_configured():
                    raise ConfigError("Appwrite image service is not properly configured")
                return self.appwrite
            case ImagePlatform.IMAGEKIT:
                if not self.imagekit.is_configured():
                    raise ConfigError("ImageKit image service is not properly configured")
                return self.imagekit

        if self.imagekit.is_configured():
            return self.imagekit
        if self.appwrite.is_configured():
            return self.appwrite
        raise ConfigError("No image storage platform is properly configured")

    async def upload_image(
        self,
        upload: UploadedFile,
        options: ImageUploadOptions | None = None,
        platform: ImagePlatform | str | None = None,
    ) -> ImageMetadata:
        return await self.platform(platform).upload_image(upload, options)

    async def upload_multiple_images(
        self,
        uploads: list[UploadedFile],
        options: ImageUploadOptions | None = None,
        platform: ImagePlatform | str | None = None,
    ) -> list[ImageMetadata]:
        return await self.platform(platform).upload_multiple_images(uploads, options)

    async def get_image_metadata(
        self, image_id: str, platform: ImagePlatform | str | None = None
    ) -> ImageMetadata:
        return await self.platform(platform).get_image_metadata(image_id)

    async def list_images(
        self, platform: ImagePlatform | str | None = None, **options: Any
    ) -> ImageListResponse:
        return await self.platform(platform).list_images(**options)

    async def delete_image(self, image_id: str, platform: ImagePlatform | str | None = None) -> None:
        await self.platform(platform).delete_image(image_id)

    def get_image_download_url(
        self, image_id: str, platform: ImagePlatform | str | None = None
    ) -> str:
        return self.platform(platform).get_image_download_url(image_id)

    def get_image_preview_url(
        self,
        image_id: str,
        options: ImagePreviewOptions | None = None,
        platform: ImagePlatform | str | None = None,
    ) -> str:
        return self.platform(platform).get_image_preview_url(image_id, options)

    def get_image_view_url(self, image_id: str, platform: ImagePlatform | str | None = None) -> str:
        return self.platform(platform).get_image_view_url(image_id)
