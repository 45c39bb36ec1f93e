"""File storage in the meme bucket."""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from ..clients import appwrite_file_url
from ..config import Settings, settings
from ..exceptions import AppError, ConfigError, FileError
from ..storage import FileStore
from ..validation import UploadedFile, generate_secure_file_id, validate_file

MAX_FILES_PER_UPLOAD = 20


@contextmanager
def file_errors(action: str, **context: Any) -> Iterator[None]:
    """Log failures and wrap anything that is not an AppError in a FileError."""
    try:
        yield
    except AppError as e:
        logger.error(f"Error {action}: {e.message}", **context)
        raise
    except Exception as e:
        logger.error(f"Error {action}: {e}", **context)
        raise FileError(f"Error {action}: {e}") from e


def _check_file_id(file_id: str) -> None:
    if not file_id or not isinstance(file_id, str):
        raise FileError("Invalid file ID provided")


class FileService:
    """Uploads, lists and links files of the meme bucket."""

    def __init__(self, store: FileStore | None, config: Settings | None = None):
        self._store = store
        self.config = config or settings

    @property
    def store(self) -> FileStore:
        if self._store is None:
            raise ConfigError("APPWRITE_MEME_BUCKET_ID not configured")
        return self._store

    async def upload_file(
        self,
        upload: UploadedFile,
        permissions: list[str] | None = None,
        file_id: str | None = None,
    ) -> dict[str, Any]:
        """Validate and upload a single file under a random ID."""
        with file_errors("uploading file", filename=upload.filename, size=upload.size):
            store = self.store
            validate_file(upload, max_file_size=self.config.max_file_size)
            result = await store.create_file(
                file_id or generate_secure_file_id(), upload.filename, upload.data, permissions
            )
            logger.info(
                "File uploaded successfully",
                file_id=result["$id"],
                file_name=result.get("name"),
                size=result.get("sizeOriginal"),
            )
            return result

    async def upload_multiple_files(
        self, uploads: list[UploadedFile], permissions: list[str] | None = None
    ) -> list[dict[str, Any]]:
        """Upload up to 20 files; every file is validated before any upload."""
        with file_errors("uploading multiple files", file_count=len(uploads)):
            if not uploads:
                raise FileError("No files provided for upload")
            if len(uploads) > MAX_FILES_PER_UPLOAD:
                raise FileError(f"Too many files. Maximum allowed is {MAX_FILES_PER_UPLOAD}")

            for upload in uploads:
                validate_file(upload, max_file_size=self.config.max_file_size)

            return list(
                await asyncio.gather(*(self.upload_file(u, permissions) for u in uploads))
            )

    async def get_file_metadata(self, file_id: str) -> dict[str, Any]:
        with file_errors("fetching file metadata", file_id=file_id):
            _check_file_id(file_id)
            return await self.store.get_file(file_id)

    async def list_files(self, limit: int | None = None, offset: int | None = None) -> dict[str, Any]:
        """List the bucket, sliced by offset and limit."""
        with file_errors("listing files", limit=limit, offset=offset):
            store = self.store
            if limit is not None and limit < 0:
                raise FileError("Invalid limit parameter")
            if offset is not None and offset < 0:
                raise FileError("Invalid offset parameter")

            files = await store.list_files()
            total = len(files)
            if limit is not None or offset is not None:
                start = offset or 0
                files = files[start : start + limit if limit else None]
            return {"total": total, "files": files}

    async def delete_file(self, file_id: str) -> None:
        with file_errors("deleting file", file_id=file_id):
            _check_file_id(file_id)
            await self.store.delete_file(file_id)
            logger.info(f"Deleted file {file_id}")

    def _url(self, file_id: str, action: str, **params: Any) -> str:
        _check_file_id(file_id)
        if not self.config.appwrite_meme_bucket_id:
            raise ConfigError("APPWRITE_MEME_BUCKET_ID not configured")
        return appwrite_file_url(file_id, action, self.config, **params)

    def get_file_download_url(self, file_id: str) -> str:
        with file_errors("getting download URL", file_id=file_id):
            return self._url(file_id, "download")

    def get_file_preview_url(
        self,
        file_id: str,
        width: int | None = None,
        height: int | None = None,
        quality: int | None = None,
    ) -> str:
        with file_errors("getting preview URL", file_id=file_id, width=width, height=height):
            if width is not None and width < 1:
                raise FileError("Invalid width parameter")
            if height is not None and height < 1:
                raise FileError("Invalid height parameter")
            params = {
                k: v
                for k, v in {"width": width, "height": height, "quality": quality}.items()
                if v is not None
            }
            return self._url(file_id, "preview", **params)

    def get_file_view_url(self, file_id: str) -> str:
        with file_errors("getting view URL", file_id=file_id):
            return self._url(file_id, "view")
