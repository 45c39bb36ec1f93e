"""Upload validation: size, MIME type and extension checks."""

import secrets
from dataclasses import dataclass
from pathlib import PurePath

from .exceptions import FileError

MAX_FILE_SIZE = 2 * 1024 * 1024
MIN_FILE_SIZE = 10

IMAGE_MAX_FILE_SIZE = 5 * 1024 * 1024
IMAGE_MIN_FILE_SIZE = 100
IMAGE_MAX_DIMENSIONS = {"width": 4000, "height": 4000}

SUPPORTED_MIME_TYPES = {
    "image": [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "image/tiff",
    ],
    "video": [
        "video/mp4",
        "video/webm",
        "video/ogg",
        "video/quicktime",
    ],
    "other": [
        "application/octet-stream",
    ],
}

ALL_SUPPORTED_MIME_TYPES = [mime for group in SUPPORTED_MIME_TYPES.values() for mime in group]

BLOCKED_EXTENSIONS = frozenset(
    {
        # executables
        "exe", "dll", "bat", "cmd", "sh", "ps1",
        # scripts
        "js", "php", "py", "pl", "rb",
        # system files
        "sys", "com",
        # archives
        "zip", "rar", "7z", "tar", "gz",
    }
)  # fmt: skip


@dataclass
class UploadedFile:
    """An uploaded file held in memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class ImageValidationOptions:
    """Overrides for image validation; unset values use the image defaults."""

    max_file_size: int | None = None
    min_file_size: int | None = None
    allowed_types: list[str] | None = None
    max_width: int | None = None
    max_height: int | None = None


def validate_file_size(size: int, max_file_size: int = MAX_FILE_SIZE) -> None:
    """Raise FileError if the file exceeds max_file_size bytes."""
    if size > max_file_size:
        raise FileError(f"File too large. Maximum size is {max_file_size / (1024 * 1024):.1f}MB")


def validate_file_mime_type(
    mime_type: str | None, allowed_types: list[str] | None = None
) -> None:
    """Raise FileError if the MIME type is not allowed."""
    allowed = ALL_SUPPORTED_MIME_TYPES if allowed_types is None else allowed_types
    if not mime_type or mime_type not in allowed:
        raise FileError(f"Unsupported file type: {mime_type}")


def validate_file_extension(filename: str) -> None:
    """Raise FileError if the extension is on the blocklist."""
    ext = PurePath(filename).suffix.lower().lstrip(".")
    if ext in BLOCKED_EXTENSIONS:
        raise FileError(f"File type not allowed: .{ext}")


def generate_secure_file_id() -> str:
    """Generate a random 32-character hex file ID."""
    return secrets.token_hex(16)


def validate_file(
    upload: UploadedFile | None,
    max_file_size: int = MAX_FILE_SIZE,
    min_file_size: int = MIN_FILE_SIZE,
    allowed_types: list[str] | None = None,
) -> None:
    """Validate existence, size bounds, MIME type and extension of an upload."""
    if upload is None or not upload.data:
        raise FileError("Invalid file provided")

    if upload.size < min_file_size:
        raise FileError(f"File too small. Minimum size is {min_file_size} bytes")

    validate_file_size(upload.size, max_file_size)
    validate_file_mime_type(upload.content_type, allowed_types)
    validate_file_extension(upload.filename)


def validate_image_file(
    upload: UploadedFile | None, options: ImageValidationOptions | None = None
) -> None:
    """Validate an upload with image defaults merged with the given overrides."""
    options = options or ImageValidationOptions()
    validate_file(
        upload,
        max_file_size=options.max_file_size or IMAGE_MAX_FILE_SIZE,
        min_file_size=options.min_file_size or IMAGE_MIN_FILE_SIZE,
        allowed_types=options.allowed_types or SUPPORTED_MIME_TYPES["image"],
    )
