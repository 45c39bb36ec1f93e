"""Service layer: one module per API resource."""

from .collections import CollectionService
from .documents import DocumentService, build_periods, format_document
from .files import FileService
from .images import (
    AppwriteImagePlatform,
    ImageKitImagePlatform,
    ImagePlatform,
    ImagePreviewOptions,
    ImageService,
    ImageUploadOptions,
)
from .memes import MemeService
from .translate import SUPPORTED_LANGUAGES, TranslationService

__all__ = [
    "SUPPORTED_LANGUAGES",
    "AppwriteImagePlatform",
    "CollectionService",
    "DocumentService",
    "FileService",
    "ImageKitImagePlatform",
    "ImagePlatform",
    "ImagePreviewOptions",
    "ImageService",
    "ImageUploadOptions",
    "MemeService",
    "TranslationService",
    "build_periods",
    "format_document",
]
