"""FastAPI dependencies that hand out the services stored on app.state."""

from typing import Annotated

from fastapi import Depends, Request

from .middleware import AuthContext, optional_user, require_admin
from .services import (
    CollectionService,
    DocumentService,
    FileService,
    ImageService,
    MemeService,
    TranslationService,
)


def get_collection_service(request: Request) -> CollectionService:
    return request.app.state.collection_service


def get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_image_service(request: Request) -> ImageService:
    return request.app.state.image_service


def get_translation_service(request: Request) -> TranslationService:
    return request.app.state.translation_service


def get_meme_service(request: Request) -> MemeService:
    return request.app.state.meme_service


Collections = Annotated[CollectionService, Depends(get_collection_service)]
Documents = Annotated[DocumentService, Depends(get_document_service)]
Files = Annotated[FileService, Depends(get_file_service)]
Images = Annotated[ImageService, Depends(get_image_service)]
Translator = Annotated[TranslationService, Depends(get_translation_service)]
Memes = Annotated[MemeService, Depends(get_meme_service)]

AdminUser = Annotated[str, Depends(require_admin)]
OptionalAuth = Annotated[AuthContext, Depends(optional_user)]
