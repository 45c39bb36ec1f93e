"""FastAPI application and global error handling."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from . import __version__
from .config import Settings, settings
from .exceptions import AppError
from .logs import configure_logging
from .middleware import AppwriteAuthenticator, add_request_id, limiter
from .models import HealthResponse
from .routes import auth, collections, documents, files, images, memes, translate
from .services import (
    AppwriteImagePlatform,
    CollectionService,
    DocumentService,
    FileService,
    ImageKitImagePlatform,
    ImageService,
    MemeService,
    TranslationService,
)
from .storage import create_document_store, create_file_store, create_schema_store


def build_services(app: FastAPI, config: Settings | None = None) -> None:
    """Create the stores and services and attach them to app.state."""
    config = config or settings

    document_store = create_document_store(config)
    file_store = (
        create_file_store(config)
        if config.appwrite_meme_bucket_id or config.use_in_memory_backends
        else None
    )
    if file_store is None:
        logger.warning("APPWRITE_MEME_BUCKET_ID is not set; file endpoints are unavailable")

    document_service = DocumentService(document_store)

    app.state.authenticator = AppwriteAuthenticator(config)
    app.state.collection_service = CollectionService(create_schema_store(config))
    app.state.document_service = document_service
    app.state.file_service = FileService(file_store, config)
    app.state.image_service = ImageService(
        AppwriteImagePlatform(file_store, config), ImageKitImagePlatform(config)
    )
    app.state.translation_service = TranslationService(config=config)
    app.state.meme_service = MemeService(document_service, config.meme_collection_id)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    configure_logging()
    build_services(app)

    if not settings.appwrite_admin_team_id:
        logger.warning("APPWRITE_ADMIN_TEAM_ID is not set; admin endpoints will fail")

    logger.info("Application started successfully")

    yield

    await app.state.translation_service.aclose()
    logger.info("Application shutdown complete")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map domain errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle validation errors with clean messages."""
    error_messages = []

    for error in exc.errors():
        field = error["loc"][-1] if error["loc"] else "field"
        message = error.get("msg", f"Invalid {field}")

        match error["type"]:
            case "missing":
                message = f"Required field '{field}' is missing"
            case "json_invalid":
                message = "Invalid JSON format"

        error_messages.append(message)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Validation failed",
            "message": "; ".join(error_messages),
            "code": "ValidationError",
            "details": error_messages,
        },
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "message": "Too many requests, please try again later.",
            "code": "RateLimitExceeded",
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": str(exc) or "Something went wrong",
            "code": "InternalServerError",
        },
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Meme Dock API",
        version=__version__,
        description="Content API for managing memes and their taxonomy",
        lifespan=lifespan,
    )

    app.middleware("http")(add_request_id)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origin.split(",")],
        allow_credentials=settings.cors_origin != "*",
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.state.limiter = limiter  # Required by slowapi
    app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health", tags=["health"])
    async def health_endpoint() -> dict[str, Any]:
        return HealthResponse(timestamp=datetime.now(UTC)).model_dump(mode="json")

    app.include_router(auth.router)
    app.include_router(collections.router)
    app.include_router(documents.router)
    app.include_router(files.router)
    app.include_router(images.router)
    app.include_router(translate.router, prefix="/api/simple-translate")
    app.include_router(translate.router, prefix="/api/translate")
    app.include_router(memes.router)

    app.openapi_tags = [
        {"name": "collections", "description": "Collection schemas"},
        {"name": "documents", "description": "Documents of any collection"},
        {"name": "files", "description": "Meme bucket files"},
        {"name": "images", "description": "Images on Appwrite or ImageKit"},
        {"name": "translate", "description": "Text translation"},
        {"name": "memes", "description": "Meme listing and usage"},
        {"name": "auth", "description": "Authentication status"},
        {"name": "health", "description": "Health checks"},
    ]

    return app


app = create_app()
