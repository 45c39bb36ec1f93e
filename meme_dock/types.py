"""Type definitions for the Meme Dock API."""

from typing import Any

from typing_extensions import TypedDict

Document = dict[str, Any]


class DocumentList(TypedDict):
    """A page of documents plus the total matching count."""

    total: int
    documents: list[Document]


class DocumentCountPeriod(TypedDict):
    """Number of documents created within one time period."""

    period: str
    count: int
    periodStartDate: str
    periodEndDate: str


class FailedDocument(TypedDict):
    """A batch entry that was not created."""

    index: int
    data: Document
    error: str


class BatchCreateResult(TypedDict):
    """Outcome of a batch document creation."""

    successful: list[Document]
    failed: list[FailedDocument]
    total: int


class TrendingMetrics(TypedDict):
    """Inputs and output of one trending score calculation."""

    totalUsages: int
    recentCount: int
    totalHours: int
    velocity: float
    spikeFactor: float
    trendingScore: float


class ImageMetadata(TypedDict, total=False):
    """Platform-independent image description."""

    id: str
    name: str
    mimeType: str
    size: int
    width: int | None
    height: int | None
    url: str
    downloadUrl: str
    thumbnailUrl: str
    createdAt: str | None
    updatedAt: str | None
    bucketId: str
    signature: str
    tags: list[str]
    isUploaded: bool
    uploadProgress: int


class ImageListResponse(TypedDict):
    """A page of images."""

    images: list[ImageMetadata]
    total: int
    hasMore: bool


class TranslationResult(TypedDict):
    """Result of a translation request."""

    originalText: str
    translatedText: str
    fromLanguage: str
    toLanguage: str
