"""Tests for image platforms and platform selection."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from meme_dock.config import Settings
from meme_dock.exceptions import ConfigError, FileError, ValidationError
from meme_dock.services import (
    AppwriteImagePlatform,
    ImageKitImagePlatform,
    ImagePlatform,
    ImagePreviewOptions,
    ImageService,
    ImageUploadOptions,
)
from meme_dock.storage import MemoryFileStore
from meme_dock.validation import UploadedFile

APPWRITE_CONFIG = Settings(
    _env_file=None,
    appwrite_endpoint="https://appwrite.test/v1",
    appwrite_project_id="proj",
    appwrite_meme_bucket_id="bucket",
)
IMAGEKIT_CONFIG = Settings(
    _env_file=None,
    imagekit_public_api_key="public_test",
    imagekit_private_api_key="private_test",
    imagekit_url_endpoint="https://ik.imagekit.io/demo/",
)


def image(name: str = "cat.png", size: int = 1024) -> UploadedFile:
    return UploadedFile(filename=name, content_type="image/png", data=b"i" * size)


def platform_mock(configured: bool) -> MagicMock:
    platform = MagicMock()
    platform.is_configured.return_value = configured
    platform.get_image_metadata = AsyncMock(return_value={"id": "img"})
    return platform


class TestImageService:
    """Test platform selection."""

    def test_auto_prefers_imagekit(self):
        appwrite, imagekit = platform_mock(True), platform_mock(True)

        assert ImageService(appwrite, imagekit).platform() is imagekit

    def test_auto_falls_back_to_appwrite(self):
        appwrite, imagekit = platform_mock(True), platform_mock(False)

        assert ImageService(appwrite, imagekit).platform("auto") is appwrite

    def test_explicit_platform_must_be_configured(self):
        service = ImageService(platform_mock(True), platform_mock(False))

        with pytest.raises(ConfigError, match="ImageKit image service is not properly configured"):
            service.platform(ImagePlatform.IMAGEKIT)

    def test_nothing_configured(self):
        service = ImageService(platform_mock(False), platform_mock(False))

        with pytest.raises(ConfigError, match="No image storage platform"):
            service.platform()

    def test_unknown_platform(self):
        service = ImageService(platform_mock(True), platform_mock(True))

        with pytest.raises(ValidationError, match="Unknown image platform: s3"):
            service.platform("s3")

    @pytest.mark.asyncio
    async def test_delegates(self):
        appwrite = platform_mock(True)

        result = await ImageService(appwrite, platform_mock(False)).get_image_metadata(
            "img", ImagePlatform.APPWRITE
        )

        assert result == {"id": "img"}
        appwrite.get_image_metadata.assert_awaited_once_with("img")


class TestAppwriteImagePlatform:
    """Test the Appwrite image platform over the in-memory bucket."""

    @pytest.fixture
    def platform(self) -> AppwriteImagePlatform:
        return AppwriteImagePlatform(MemoryFileStore("bucket"), APPWRITE_CONFIG)

    def test_metadata_uses_proxy_urls(self, platform):
        metadata = platform.to_metadata(
            {
                "$id": "f1",
                "name": "cat.png",
                "$permissions": ['read("any")', "tag:funny"],
                "chunksTotal": 4,
                "chunksUploaded": 2,
                "sizeOriginal": 2048,
            }
        )

        assert metadata["url"] == "/api/images/view/f1"
        assert metadata["downloadUrl"] == "/api/images/download/f1"
        assert metadata["thumbnailUrl"] == "/api/images/preview/f1"
        assert metadata["tags"] == ["funny"]
        assert metadata["isUploaded"] is False
        assert metadata["uploadProgress"] == 50

    @pytest.mark.asyncio
    async def test_upload_and_list(self, platform):
        await platform.upload_image(image("grumpy-cat.png"))
        await platform.upload_image(image("doge.png"), ImageUploadOptions(file_name="shiba.png"))

        everything = await platform.list_images()
        searched = await platform.list_images(search="CAT")
        paged = await platform.list_images(limit=1)

        assert everything["total"] == 2
        assert [i["name"] for i in searched["images"]] == ["grumpy-cat.png"]
        assert "shiba.png" in {i["name"] for i in everything["images"]}
        assert paged["hasMore"] is True

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, platform):
        upload = UploadedFile(filename="clip.mp4", content_type="video/mp4", data=b"v" * 1024)

        with pytest.raises(FileError, match="Unsupported file type"):
            await platform.upload_image(upload)

    def test_preview_url_params(self, platform):
        url = platform.get_image_preview_url(
            "f1", ImagePreviewOptions(width=300, quality=150, format="webp")
        )

        assert url == (
            "https://appwrite.test/v1/storage/buckets/bucket/files/f1/preview"
            "?project=proj&width=300&output=webp"
        )

    def test_not_configured_without_store(self):
        assert not AppwriteImagePlatform(None, APPWRITE_CONFIG).is_configured()


class TestImageKitImagePlatform:
    """Test the ImageKit platform with the SDK mocked out."""

    @pytest.fixture
    def platform(self) -> ImageKitImagePlatform:
        return ImageKitImagePlatform(IMAGEKIT_CONFIG)

    def test_urls(self, platform):
        assert platform.get_image_view_url("abc") == "https://ik.imagekit.io/demo/abc"
        assert platform.get_image_download_url("abc") == (
            "https://ik.imagekit.io/demo/abc?download=true"
        )

    def test_unconfigured(self):
        platform = ImageKitImagePlatform(Settings(_env_file=None))

        assert not platform.is_configured()
        with pytest.raises(ConfigError):
            platform.get_image_view_url("abc")

    @pytest.mark.asyncio
    async def test_upload_sends_base64(self, platform):
        sdk = MagicMock()
        sdk.upload_file.return_value = SimpleNamespace(
            file_id="ik1",
            name="cat.png",
            size=1024,
            url="https://ik.imagekit.io/demo/cat.png",
            thumbnail_url="https://ik.imagekit.io/demo/tr:n-thumb/cat.png",
            tags=["funny"],
        )

        with patch("meme_dock.services.images.get_imagekit", return_value=sdk):
            result = await platform.upload_image(image(), ImageUploadOptions(tags=["funny"]))

        assert result["id"] == "ik1"
        assert result["url"] == "https://ik.imagekit.io/demo/cat.png"
        assert result["tags"] == ["funny"]
        kwargs = sdk.upload_file.call_args.kwargs
        assert kwargs["file_name"] == "cat.png"
        assert kwargs["file"] == "aWlp" * 341 + "aQ=="

    @pytest.mark.asyncio
    async def test_list(self, platform):
        sdk = MagicMock()
        sdk.list_files.return_value = SimpleNamespace(
            list=[SimpleNamespace(file_id="a", name="a.png", url="u", thumbnail="t")]
        )

        with patch("meme_dock.services.images.get_imagekit", return_value=sdk):
            result = await platform.list_images(limit=10, search="a")

        assert result["total"] == 1
        assert result["images"][0]["id"] == "a"
        assert result["hasMore"] is False

    def test_preview_passes_transformation(self, platform):
        sdk = MagicMock()
        sdk.url.return_value = "https://ik.imagekit.io/demo/tr:w-200/abc"

        with patch("meme_dock.services.images.get_imagekit", return_value=sdk):
            url = platform.get_image_preview_url("abc", ImagePreviewOptions(width=200))

        assert url == "https://ik.imagekit.io/demo/tr:w-200/abc"
        sdk.url.assert_called_once_with({"path": "abc", "transformation": [{"width": 200}]})
