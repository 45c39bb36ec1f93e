"""Tests for custom exceptions."""

from meme_dock.exceptions import (
    AppError,
    AuthenticationError,
    AuthorizationError,
    ConfigError,
    FileError,
    NotFoundError,
    TranslationError,
    UpstreamError,
    ValidationError,
)


class TestExceptions:
    """Test exception status codes and serialization."""

    def test_app_error_to_dict(self):
        error = AppError("Something broke")

        assert error.status_code == 500
        assert error.to_dict() == {
            "success": False,
            "message": "Something broke",
            "code": "AppError",
        }

    def test_details_included_when_present(self):
        error = ValidationError("Limit must be a positive number", field="limit")

        assert error.status_code == 400
        assert error.to_dict()["details"] == {"field": "limit"}

    def test_status_codes(self):
        """Test each error maps to its HTTP status."""
        assert FileError("bad file").status_code == 400
        assert FileError("storage down", status_code=500).status_code == 500
        assert ConfigError("missing").status_code == 500
        assert AuthenticationError().status_code == 401
        assert AuthorizationError().status_code == 403
        assert UpstreamError("appwrite", "timeout").status_code == 502
        assert TranslationError("limited", status_code=429).status_code == 429

    def test_not_found_message(self):
        error = NotFoundError("Document", "abc123")

        assert error.message == "Document with ID abc123 not found"
        assert error.status_code == 404
        assert error.details == {"resource_type": "Document", "resource_id": "abc123"}

    def test_translation_error_is_upstream(self):
        error = TranslationError("Translation failed: boom")

        assert isinstance(error, UpstreamError)
        assert error.service == "translate"
        assert error.to_dict()["code"] == "TranslationError"

    def test_default_messages(self):
        assert AuthenticationError().message == "Authentication required"
        assert AuthorizationError().message == "Access denied. Admin permission required."
