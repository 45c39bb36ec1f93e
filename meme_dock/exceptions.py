"""Domain-specific exceptions for the Meme Dock API."""

from typing import Any


class AppError(Exception):
    """Base exception carrying the HTTP status it maps to."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: dict[str, Any] = {
            "success": False,
            "message": self.message,
            "code": self.__class__.__name__,
        }
        if self.details:
            result["details"] = self.details
        return result


class FileError(AppError):
    """Invalid upload or failed storage operation."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code=status_code)


class ConfigError(AppError):
    """Missing or invalid server configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500)


class ValidationError(AppError):
    """Error related to input validation (not Pydantic)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else None
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(AppError):
    """Missing, malformed or rejected credentials."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, status_code=401)


class AuthorizationError(AppError):
    """Authenticated user lacks the required role."""

    def __init__(self, message: str = "Access denied. Admin permission required.") -> None:
        super().__init__(message, status_code=403)


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        message = f"{resource_type} with ID {resource_id} not found"
        details = {"resource_type": resource_type, "resource_id": resource_id}
        super().__init__(message, status_code=404, details=details)


class UpstreamError(AppError):
    """A backing service (Appwrite, ImageKit, translation) failed."""

    def __init__(self, service: str, message: str, status_code: int = 502) -> None:
        self.service = service
        super().__init__(message, status_code=status_code, details={"service": service})


class TranslationError(UpstreamError):
    """Translation backend failed or refused the request."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__("translate", message, status_code=status_code)
