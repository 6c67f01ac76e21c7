"""Custom exception classes with detailed error information."""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class BaseApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base error.

        Args:
            message: User-facing error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        """Convert error to the response envelope."""
        body = {
            "success": False,
            "message": self.message,
            "error": self.error_code,
        }
        if include_details and self.details:
            body["details"] = self.details
        return body


class ValidationError(BaseApplicationError):
    """Request validation error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            **kwargs
        )
        self.details["field"] = field


class AuthenticationError(BaseApplicationError):
    """Missing, malformed, invalid or expired credentials."""

    def __init__(
        self,
        message: str = "Invalid or missing authentication token",
        **kwargs
    ):
        super().__init__(
            message,
            error_code="AUTHENTICATION_ERROR",
            status_code=401,
            **kwargs
        )


class NotFoundError(BaseApplicationError):
    """Requested resource does not exist."""

    def __init__(
        self,
        message: str = "User not found",
        **kwargs
    ):
        super().__init__(
            message,
            error_code="NOT_FOUND",
            status_code=404,
            **kwargs
        )


class ConflictError(BaseApplicationError):
    """Duplicate identity (email or username already taken)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        status_code: int = 409,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="CONFLICT",
            status_code=status_code,
            **kwargs
        )
        self.details["field"] = field


class InternalError(BaseApplicationError):
    """Unexpected failure; the cause is only logged server-side."""

    def __init__(
        self,
        message: str = "Internal server error",
        **kwargs
    ):
        super().__init__(
            message,
            error_code="INTERNAL_ERROR",
            status_code=500,
            **kwargs
        )
