"""Error taxonomy and HTTP error mapping."""

from .exceptions import (
    BaseApplicationError,
    ValidationError,
    AuthenticationError,
    NotFoundError,
    ConflictError,
    InternalError,
)
from .handlers import (
    ErrorHandler,
    get_error_handler,
    register_exception_handlers,
    unhandled_error_handler,
)

__all__ = [
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
    # Handlers
    "ErrorHandler",
    "get_error_handler",
    "register_exception_handlers",
    "unhandled_error_handler",
]
