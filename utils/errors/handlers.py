"""Error handling utilities and FastAPI exception handlers."""

import traceback
from typing import Optional, Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import BaseApplicationError
from utils.monitoring import get_logger, get_correlation_id
from config import settings

logger = get_logger(__name__)


class ErrorHandler:
    """
    Centralized error handling.

    Features:
    - Error logging with request context
    - Bounded error history for health reporting
    - Error transformation into the response envelope
    """

    def __init__(self, max_history: int = 100):
        self.error_count = 0
        self.error_history: list = []
        self.max_history = max_history

    def log_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Log error with context.

        Args:
            error: Exception to log
            context: Additional context
        """
        self.error_count += 1

        error_info = {
            "type": type(error).__name__,
            "message": str(error),
            "context": context or {},
            "traceback": "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ),
        }

        self.error_history.append(error_info)
        if len(self.error_history) > self.max_history:
            self.error_history.pop(0)

        if isinstance(error, BaseApplicationError):
            logger.warning(
                f"{error.error_code}: {error.message}",
                status_code=error.status_code,
                details=error.details,
                **(context or {})
            )
        else:
            logger.error(
                f"{type(error).__name__}: {str(error)}",
                error=error,
                **(context or {})
            )

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Handle error and return the response envelope.

        Args:
            error: Exception to handle
            context: Additional context

        Returns:
            Envelope dictionary
        """
        self.log_error(error, context)

        if isinstance(error, BaseApplicationError):
            return error.to_dict(include_details=settings.debug)

        body = {
            "success": False,
            "message": "Internal server error",
            "error": "INTERNAL_ERROR",
        }
        if settings.debug:
            body["detail"] = f"{type(error).__name__}: {error}"
        return body

    def get_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        error_types = {}
        for error in self.error_history:
            error_type = error["type"]
            error_types[error_type] = error_types.get(error_type, 0) + 1

        return {
            "total_errors": self.error_count,
            "recent_errors": len(self.error_history),
            "error_types": error_types,
        }


# Global error handler
_global_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get or create global error handler."""
    global _global_handler
    if _global_handler is None:
        _global_handler = ErrorHandler()
    return _global_handler


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "correlation_id": get_correlation_id(),
    }


async def application_error_handler(request: Request, exc: BaseApplicationError) -> JSONResponse:
    body = get_error_handler().handle_error(exc, _request_context(request))
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request body", path=request.url.path)
    body = {
        "success": False,
        "message": "Invalid request body",
        "error": "VALIDATION_ERROR",
    }
    if settings.debug:
        body["details"] = exc.errors()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=jsonable_encoder(body))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    body = get_error_handler().handle_error(exc, _request_context(request))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Map every exception escaping a route onto the response envelope."""
    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
