"""API Routers."""

from .auth import router as auth_router
from .sessions import router as sessions_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "sessions_router",
    "health_router",
]
