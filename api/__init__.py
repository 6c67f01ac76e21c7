"""
API package for the AISync account service.

FastAPI application with separate routers for authentication, chat
sessions and health checks.
"""

from .app import app

__all__ = ["app"]
