"""Health Check Router - System status endpoints."""

from fastapi import APIRouter

from database import async_db_engine
from utils.errors import get_error_handler

router = APIRouter(prefix="", tags=["Health"])

API_VERSION = "1.0.0"


@router.get("/")
async def root():
    """API root endpoint with welcome message."""
    return {
        "success": True,
        "message": "AISync Account API",
        "version": API_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Reports database reachability and how many errors the process has
    handled since start.
    """
    database_ok = await async_db_engine.health_check()
    return {
        "success": database_ok,
        "message": "healthy" if database_ok else "degraded",
        "status": "healthy" if database_ok else "degraded",
        "version": API_VERSION,
        "database": database_ok,
        "errors": get_error_handler().get_stats(),
    }
