"""
Application lifespan management.

Creates database tables on startup and disposes the engine on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from config.settings import settings
from database import init_db, close_db
from utils.monitoring import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting AISync account service")

    for issue in settings.validate_production_config():
        logger.warning(f"Configuration issue: {issue}")

    await init_db()
    logger.info("Database ready")

    yield

    logger.info("Shutting down AISync account service")
    await close_db()
