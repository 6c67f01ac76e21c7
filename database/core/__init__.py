"""
Core Database Package

Database engine and session management.
"""

from .async_engine import (
    AsyncDatabaseEngine,
    async_db_engine,
    get_session,
    init_db,
    close_db,
)

__all__ = [
    'AsyncDatabaseEngine',
    'async_db_engine',
    'get_session',
    'init_db',
    'close_db',
]
