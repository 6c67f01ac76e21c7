"""
Database Package

Organized by purpose:
- core: Async engine and session management
- models: SQLAlchemy models (users, chat sessions, email verifications)
- operations: High-level database operations
"""

from .core import (
    AsyncDatabaseEngine,
    async_db_engine,
    get_session,
    init_db,
    close_db,
)
from .models import (
    Base,
    User,
    ChatSession,
    EmailVerification,
)

__all__ = [
    'AsyncDatabaseEngine',
    'async_db_engine',
    'get_session',
    'init_db',
    'close_db',
    'Base',
    'User',
    'ChatSession',
    'EmailVerification',
]
