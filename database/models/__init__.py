"""
Database Models

SQLAlchemy models for accounts, chat sessions and email verification.
"""

from .base import Base, utcnow, ensure_aware
from .user import User
from .chat_session import ChatSession
from .email_verification import EmailVerification

__all__ = [
    'Base',
    'utcnow',
    'ensure_aware',
    'User',
    'ChatSession',
    'EmailVerification',
]
