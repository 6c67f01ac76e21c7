"""
Password Utilities

Secure password hashing and the account input rules shared by the
registration, profile and password-reset endpoints.

Features:
- bcrypt hashing with a configurable work factor (12 rounds by default)
- Hashing off the event loop (threadpool)
- Rehash detection when the work factor changes
- Email, username and password format validation
"""

import re
import logging
from typing import Optional, Tuple

import bcrypt
from fastapi.concurrency import run_in_threadpool

from config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of the input
BCRYPT_MAX_BYTES = 72

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6
_BCRYPT_COST = re.compile(r"^\$2[abxy]?\$(\d{2})\$")


# ============================================================================
# Password Hashing
# ============================================================================

def _encode(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def hash_password_sync(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password with bcrypt (blocking).

    Args:
        password: Plain text password
        rounds: Work factor override, defaults to ``settings.bcrypt_rounds``

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds, prefix=b"2b")
    return bcrypt.hashpw(_encode(password), salt).decode('utf-8')


def verify_password_sync(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash (blocking).

    A malformed or empty hash never matches.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        logger.warning("Password verification against a malformed hash")
        return False


async def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt in a thread pool to avoid blocking.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return await run_in_threadpool(hash_password_sync, password)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash in a thread pool.

    Args:
        plain_password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return await run_in_threadpool(verify_password_sync, plain_password, hashed_password)


def needs_rehash(hashed_password: str) -> bool:
    """
    Check if a password hash was produced with a different work factor.

    Args:
        hashed_password: Hashed password to check

    Returns:
        True if hash needs update, False otherwise
    """
    match = _BCRYPT_COST.match(hashed_password or "")
    if match is None:
        return True
    return int(match.group(1)) != settings.bcrypt_rounds


# ============================================================================
# Input Validation
# ============================================================================

def validate_email(email: str) -> bool:
    """Loose structural email check: something@something.tld, no whitespace."""
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def validate_username(username: str) -> Tuple[bool, Optional[str]]:
    if len(username) < USERNAME_MIN_LENGTH:
        return False, f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
    if not USERNAME_PATTERN.match(username):
        return False, "Username can only contain letters, numbers, and underscores"
    return True, None


def validate_password_strength(password: str) -> Tuple[bool, Optional[str]]:
    """
    Check the password policy.

    Requires at least six characters including one uppercase letter,
    one lowercase letter and one digit.

    Returns:
        (is_valid, message) where message explains the first failed rule
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        return False, (
            "Password must contain at least one uppercase letter, "
            "one lowercase letter, and one number"
        )
    return True, None
