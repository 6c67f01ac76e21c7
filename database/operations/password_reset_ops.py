"""
Password Reset Token Operations

Tokens live on the user row: one current token per user, valid for
``password_reset_token_expire_seconds`` after issuance and cleared in the
same UPDATE that stores the new password hash.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from typing import Optional
from datetime import datetime, timedelta
import base64
import secrets
import string
import time
import logging

from database.models import User, utcnow
from database.operations.user_ops import get_user_by_email
from utils.auth.password import hash_password
from config.settings import settings

logger = logging.getLogger(__name__)

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def _base36_fragment(bits: int = 64) -> str:
    value = secrets.randbits(bits)
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits)) or "0"


def generate_reset_token() -> str:
    """
    Generate an opaque password reset token.

    Two random base-36 fragments plus the issuance timestamp in
    milliseconds, encoded as URL-safe base64 without padding.
    """
    raw = _base36_fragment() + _base36_fragment() + str(int(time.time() * 1000))
    return base64.urlsafe_b64encode(raw.encode("ascii")).decode("ascii").rstrip("=")


async def request_password_reset(
    session: AsyncSession,
    email: str,
    now: Optional[datetime] = None
) -> Optional[User]:
    """
    Issue a reset token for the account registered under ``email``.

    A new request overwrites any previous token. Unknown emails return None
    without writing anything.

    Returns:
        The user with ``reset_password_token`` set, or None
    """
    user = await get_user_by_email(session, email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return None

    now = now or utcnow()
    user.reset_password_token = generate_reset_token()
    user.reset_password_expires = now + timedelta(seconds=settings.password_reset_token_expire_seconds)
    await session.commit()
    await session.refresh(user)

    logger.info(f"Password reset token issued for user {user.id}")
    return user


async def consume_reset_token(
    session: AsyncSession,
    token: str,
    new_password: str,
    now: Optional[datetime] = None
) -> Optional[User]:
    """
    Set a new password using a reset token.

    The token must match and its expiry must be strictly after ``now``.
    The credential update and the token clear happen in one conditional
    UPDATE, so a token is accepted at most once.

    Returns:
        The updated user, or None for an unknown, used or expired token
    """
    if not token:
        return None

    now = now or utcnow()
    valid_token = and_(
        User.reset_password_token == token,
        User.reset_password_expires > now,
    )

    result = await session.execute(select(User).where(valid_token))
    user = result.scalars().first()
    if user is None:
        return None

    password_hash = await hash_password(new_password)

    result = await session.execute(
        update(User)
        .where(User.id == user.id, valid_token)
        .values(
            password_hash=password_hash,
            reset_password_token=None,
            reset_password_expires=None,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Consumed concurrently
        await session.rollback()
        return None

    await session.commit()
    await session.refresh(user)

    logger.info(f"Password reset completed for user {user.id}")
    return user


__all__ = [
    'generate_reset_token',
    'request_password_reset',
    'consume_reset_token',
]
