"""
Email Change Verification Operations

Changing the account email is a two-step flow: a 6-digit code is sent to
the new address, and the change is applied once that code comes back.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from typing import Optional
from datetime import datetime, timedelta
import secrets
import logging

from database.models import User, EmailVerification, utcnow
from database.operations.user_ops import normalize_email
from utils.errors import ConflictError
from config.settings import settings

logger = logging.getLogger(__name__)


def generate_verification_code() -> str:
    """Random 6-digit numeric code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


async def _email_taken(session: AsyncSession, email: str, user_id: str) -> bool:
    result = await session.execute(
        select(User.id).where(User.email == email, User.id != user_id)
    )
    return result.first() is not None


async def create_email_verification(
    session: AsyncSession,
    user: User,
    new_email: str,
    now: Optional[datetime] = None
) -> EmailVerification:
    """
    Create (or replace) the pending email change for ``user``.

    Raises:
        ConflictError: the address belongs to another account (400)
    """
    new_email = normalize_email(new_email)
    if await _email_taken(session, new_email, user.id):
        raise ConflictError("Email address is already taken", field="newEmail", status_code=400)

    now = now or utcnow()
    result = await session.execute(
        select(EmailVerification).where(EmailVerification.user_id == user.id)
    )
    verification = result.scalars().first()
    if verification is None:
        verification = EmailVerification(user_id=user.id)
        session.add(verification)

    verification.new_email = new_email
    verification.verification_code = generate_verification_code()
    verification.expires_at = now + timedelta(minutes=settings.email_verification_expire_minutes)
    verification.verified = False
    verification.verified_at = None
    verification.created_at = now

    await session.commit()
    await session.refresh(verification)

    logger.info(f"Email change verification created for user {user.id}")
    return verification


async def confirm_email_change(
    session: AsyncSession,
    user: User,
    code: str,
    now: Optional[datetime] = None
) -> bool:
    """
    Apply the pending email change when ``code`` matches and has not expired.

    Returns:
        False for a missing, wrong, used or expired code

    Raises:
        ConflictError: the new address was claimed by another account meanwhile (400)
    """
    now = now or utcnow()
    result = await session.execute(
        select(EmailVerification).where(
            EmailVerification.user_id == user.id,
            EmailVerification.verified.is_(False),
        )
    )
    verification = result.scalars().first()

    if verification is None or not code:
        return False
    if not secrets.compare_digest(verification.verification_code, str(code).strip()):
        return False
    if verification.is_expired(now):
        return False

    if await _email_taken(session, verification.new_email, user.id):
        raise ConflictError("Email address is already taken", field="newEmail", status_code=400)

    user.email = verification.new_email
    verification.verified = True
    verification.verified_at = now

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Email address is already taken", field="newEmail", status_code=400) from e

    await session.refresh(user)
    logger.info(f"Email address changed for user {user.id}")
    return True


__all__ = [
    'generate_verification_code',
    'create_email_verification',
    'confirm_email_change',
]
