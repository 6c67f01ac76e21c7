"""
User Database Operations

CRUD operations for accounts. Email and username uniqueness is enforced by
unique indexes; an IntegrityError on insert or update is the authoritative
duplicate signal and is raised as ConflictError.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from sqlalchemy.exc import IntegrityError
from typing import Optional, Dict, Any
import logging

from database.models import User, ChatSession, EmailVerification, utcnow
from utils.auth.password import hash_password
from utils.errors import ConflictError

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _conflicting_field(error: IntegrityError) -> str:
    """Best-effort name of the unique column behind an IntegrityError."""
    text = str(getattr(error, "orig", error)).lower()
    return "username" if "username" in text else "email"


async def get_user_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
    """Get user by primary key."""
    if not user_id:
        return None
    return await session.get(User, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Get user by email address."""
    result = await session.execute(
        select(User).where(User.email == normalize_email(email))
    )
    return result.scalars().first()


async def get_user_by_login(session: AsyncSession, identifier: str) -> Optional[User]:
    """Get user by email or username (login accepts either)."""
    identifier = identifier.strip()
    result = await session.execute(
        select(User).where(
            or_(
                User.email == identifier.lower(),
                User.username == identifier,
            )
        )
    )
    return result.scalars().first()


async def create_user(
    session: AsyncSession,
    email: str,
    username: str,
    password: str,
    preferences: Optional[Dict[str, Any]] = None,
    **kwargs
) -> User:
    """
    Create a new user.

    Args:
        session: Database session
        email: User email
        username: Username
        password: Plain text password (will be hashed)
        preferences: Initial preference bundle
        **kwargs: Optional first_name / last_name

    Returns:
        Created user

    Raises:
        ConflictError: email or username already taken (409)
    """
    email = normalize_email(email)
    username = username.strip()

    # Friendly message for the common case; the unique index still decides
    result = await session.execute(
        select(User).where(or_(User.email == email, User.username == username))
    )
    existing = result.scalars().first()
    if existing:
        field = "email" if existing.email == email else "username"
        raise ConflictError(f"A user with that {field} already exists", field=field)

    user = User(
        email=email,
        username=username,
        password_hash=await hash_password(password),
        first_name=kwargs.get("first_name"),
        last_name=kwargs.get("last_name"),
        preferences=preferences,
        two_factor_enabled=False,
    )
    session.add(user)

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        field = _conflicting_field(e)
        logger.warning(f"User creation lost a uniqueness race on {field}")
        raise ConflictError(f"A user with that {field} already exists", field=field) from e

    await session.refresh(user)
    logger.info(f"User created: {username} ({user.id})")
    return user


async def update_profile(
    session: AsyncSession,
    user: User,
    username: str,
    email: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    """
    Update identity and name fields.

    Raises:
        ConflictError: username or email belongs to another account (400)
    """
    email = normalize_email(email)
    username = username.strip()

    result = await session.execute(
        select(User.id).where(
            User.id != user.id,
            or_(User.email == email, User.username == username),
        )
    )
    if result.first() is not None:
        raise ConflictError("Username or email already exists", status_code=400)

    user.username = username
    user.email = email
    user.first_name = first_name
    user.last_name = last_name

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Username or email already exists", status_code=400) from e

    await session.refresh(user)
    logger.info(f"Profile updated for user {user.id}")
    return user


async def update_preferences(
    session: AsyncSession,
    user: User,
    preferences: Dict[str, Any]
) -> User:
    user.preferences = preferences
    await session.commit()
    await session.refresh(user)
    return user


async def change_password(session: AsyncSession, user: User, new_password: str) -> User:
    """Store a new password hash; any outstanding reset token stops working."""
    user.password_hash = await hash_password(new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    await session.commit()
    await session.refresh(user)
    logger.info(f"Password changed for user {user.id}")
    return user


async def rehash_password(session: AsyncSession, user: User, password: str) -> None:
    """Re-hash a verified password at the current work factor."""
    user.password_hash = await hash_password(password)
    await session.commit()
    logger.info(f"Password hash upgraded for user {user.id}")


async def delete_user(session: AsyncSession, user_id: str) -> bool:
    """
    Delete a user together with their chat sessions and pending email changes.

    Everything happens in one transaction.

    Returns:
        True if the user existed and was deleted
    """
    await session.execute(delete(ChatSession).where(ChatSession.user_id == user_id))
    await session.execute(delete(EmailVerification).where(EmailVerification.user_id == user_id))
    result = await session.execute(delete(User).where(User.id == user_id))

    if result.rowcount == 0:
        await session.rollback()
        return False

    await session.commit()
    logger.info(f"User deleted: {user_id}")
    return True


async def set_two_factor_secret(session: AsyncSession, user: User, secret: str) -> User:
    """Store a fresh secret with two-factor not yet enabled (pending)."""
    user.two_factor_secret = secret
    user.two_factor_enabled = False
    user.two_factor_enabled_at = None
    await session.commit()
    await session.refresh(user)
    return user


async def enable_two_factor(session: AsyncSession, user: User) -> User:
    user.two_factor_enabled = True
    user.two_factor_enabled_at = utcnow()
    await session.commit()
    await session.refresh(user)
    logger.info(f"Two-factor authentication enabled for user {user.id}")
    return user


async def disable_two_factor(session: AsyncSession, user: User) -> User:
    user.two_factor_enabled = False
    user.two_factor_secret = None
    user.two_factor_enabled_at = None
    await session.commit()
    await session.refresh(user)
    logger.info(f"Two-factor authentication disabled for user {user.id}")
    return user


__all__ = [
    'normalize_email',
    'get_user_by_id',
    'get_user_by_email',
    'get_user_by_login',
    'create_user',
    'update_profile',
    'update_preferences',
    'change_password',
    'rehash_password',
    'delete_user',
    'set_two_factor_secret',
    'enable_two_factor',
    'disable_two_factor',
]
