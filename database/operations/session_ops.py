"""Chat session storage, always scoped to the owning user."""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import Optional, List, Dict, Any

from database.models import ChatSession


async def list_sessions(session: AsyncSession, user_id: str) -> List[ChatSession]:
    """Sessions owned by ``user_id``, newest first."""
    result = await session.execute(
        select(ChatSession)
        .where(ChatSession.user_id == user_id)
        .order_by(ChatSession.created_at.desc())
    )
    return list(result.scalars().all())


async def get_session_for_user(
    session: AsyncSession,
    user_id: str,
    chat_session_id: str
) -> Optional[ChatSession]:
    result = await session.execute(
        select(ChatSession).where(
            ChatSession.id == chat_session_id,
            ChatSession.user_id == user_id,
        )
    )
    return result.scalars().first()


async def create_session(
    session: AsyncSession,
    user_id: str,
    session_id: Optional[str] = None,
    title: Optional[str] = None,
    messages: Optional[List[Dict[str, Any]]] = None,
) -> ChatSession:
    chat_session = ChatSession(
        user_id=user_id,
        session_id=session_id,
        title=title,
        messages=messages or [],
    )
    session.add(chat_session)
    await session.commit()
    await session.refresh(chat_session)
    return chat_session


async def update_session(
    session: AsyncSession,
    user_id: str,
    chat_session_id: str,
    **changes
) -> Optional[ChatSession]:
    """
    Update ``title`` / ``messages`` / ``session_id`` of an owned session.

    Returns:
        The updated session, or None if it does not exist or belongs to someone else
    """
    chat_session = await get_session_for_user(session, user_id, chat_session_id)
    if chat_session is None:
        return None

    for field in ("session_id", "title", "messages"):
        if changes.get(field) is not None:
            setattr(chat_session, field, changes[field])

    await session.commit()
    await session.refresh(chat_session)
    return chat_session


async def delete_session(session: AsyncSession, user_id: str, chat_session_id: str) -> bool:
    result = await session.execute(
        delete(ChatSession).where(
            ChatSession.id == chat_session_id,
            ChatSession.user_id == user_id,
        )
    )
    await session.commit()
    return result.rowcount > 0


__all__ = [
    'list_sessions',
    'get_session_for_user',
    'create_session',
    'update_session',
    'delete_session',
]
