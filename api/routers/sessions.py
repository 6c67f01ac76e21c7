"""Chat Sessions Router - saved conversations of the signed-in user."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.models import ChatSessionCreate, ChatSessionUpdate
from database import get_session, User
from database import operations as ops
from utils.errors import ValidationError, NotFoundError

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])

SESSION_NOT_FOUND = "Session not found or access denied"


@router.get("")
async def list_sessions(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    chat_sessions = await ops.list_sessions(session, user.id)
    return {
        "success": True,
        "message": "Sessions retrieved successfully",
        "sessions": [chat_session.to_dict() for chat_session in chat_sessions],
    }


@router.post("")
async def create_session(
    request: ChatSessionCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    chat_session = await ops.create_session(
        session,
        user.id,
        session_id=request.session_id,
        title=request.title,
        messages=request.messages,
    )
    return {
        "success": True,
        "message": "Session created successfully",
        "session": chat_session.to_dict(),
    }


@router.put("")
async def update_session(
    request: ChatSessionUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not request.id:
        raise ValidationError("Session ID is required", field="id")

    chat_session = await ops.update_session(
        session,
        user.id,
        request.id,
        session_id=request.session_id,
        title=request.title,
        messages=request.messages,
    )
    if chat_session is None:
        raise NotFoundError(SESSION_NOT_FOUND)

    return {
        "success": True,
        "message": "Session updated successfully",
        "session": chat_session.to_dict(),
    }


@router.delete("")
async def delete_session(
    id: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not id:
        raise ValidationError("Session ID is required", field="id")

    if not await ops.delete_session(session, user.id, id):
        raise NotFoundError(SESSION_NOT_FOUND)

    return {"success": True, "message": "Session deleted successfully"}
