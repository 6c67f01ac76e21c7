"""
API Dependencies.

FastAPI dependencies for authentication and database access.
"""

from typing import Optional, Dict, Any

from fastapi import Header, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_session, User
from database.operations import get_user_by_id
from utils.auth import extract_bearer_token, verify_access_token
from utils.errors import AuthenticationError, NotFoundError


# ============================================================================
# Authentication Dependencies
# ============================================================================

async def get_token_claims(
    authorization: Optional[str] = Header(None)
) -> Dict[str, Any]:
    """
    Verified session-token claims from ``Authorization: Bearer <token>``.

    A missing header, a different scheme and a bad or expired token all
    produce the same 401.
    """
    claims = verify_access_token(extract_bearer_token(authorization))
    if claims is None:
        raise AuthenticationError()
    return claims


async def get_current_user(
    claims: Dict[str, Any] = Depends(get_token_claims),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    Load the account named by the token.

    Tokens are not revoked when an account is deleted, so a valid token can
    point at a user that no longer exists (404).
    """
    user = await get_user_by_id(session, claims["user_id"])
    if user is None:
        raise NotFoundError("User not found")
    return user
