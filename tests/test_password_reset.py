"""
Password Reset Token Tests

Token generation, issuance, expiry and single use of reset tokens.
"""

import base64
from datetime import timedelta

import pytest
from sqlalchemy import select, func

from database.models import User, utcnow, ensure_aware
from database.operations import (
    create_user,
    generate_reset_token,
    request_password_reset,
    consume_reset_token,
    get_user_by_email,
)
from utils.auth.password import verify_password_sync


@pytest.fixture
async def user(db_session):
    return await create_user(db_session, email="reset@example.com", username="resetter", password="Abcdef1")


class TestGenerateResetToken:
    """Test token format."""

    def test_tokens_are_unique(self):
        tokens = {generate_reset_token() for _ in range(200)}

        assert len(tokens) == 200

    def test_token_is_url_safe_base64_of_fragments_and_timestamp(self):
        token = generate_reset_token()
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("ascii")

        assert raw.isalnum()
        assert raw == raw.lower()
        # Millisecond timestamp closes the raw token
        assert raw[-13:].isdigit()
        assert "+" not in token and "/" not in token and "=" not in token


class TestRequestPasswordReset:
    """Test token issuance."""

    @pytest.mark.asyncio
    async def test_issues_token_expiring_in_one_hour(self, db_session, user):
        now = utcnow()

        updated = await request_password_reset(db_session, "reset@example.com", now=now)

        assert updated.id == user.id
        assert updated.reset_password_token
        assert ensure_aware(updated.reset_password_expires) == now + timedelta(seconds=3600)

    @pytest.mark.asyncio
    async def test_new_request_overwrites_previous_token(self, db_session, user):
        first = (await request_password_reset(db_session, "reset@example.com")).reset_password_token
        second = (await request_password_reset(db_session, "reset@example.com")).reset_password_token

        assert first != second
        assert await consume_reset_token(db_session, first, "Newpass1") is None
        assert await consume_reset_token(db_session, second, "Newpass1") is not None

    @pytest.mark.asyncio
    async def test_unknown_email_writes_nothing(self, db_session, user):
        assert await request_password_reset(db_session, "nobody@example.com") is None

        count = await db_session.scalar(
            select(func.count()).select_from(User).where(User.reset_password_token.is_not(None))
        )
        assert count == 0


class TestConsumeResetToken:
    """Test token consumption."""

    @pytest.mark.asyncio
    async def test_valid_token_sets_password_and_clears_token(self, db_session, user):
        token = (await request_password_reset(db_session, "reset@example.com")).reset_password_token

        updated = await consume_reset_token(db_session, token, "Newpass1")

        assert updated is not None
        assert verify_password_sync("Newpass1", updated.password_hash)
        assert not verify_password_sync("Abcdef1", updated.password_hash)
        assert updated.reset_password_token is None
        assert updated.reset_password_expires is None

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, db_session, user):
        token = (await request_password_reset(db_session, "reset@example.com")).reset_password_token

        assert await consume_reset_token(db_session, token, "Newpass1") is not None
        assert await consume_reset_token(db_session, token, "Other1pass") is None

        stored = await get_user_by_email(db_session, "reset@example.com")
        assert verify_password_sync("Newpass1", stored.password_hash)

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, db_session, user):
        issued_at = utcnow() - timedelta(hours=2)
        token = (await request_password_reset(db_session, "reset@example.com", now=issued_at)).reset_password_token

        assert await consume_reset_token(db_session, token, "Newpass1") is None

    @pytest.mark.asyncio
    async def test_token_rejected_exactly_at_expiry(self, db_session, user):
        issued_at = utcnow()
        token = (await request_password_reset(db_session, "reset@example.com", now=issued_at)).reset_password_token

        at_expiry = issued_at + timedelta(seconds=3600)
        assert await consume_reset_token(db_session, token, "Newpass1", now=at_expiry) is None
        just_before = at_expiry - timedelta(seconds=1)
        assert await consume_reset_token(db_session, token, "Newpass1", now=just_before) is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "unknown-token"])
    async def test_unknown_token_is_rejected(self, db_session, user, token):
        assert await consume_reset_token(db_session, token, "Newpass1") is None
