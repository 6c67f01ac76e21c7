"""
Account Directory Tests

User creation, uniqueness, two-factor state, email change and cascading
deletion at the database-operation level.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from database.models import User, ChatSession, EmailVerification, utcnow
from database.operations import (
    create_user,
    get_user_by_id,
    get_user_by_login,
    update_profile,
    delete_user,
    set_two_factor_secret,
    enable_two_factor,
    disable_two_factor,
    create_session,
    list_sessions,
    update_session,
    delete_session,
    create_email_verification,
    confirm_email_change,
)
from utils.errors import ConflictError


@pytest.fixture
async def user(db_session):
    return await create_user(db_session, email="Bob@Example.com", username="bob", password="Abcdef1")


class TestCreateUser:
    """Test account creation."""

    @pytest.mark.asyncio
    async def test_creates_user_with_hashed_password(self, db_session, user):
        assert user.id
        assert user.email == "bob@example.com"
        assert user.password_hash.startswith("$2b$")
        assert user.two_factor_state == "disabled"
        assert user.created_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, username, field", [
        ("bob@example.com", "robert", "email"),
        ("other@example.com", "bob", "username"),
    ])
    async def test_duplicates_raise_conflict(self, db_session, user, email, username, field):
        with pytest.raises(ConflictError) as exc_info:
            await create_user(db_session, email=email, username=username, password="Abcdef1")

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == f"A user with that {field} already exists"

    @pytest.mark.asyncio
    async def test_unique_index_is_authoritative(self, db_session, user):
        """A duplicate slipping past the pre-check still fails on the index."""
        db_session.add(User(email="bob@example.com", username="bobby", password_hash="x"))

        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_public_dict_has_no_secrets(self, db_session, user):
        public = user.to_public_dict()

        for key in ("password_hash", "passwordHash", "two_factor_secret", "reset_password_token"):
            assert key not in public
        assert public["username"] == "bob"
        assert public["twoFactorEnabled"] is False

    @pytest.mark.asyncio
    async def test_login_lookup_by_email_or_username(self, db_session, user):
        assert (await get_user_by_login(db_session, "BOB@example.com")).id == user.id
        assert (await get_user_by_login(db_session, "bob")).id == user.id
        assert await get_user_by_login(db_session, "nobody") is None


class TestUpdateProfile:
    """Test profile updates."""

    @pytest.mark.asyncio
    async def test_updates_fields(self, db_session, user):
        updated = await update_profile(db_session, user, "bobby", "bobby@example.com", "Bob", "Builder")

        assert updated.username == "bobby"
        assert updated.email == "bobby@example.com"
        assert updated.first_name == "Bob"

    @pytest.mark.asyncio
    async def test_taken_identity_is_a_400_conflict(self, db_session, user):
        other = await create_user(db_session, email="carol@example.com", username="carol", password="Abcdef1")

        with pytest.raises(ConflictError) as exc_info:
            await update_profile(db_session, other, "bob", "carol@example.com")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Username or email already exists"

    @pytest.mark.asyncio
    async def test_keeping_own_identity_is_allowed(self, db_session, user):
        updated = await update_profile(db_session, user, "bob", "bob@example.com", "Bob")

        assert updated.first_name == "Bob"


class TestTwoFactorState:
    """Test the disabled -> pending -> enabled -> disabled transitions."""

    @pytest.mark.asyncio
    async def test_state_transitions(self, db_session, user):
        await set_two_factor_secret(db_session, user, "A" * 32)
        assert user.two_factor_state == "pending"

        await set_two_factor_secret(db_session, user, "B" * 32)
        assert user.two_factor_secret == "B" * 32
        assert user.two_factor_state == "pending"

        await enable_two_factor(db_session, user)
        assert user.two_factor_state == "enabled"
        assert user.two_factor_enabled_at is not None

        await disable_two_factor(db_session, user)
        assert user.two_factor_state == "disabled"
        assert user.two_factor_secret is None
        assert user.two_factor_enabled_at is None


class TestChatSessions:
    """Test session storage scoping."""

    @pytest.mark.asyncio
    async def test_sessions_are_scoped_to_owner(self, db_session, user):
        other = await create_user(db_session, email="dan@example.com", username="dan", password="Abcdef1")
        mine = await create_session(db_session, user.id, session_id="s1", title="Mine", messages=[{"role": "user"}])
        await create_session(db_session, other.id, title="Theirs")

        assert [s.id for s in await list_sessions(db_session, user.id)] == [mine.id]
        assert await update_session(db_session, other.id, mine.id, title="Hijack") is None
        assert await delete_session(db_session, other.id, mine.id) is False

        updated = await update_session(db_session, user.id, mine.id, title="Renamed")
        assert updated.title == "Renamed"
        assert updated.messages == [{"role": "user"}]

        assert await delete_session(db_session, user.id, mine.id) is True
        assert await list_sessions(db_session, user.id) == []


class TestDeleteUser:
    """Test cascading account deletion."""

    @pytest.mark.asyncio
    async def test_delete_cascades_to_sessions_and_verifications(self, db_session, user):
        user_id = user.id
        await create_session(db_session, user_id, title="One")
        await create_session(db_session, user_id, title="Two")
        await create_email_verification(db_session, user, "new@example.com")

        assert await delete_user(db_session, user_id) is True

        db_session.expunge_all()
        assert await get_user_by_id(db_session, user_id) is None
        sessions = await db_session.scalar(
            select(func.count()).select_from(ChatSession).where(ChatSession.user_id == user_id)
        )
        verifications = await db_session.scalar(
            select(func.count()).select_from(EmailVerification).where(EmailVerification.user_id == user_id)
        )
        assert sessions == 0
        assert verifications == 0

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self, db_session):
        assert await delete_user(db_session, "does-not-exist") is False


class TestEmailChange:
    """Test the two-step email change."""

    @pytest.mark.asyncio
    async def test_code_confirms_change(self, db_session, user):
        verification = await create_email_verification(db_session, user, "new@example.com")

        assert len(verification.verification_code) == 6
        assert verification.verification_code.isdigit()
        # Generated codes are 100000-999999
        assert await confirm_email_change(db_session, user, "000000") is False
        assert await confirm_email_change(db_session, user, verification.verification_code) is True
        assert user.email == "new@example.com"

        # Codes are single use
        assert await confirm_email_change(db_session, user, verification.verification_code) is False

    @pytest.mark.asyncio
    async def test_expired_code_is_rejected(self, db_session, user):
        verification = await create_email_verification(
            db_session, user, "new@example.com", now=utcnow() - timedelta(minutes=16)
        )

        assert await confirm_email_change(db_session, user, verification.verification_code) is False
        assert user.email == "bob@example.com"

    @pytest.mark.asyncio
    async def test_new_request_replaces_code(self, db_session, user):
        await create_email_verification(db_session, user, "first@example.com")
        second = await create_email_verification(db_session, user, "second@example.com")

        rows = await db_session.scalar(
            select(func.count()).select_from(EmailVerification).where(EmailVerification.user_id == user.id)
        )
        assert rows == 1
        assert second.new_email == "second@example.com"

    @pytest.mark.asyncio
    async def test_taken_address_is_rejected(self, db_session, user):
        await create_user(db_session, email="taken@example.com", username="taken", password="Abcdef1")

        with pytest.raises(ConflictError) as exc_info:
            await create_email_verification(db_session, user, "taken@example.com")

        assert exc_info.value.message == "Email address is already taken"
        assert exc_info.value.status_code == 400
