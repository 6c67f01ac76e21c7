"""
Authentication Router - account lifecycle endpoints.

Registration, login, password recovery, two-factor authentication,
profile, preferences and account deletion. Every response uses the
``{success, message, ...}`` envelope; errors are raised as application
exceptions and formatted by the registered exception handlers.
"""

from fastapi import APIRouter, BackgroundTasks, Body, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, Any

from api.dependencies import get_current_user
from api.models import (
    RegisterRequest,
    LoginRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    ChangePasswordRequest,
    UpdateProfileRequest,
    TwoFactorCodeRequest,
    DisableTwoFactorRequest,
    VerifyTwoFactorRequest,
    SendEmailVerificationRequest,
    VerifyEmailChangeRequest,
    default_preferences,
    normalize_preferences,
)
from database import get_session, User
from database import operations as ops
from utils.auth import (
    create_access_token,
    verify_password,
    needs_rehash,
    validate_email,
    validate_username,
    validate_password_strength,
    get_two_factor_manager,
)
from utils.email import email_service, dispatch_email
from utils.errors import ValidationError, AuthenticationError, NotFoundError, InternalError
from utils.monitoring import get_logger
from config import settings

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = (
    "If an account with this email exists, you will receive password reset instructions."
)
INVALID_CREDENTIALS_MESSAGE = "Invalid email/username or password"


def _issue_token(user: User) -> str:
    return create_access_token({
        "user_id": user.id,
        "email": user.email,
        "username": user.username,
    })


def _require_password_strength(password: str) -> None:
    ok, message = validate_password_strength(password)
    if not ok:
        raise ValidationError(message, field="password")


def _clean_optional(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


# ============================================================================
# Registration & Login
# ============================================================================

@router.post("/register")
async def register(
    request: RegisterRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
):
    """
    Create an account and sign it in.

    The welcome email is queued after the response; its failure never
    affects registration.
    """
    if not request.email or not request.username or not request.password:
        raise ValidationError("Email, username, and password are required")

    if not validate_email(request.email):
        raise ValidationError("Invalid email format", field="email")

    ok, message = validate_username(request.username)
    if not ok:
        raise ValidationError(message, field="username")

    _require_password_strength(request.password)

    user = await ops.create_user(
        session,
        email=request.email,
        username=request.username,
        password=request.password,
        preferences=default_preferences(),
        first_name=_clean_optional(request.first_name),
        last_name=_clean_optional(request.last_name),
    )

    dispatch_email(
        background_tasks,
        email_service.send_welcome_email,
        to_email=user.email,
        username=user.username,
        first_name=user.first_name,
    )
    logger.security_event("register", user_id=user.id)

    return {
        "success": True,
        "message": "Account created successfully! Please check your email for a welcome message.",
        "user": user.to_public_dict(),
        "token": _issue_token(user),
    }


@router.post("/login")
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Sign in with email or username.

    Accounts with two-factor enabled need ``twoFactorCode``; without it the
    response asks for one (``requires2FA``) instead of failing.
    """
    if not request.email or not request.password:
        raise ValidationError("Email/Username and password are required")

    user = await ops.get_user_by_login(session, request.email)
    if user is None or not await verify_password(request.password, user.password_hash):
        logger.security_event("login", success=False, reason="bad_credentials")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    if user.two_factor_state == "enabled":
        if not request.two_factor_code:
            return {
                "success": False,
                "requires2FA": True,
                "message": "Two-factor authentication code required",
            }
        if not get_two_factor_manager().verify(user.two_factor_secret, request.two_factor_code):
            logger.security_event("login", success=False, reason="bad_2fa_code", user_id=user.id)
            raise AuthenticationError("Invalid two-factor authentication code")

    if needs_rehash(user.password_hash):
        await ops.rehash_password(session, user, request.password)

    logger.security_event("login", user_id=user.id)
    return {
        "success": True,
        "message": "Login successful",
        "user": user.to_public_dict(),
        "token": _issue_token(user),
    }


# ============================================================================
# Password Recovery
# ============================================================================

@router.post("/forgot-password")
async def forgot_password(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
):
    """Start password recovery; the answer is identical whether or not the account exists."""
    if not request.email or not validate_email(request.email):
        raise ValidationError("Valid email is required", field="email")

    user = await ops.request_password_reset(session, request.email)

    response = {"success": True, "message": FORGOT_PASSWORD_MESSAGE}
    if user is not None:
        dispatch_email(
            background_tasks,
            email_service.send_password_reset_email,
            to_email=user.email,
            username=user.username,
            reset_token=user.reset_password_token,
        )
        logger.security_event("password_reset_requested", user_id=user.id)
        if settings.debug:
            response["resetToken"] = user.reset_password_token

    return response


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
):
    if not request.token or not request.new_password:
        raise ValidationError("Token and new password are required")

    _require_password_strength(request.new_password)

    user = await ops.consume_reset_token(session, request.token, request.new_password)
    if user is None:
        logger.security_event("password_reset", success=False)
        raise ValidationError("Invalid or expired reset token", field="token")

    dispatch_email(
        background_tasks,
        email_service.send_password_changed_email,
        to_email=user.email,
        username=user.username,
    )
    logger.security_event("password_reset", user_id=user.id)

    return {
        "success": True,
        "message": "Password has been reset successfully. You can now log in with your new password.",
    }


@router.put("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not request.current_password or not request.new_password:
        raise ValidationError("Current password and new password are required")

    _require_password_strength(request.new_password)

    if not await verify_password(request.current_password, user.password_hash):
        logger.security_event("password_change", success=False, user_id=user.id)
        raise ValidationError("Current password is incorrect", field="currentPassword")

    await ops.change_password(session, user, request.new_password)

    dispatch_email(
        background_tasks,
        email_service.send_password_changed_email,
        to_email=user.email,
        username=user.username,
    )
    logger.security_event("password_change", user_id=user.id)

    return {"success": True, "message": "Password changed successfully"}


# ============================================================================
# Account
# ============================================================================

@router.delete("/delete-account")
async def delete_account(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Delete the caller's account and every chat session it owns.

    Tokens already issued for the account stay cryptographically valid
    until they expire but no longer resolve to a user.
    """
    user_id = user.id
    if not await ops.delete_user(session, user_id):
        raise NotFoundError("User not found")

    logger.security_event("account_deleted", user_id=user_id)
    return {"success": True, "message": "Account deleted successfully"}


@router.get("/preferences")
@router.get("/get-preferences")
async def get_preferences(user: User = Depends(get_current_user)):
    return {
        "success": True,
        "message": "Preferences retrieved successfully",
        "preferences": normalize_preferences(user.preferences),
    }


@router.put("/preferences")
@router.put("/update-preferences")
async def update_preferences(
    preferences: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    normalized = normalize_preferences(preferences)
    await ops.update_preferences(session, user, normalized)

    return {
        "success": True,
        "message": "Preferences updated successfully",
        "preferences": normalized,
    }


@router.put("/update-profile")
async def update_profile(
    request: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not request.username or not request.email:
        raise ValidationError("Username and email are required")

    if not validate_email(request.email):
        raise ValidationError("Invalid email format", field="email")

    ok, message = validate_username(request.username)
    if not ok:
        raise ValidationError(message, field="username")

    user = await ops.update_profile(
        session,
        user,
        username=request.username,
        email=request.email,
        first_name=_clean_optional(request.first_name),
        last_name=_clean_optional(request.last_name),
    )

    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": user.to_public_dict(),
    }


# ============================================================================
# Email Change
# ============================================================================

@router.post("/send-email-verification")
async def send_email_verification(
    request: SendEmailVerificationRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Send a 6-digit code to the new address; the change waits for that code."""
    if not request.new_email:
        raise ValidationError("New email is required", field="newEmail")

    if not validate_email(request.new_email):
        raise ValidationError("Please enter a valid email address", field="newEmail")

    if ops.normalize_email(request.new_email) == user.email:
        raise ValidationError("New email must be different from your current email", field="newEmail")

    verification = await ops.create_email_verification(session, user, request.new_email)

    delivered = await run_in_threadpool(
        email_service.send_email_verification_code,
        to_email=verification.new_email,
        username=user.username,
        code=verification.verification_code,
    )
    if not delivered:
        raise InternalError("Failed to send verification email. Please try again.")

    return {
        "success": True,
        "message": "Verification code sent to your new email address",
    }


@router.post("/verify-email-change")
async def verify_email_change(
    request: VerifyEmailChangeRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not request.verification_code:
        raise ValidationError("Verification code is required", field="verificationCode")

    old_email = user.email
    if not await ops.confirm_email_change(session, user, request.verification_code):
        raise ValidationError("Invalid or expired verification code", field="verificationCode")

    dispatch_email(
        background_tasks,
        email_service.send_email_changed_email,
        to_email=old_email,
        username=user.username,
        new_email=user.email,
    )
    logger.security_event("email_changed", user_id=user.id)

    return {
        "success": True,
        "message": "Email address updated successfully",
        "user": user.to_public_dict(),
        # The old token still carries the previous address
        "token": _issue_token(user),
    }


# ============================================================================
# Two-Factor Authentication
# ============================================================================

@router.post("/setup-2fa")
async def setup_two_factor(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """
    Start two-factor setup: store a new secret (pending) and return the
    provisioning QR code. Calling it again before enabling replaces the secret.
    """
    setup = await run_in_threadpool(get_two_factor_manager().setup, user)
    await ops.set_two_factor_secret(session, user, setup.secret)

    logger.security_event("2fa_setup", user_id=user.id)
    return {
        "success": True,
        "message": "2FA setup initiated. Scan the QR code with your authenticator app.",
        "secret": setup.secret,
        "qrCode": setup.qr_code,
        "manualEntryKey": setup.manual_entry_key,
    }


@router.post("/enable-2fa")
async def enable_two_factor(
    request: TwoFactorCodeRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Confirm a pending setup with one valid code and switch two-factor on."""
    if not request.code:
        raise ValidationError("Verification code is required", field="code")

    state = user.two_factor_state
    if state == "enabled":
        raise ValidationError("2FA is already enabled for this account", field="code")

    if state == "disabled":
        raise ValidationError("2FA has not been set up. Please run setup first.", field="code")

    if not get_two_factor_manager().verify(user.two_factor_secret, request.code):
        logger.security_event("2fa_enable", success=False, user_id=user.id)
        raise ValidationError("Invalid verification code", field="code")

    await ops.enable_two_factor(session, user)

    dispatch_email(
        background_tasks,
        email_service.send_two_factor_enabled_email,
        to_email=user.email,
        username=user.username,
    )
    logger.security_event("2fa_enable", user_id=user.id)

    return {"success": True, "message": "Two-factor authentication enabled successfully"}


@router.post("/disable-2fa")
async def disable_two_factor(
    request: DisableTwoFactorRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    if not request.code or not request.password:
        raise ValidationError("Password and verification code are required")

    if user.two_factor_state != "enabled":
        raise ValidationError("2FA is not enabled for this account")

    if not await verify_password(request.password, user.password_hash):
        logger.security_event("2fa_disable", success=False, user_id=user.id)
        raise ValidationError("Password is incorrect", field="password")

    if not get_two_factor_manager().verify(user.two_factor_secret, request.code):
        logger.security_event("2fa_disable", success=False, user_id=user.id)
        raise ValidationError("Invalid verification code", field="code")

    await ops.disable_two_factor(session, user)

    dispatch_email(
        background_tasks,
        email_service.send_two_factor_disabled_email,
        to_email=user.email,
        username=user.username,
    )
    logger.security_event("2fa_disable", user_id=user.id)

    return {"success": True, "message": "Two-factor authentication disabled successfully"}


@router.post("/verify-2fa")
async def verify_two_factor(
    request: VerifyTwoFactorRequest,
    session: AsyncSession = Depends(get_session),
):
    """Check a code against the account's stored secret without changing any state."""
    if not request.email or not request.code:
        raise ValidationError("Email and code are required")

    user = await ops.get_user_by_email(session, request.email)
    if user is None:
        raise NotFoundError("User not found")

    if user.two_factor_state == "disabled":
        raise ValidationError("2FA is not set up for this account")

    if not get_two_factor_manager().verify(user.two_factor_secret, request.code):
        raise ValidationError("Invalid 2FA code", field="code")

    return {"success": True, "message": "2FA code verified successfully"}
