"""
Database Operations

High-level coroutine operations over an AsyncSession.
"""

from .user_ops import (
    normalize_email,
    get_user_by_id,
    get_user_by_email,
    get_user_by_login,
    create_user,
    update_profile,
    update_preferences,
    change_password,
    rehash_password,
    delete_user,
    set_two_factor_secret,
    enable_two_factor,
    disable_two_factor,
)
from .password_reset_ops import (
    generate_reset_token,
    request_password_reset,
    consume_reset_token,
)
from .email_verification_ops import (
    generate_verification_code,
    create_email_verification,
    confirm_email_change,
)
from .session_ops import (
    list_sessions,
    get_session_for_user,
    create_session,
    update_session,
    delete_session,
)

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
    'generate_reset_token',
    'request_password_reset',
    'consume_reset_token',
    'generate_verification_code',
    'create_email_verification',
    'confirm_email_change',
    'list_sessions',
    'get_session_for_user',
    'create_session',
    'update_session',
    'delete_session',
]
