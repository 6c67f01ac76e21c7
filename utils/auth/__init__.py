"""Authentication utilities."""

from .jwt_handler import (
    JWTHandler,
    create_access_token,
    verify_access_token,
    extract_bearer_token,
    get_jwt_handler,
)
from .password import (
    hash_password,
    verify_password,
    hash_password_sync,
    verify_password_sync,
    needs_rehash,
    validate_email,
    validate_username,
    validate_password_strength,
)
from .two_factor import (
    TwoFactorManager,
    TwoFactorSetup,
    get_two_factor_manager,
)

__all__ = [
    "JWTHandler",
    "create_access_token",
    "verify_access_token",
    "extract_bearer_token",
    "get_jwt_handler",
    "hash_password",
    "verify_password",
    "hash_password_sync",
    "verify_password_sync",
    "needs_rehash",
    "validate_email",
    "validate_username",
    "validate_password_strength",
    "TwoFactorManager",
    "TwoFactorSetup",
    "get_two_factor_manager",
]
