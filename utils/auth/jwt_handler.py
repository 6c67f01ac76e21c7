"""JWT session token handling."""

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Dict, Any

from jose import JWTError, jwt, ExpiredSignatureError

from config import settings

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("HS256", "HS384", "HS512")
BEARER_PREFIX = "Bearer "

# Claims copied from the caller into the token
IDENTITY_CLAIMS = ("user_id", "email", "username")


class JWTHandler:
    """
    Issues and verifies stateless session tokens.

    Tokens carry the user's id, email and username, are signed with the
    process-wide secret and expire after a fixed window. There is no
    server-side revocation: validity is signature plus expiry only.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_days: int = 7,
        leeway_seconds: int = 0,
    ):
        if not secret_key or len(secret_key) < 32:
            raise ValueError("JWT secret key must be at least 32 characters long")
        if algorithm not in SUPPORTED_ALGORITHMS:
            logger.warning(f"JWT algorithm '{algorithm}' is not supported. Using HS256.")
            algorithm = "HS256"

        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_delta = timedelta(days=expire_days)
        self.leeway_seconds = leeway_seconds

    def create_access_token(
        self,
        claims: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a signed session token.

        Args:
            claims: Mapping holding at least ``user_id``, ``email`` and ``username``
            expires_delta: Optional custom validity window

        Returns:
            Encoded JWT with ``exp`` and ``iat`` claims
        """
        now = datetime.now(timezone.utc)
        to_encode = {key: claims.get(key) for key in IDENTITY_CLAIMS}
        to_encode["user_id"] = str(to_encode["user_id"]) if to_encode["user_id"] is not None else None
        to_encode.update({
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expire_delta),
        })

        logger.debug(f"Creating session token for user_id={to_encode['user_id']}")
        return jwt.encode(to_encode, self._secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a session token.

        Returns:
            The decoded claims, or None when the token is malformed, carries a
            bad signature, has expired or lacks the identity claims.
        """
        if not token:
            return None

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "require_exp": True,
                    "leeway": self.leeway_seconds,
                },
            )
        except ExpiredSignatureError:
            logger.info("Rejected expired session token")
            return None
        except JWTError as e:
            logger.warning(f"Session token validation failed: {type(e).__name__}")
            return None

        if not payload.get("user_id") or not payload.get("email"):
            logger.warning("Session token missing required claims (user_id or email)")
            return None

        return payload


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


@lru_cache(maxsize=1)
def get_jwt_handler() -> JWTHandler:
    """Process-wide token issuer built once from settings."""
    handler = JWTHandler(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        expire_days=settings.access_token_expire_days,
        leeway_seconds=settings.jwt_leeway_seconds,
    )
    logger.info(
        f"JWT Configuration: ALGORITHM={handler.algorithm}, "
        f"EXPIRE_DAYS={settings.access_token_expire_days}, LEEWAY={handler.leeway_seconds}s"
    )
    return handler


def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    return get_jwt_handler().create_access_token(claims, expires_delta)


def verify_access_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    return get_jwt_handler().verify_access_token(token)
