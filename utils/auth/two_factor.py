"""
Two-factor authentication (TOTP, RFC 6238).

Per-user state machine:

    disabled --setup--> pending --enable (one valid code)--> enabled
    pending  --setup--> pending   (secret replaced)
    enabled  --disable (password + valid code)--> disabled

Codes use the authenticator-app defaults: SHA-1, 6 digits, 30 second
steps, base32 secrets. Verification accepts ``valid_window`` steps of
clock drift in each direction.
"""

import io
import base64
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional, Union

import pyotp
import qrcode

from config import settings
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

TOTP_DIGITS = 6
TOTP_INTERVAL = 30


@dataclass
class TwoFactorSetup:
    """Material handed to the user when two-factor setup starts."""
    secret: str
    qr_code: str
    manual_entry_key: str
    provisioning_uri: str


class TwoFactorManager:
    """Generates TOTP secrets, provisioning QR codes and verifies codes."""

    def __init__(self, issuer: str = "AISync", secret_length: int = 32, valid_window: int = 2):
        self.issuer = issuer
        self.secret_length = secret_length
        self.valid_window = valid_window

    def generate_secret(self) -> str:
        return pyotp.random_base32(length=self.secret_length)

    def provisioning_uri(self, secret: str, account_name: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(
            name=f"{self.issuer} ({account_name})",
            issuer_name=self.issuer,
        )

    @staticmethod
    def qr_code_data_url(uri: str) -> str:
        """Render ``uri`` as a PNG QR code embedded in a data URL."""
        image = qrcode.make(uri)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
        return f"data:image/png;base64,{encoded}"

    def setup(self, user) -> TwoFactorSetup:
        """
        Start (or restart) two-factor setup for ``user``.

        The caller persists ``secret`` with two-factor still disabled.

        Raises:
            ValidationError: if two-factor authentication is already enabled
        """
        if user.two_factor_enabled:
            raise ValidationError("2FA is already enabled for this account", field="twoFactor")

        secret = self.generate_secret()
        uri = self.provisioning_uri(secret, user.email)
        return TwoFactorSetup(
            secret=secret,
            qr_code=self.qr_code_data_url(uri),
            manual_entry_key=secret,
            provisioning_uri=uri,
        )

    def verify(
        self,
        secret: Optional[str],
        code: Optional[str],
        for_time: Optional[Union[int, float, datetime]] = None,
    ) -> bool:
        """
        Check ``code`` against ``secret`` within the drift window.

        Blank, non-numeric or wrong-length codes are rejected without
        touching the secret. Never raises for bad input.
        """
        if not secret or not code:
            return False
        code = str(code).strip().replace(" ", "")
        if len(code) != TOTP_DIGITS or not code.isdigit():
            return False

        totp = pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL)
        try:
            return totp.verify(code, for_time=for_time, valid_window=self.valid_window)
        except (ValueError, TypeError) as e:
            # base32 decoding failure on a corrupted stored secret
            logger.warning(f"TOTP verification failed on stored secret: {type(e).__name__}")
            return False


@lru_cache(maxsize=1)
def get_two_factor_manager() -> TwoFactorManager:
    return TwoFactorManager(
        issuer=settings.totp_issuer,
        secret_length=settings.totp_secret_length,
        valid_window=settings.totp_valid_window,
    )
