"""Pending email-address changes."""

from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Integer

from .base import Base, utcnow, ensure_aware


class EmailVerification(Base):
    """
    Verification code for an email change.

    One row per user; a new request replaces the previous code.
    """

    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    new_email = Column(String(255), nullable=False)
    verification_code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def is_expired(self, now=None) -> bool:
        return ensure_aware(self.expires_at) <= (now or utcnow())
