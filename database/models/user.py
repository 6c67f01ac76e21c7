"""User account model."""

from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship

from .base import Base, JSONType, utcnow, isoformat, new_uuid


class User(Base):
    """Registered account with credentials, preferences and two-factor state."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(255), unique=True, index=True, nullable=False)

    # bcrypt hash only, never the password itself
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)

    # Normalized preference bundle (see api.models.normalize_preferences)
    preferences = Column(JSONType, nullable=True)

    # Two-factor authentication
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    two_factor_secret = Column(String(64), nullable=True)
    two_factor_enabled_at = Column(DateTime(timezone=True), nullable=True)

    # Password recovery: single current token per user
    reset_password_token = Column(String(255), unique=True, nullable=True)
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    chat_sessions = relationship(
        "ChatSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def two_factor_state(self) -> str:
        """"disabled", "pending" (secret stored, not confirmed) or "enabled"."""
        if self.two_factor_enabled:
            return "enabled"
        if self.two_factor_secret:
            return "pending"
        return "disabled"

    def to_public_dict(self) -> dict:
        """Serialize for API responses; credentials, secrets and reset state stay out."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "preferences": self.preferences or {},
            "twoFactorEnabled": bool(self.two_factor_enabled),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username}>"
