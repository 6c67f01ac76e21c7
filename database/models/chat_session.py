"""Stored chat sessions owned by a user."""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base, JSONType, utcnow, isoformat, new_uuid


class ChatSession(Base):
    """A saved conversation; removed together with its owner."""

    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # Identifier assigned by the client
    session_id = Column(String(255), nullable=True)
    title = Column(String(500), nullable=True)
    messages = Column(JSONType, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="chat_sessions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "title": self.title,
            "messages": self.messages or [],
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
