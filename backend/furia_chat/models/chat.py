"""
Chat persistence models - sessions and their ordered messages.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Author of a message turn."""
    USER = "user"
    MODEL = "model"


class ChatSession(SQLModel, table=True):
    """
    One conversation thread, addressed externally by its uuid.

    Deleting a session deletes all of its messages.
    """
    __tablename__ = "chat_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    uuid: str = Field(
        default_factory=lambda: str(uuid4()),
        max_length=255,
        unique=True,
        index=True,
        nullable=False,
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    messages: List["ChatMessage"] = Relationship(
        back_populates="chat_session",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True},
    )


class ChatMessage(SQLModel, table=True):
    """A single user or model turn inside a session."""
    __tablename__ = "chat_messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_session_id: int = Field(
        foreign_key="chat_sessions.id",
        ondelete="CASCADE",
        index=True,
        nullable=False,
    )
    role: str = Field(max_length=20)  # MessageRole value
    content: str
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)

    chat_session: Optional[ChatSession] = Relationship(back_populates="messages")

    def to_history_entry(self) -> dict:
        """Shape used as generation context and returned to API callers."""
        return {"role": self.role, "text": self.content}
