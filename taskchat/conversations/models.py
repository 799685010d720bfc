"""
TaskChat - Conversation Models

Transcript entities for database storage.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
import uuid


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def main_conversation_id(user_id: str) -> str:
    """Deterministic id of a user's default conversation."""
    return f"main_{user_id}"


@dataclass
class ChatMessage:
    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=_utcnow)
    message_type: str = "text"
    is_file: bool = False
    file_name: Optional[str] = None

    @classmethod
    def file(cls, content: str, file_name: Optional[str], timestamp: datetime) -> "ChatMessage":
        """A user message recording an uploaded file."""
        return cls(
            role=MessageRole.USER,
            content=content,
            timestamp=timestamp,
            message_type="file",
            is_file=True,
            file_name=file_name,
        )

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "message_type": self.message_type,
            "is_file": self.is_file,
            "file_name": self.file_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(
            role=MessageRole(data["role"]),
            content=data["content"],
            timestamp=data["timestamp"],
            message_type=data.get("message_type", "text"),
            is_file=data.get("is_file", False),
            file_name=data.get("file_name"),
        )


@dataclass
class ChatConversation:
    """Ordered, append-only message log for one (user, conversation) pair."""

    id: str
    user_id: str
    conversation_id: str
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(
        cls,
        user_id: str,
        conversation_id: str,
        now: datetime,
        expires_at: datetime,
    ) -> "ChatConversation":
        """Create an empty conversation with generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            conversation_id=conversation_id,
            messages=[],
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
        )

    def add_message(self, message: ChatMessage, expires_at: datetime) -> None:
        """Append a message; activity moves updated_at and pushes expiry out."""
        self.messages.append(message)
        self.updated_at = message.timestamp
        self.expires_at = expires_at

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def to_dict(self) -> dict:
        """Convert conversation to dictionary for MongoDB storage."""
        return {
            "_id": self.id,
            "user_id": self.user_id,
            "conversation_id": self.conversation_id,
            "messages": [m.to_dict() for m in self.messages],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChatConversation":
        """Create conversation from MongoDB document."""
        return cls(
            id=data["_id"],
            user_id=data["user_id"],
            conversation_id=data["conversation_id"],
            messages=[ChatMessage.from_dict(m) for m in data.get("messages", [])],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
            expires_at=data["expires_at"],
        )
