"""Conversation data models.

Created: 2026-09-05

- Conversation: one chat thread owned by exactly one user
- Message: one turn in a conversation

Design notes:
- Dataclasses with to_dict/from_dict for JSON persistence
- IDs are UUIDs, timestamps ISO 8601 strings (UTC)
- Message content is always stored as text; structured payloads are
  JSON-encoded by the service layer
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

TITLE_MAX_LENGTH = 50


class ConversationMode(str, Enum):
    """Which chat loop owns the conversation."""

    CHAT = "chat"
    TOOL = "tool"
    AGENT = "agent"


class MessageRole(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


def generate_id() -> str:
    """Generate a unique ID."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current UTC time as ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def derive_title(text: str) -> str:
    """Title from a first user message: 50 chars, ellipsis when truncated."""
    title = text[:TITLE_MAX_LENGTH]
    if len(text) > TITLE_MAX_LENGTH:
        title += "..."
    return title


@dataclass
class Message:
    """
    One stored turn of a conversation.

    Attributes:
        id: Unique identifier
        conversation_id: Owning conversation
        role: Author role
        content: Text content (decoded JSON once read through ChatService)
        created_at: Creation time; defines replay order
    """

    conversation_id: str = ""
    role: MessageRole = MessageRole.USER
    content: Any = ""
    id: str = field(default_factory=generate_id)
    created_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "role": self.role.value,
            "content": self.content,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Create from dictionary."""
        return cls(
            id=data.get("id", generate_id()),
            conversation_id=data.get("conversation_id", ""),
            role=MessageRole(data.get("role", "user")),
            content=data.get("content", ""),
            created_at=data.get("created_at", now_iso()),
        )


@dataclass
class Conversation:
    """
    A chat thread.

    Attributes:
        id: Unique identifier
        user_id: Owner; every lookup is scoped to it
        mode: chat, tool or agent
        title: Display title, set from the first user message
        created_at: When the conversation was created
        updated_at: Last modification time
        messages: Messages in creation order (populated on fetch, not persisted here)
    """

    user_id: str = ""
    mode: ConversationMode = ConversationMode.CHAT
    title: str = ""
    id: str = field(default_factory=generate_id)
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    messages: list[Message] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization (messages excluded)."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "mode": self.mode.value,
            "title": self.title,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        """Create from dictionary."""
        return cls(
            id=data.get("id", generate_id()),
            user_id=data.get("user_id", ""),
            mode=ConversationMode(data.get("mode", "chat")),
            title=data.get("title", ""),
            created_at=data.get("created_at", now_iso()),
            updated_at=data.get("updated_at", now_iso()),
        )
