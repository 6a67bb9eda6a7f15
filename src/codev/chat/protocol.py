"""Conversation storage protocol.

Created: 2026-09-05
Defines the persistence collaborator used by ChatService.

Any backend works (JSON files, SQLite, a hosted database) as long as it
honours two rules:
- every conversation read or update is filtered by the owning user_id
- messages come back in ascending creation order
"""

from typing import Any, Protocol, runtime_checkable

from codev.chat.models import Conversation, Message


@runtime_checkable
class ConversationStoreProtocol(Protocol):
    """Protocol defining the interface for conversation storage."""

    # =========================================================================
    # Conversation Operations
    # =========================================================================

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        """Persist a new conversation and return it."""
        ...

    async def find_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        """Get a conversation by ID, only if owned by ``user_id``."""
        ...

    async def list_conversations(self, user_id: str, limit: int = 100) -> list[Conversation]:
        """List a user's conversations, most recently updated first."""
        ...

    async def update_conversation(
        self, conversation_id: str, user_id: str, **fields: Any
    ) -> Conversation | None:
        """Update fields of an owned conversation. Returns None if not found."""
        ...

    async def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        """Delete an owned conversation and its messages. Returns True if deleted."""
        ...

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def create_message(self, message: Message) -> Message:
        """Persist a new message and return it."""
        ...

    async def list_messages(self, conversation_id: str) -> list[Message]:
        """Messages of a conversation in ascending creation order."""
        ...
