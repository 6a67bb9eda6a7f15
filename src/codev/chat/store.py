"""File-based conversation store.

Created: 2026-09-05
Implements ConversationStoreProtocol using JSON files.

Storage layout:
~/.codev/conversations/
    conversations.json  # All conversations (without messages)
    messages.json       # All messages, in insertion order

Design notes:
- In-memory index, loaded once, written through on every change
- Atomic writes using temp file + rename
- Suitable for a single local user (< 10k messages)
"""

import json
import logging
from pathlib import Path
from typing import Any

from codev.chat.models import Conversation, ConversationMode, Message, now_iso

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({"title", "mode"})


class FileConversationStore:
    """JSON-file implementation of conversation storage."""

    def __init__(self, base_path: Path | None = None):
        """Initialize the store.

        Args:
            base_path: Directory for storage files. Defaults to <config_dir>/conversations/
        """
        if base_path is None:
            from codev.config import get_config_dir

            base_path = get_config_dir() / "conversations"

        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)

        self._conversations_file = self.base_path / "conversations.json"
        self._messages_file = self.base_path / "messages.json"

        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, Message] = {}

        self._load_all()

    # =========================================================================
    # File I/O Helpers
    # =========================================================================

    def _load_json(self, path: Path) -> list[dict[str, Any]]:
        """Load a JSON file, returning empty list if not found."""
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Error loading {path}: {e}")
            return []

    def _save_json(self, path: Path, data: list[dict[str, Any]]) -> None:
        """Save data to JSON file atomically."""
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_path.replace(path)

    def _load_all(self) -> None:
        for data in self._load_json(self._conversations_file):
            conversation = Conversation.from_dict(data)
            self._conversations[conversation.id] = conversation

        for data in self._load_json(self._messages_file):
            message = Message.from_dict(data)
            self._messages[message.id] = message

        logger.debug(
            f"Conversation store loaded: {len(self._conversations)} conversations, "
            f"{len(self._messages)} messages"
        )

    def _persist_conversations(self) -> None:
        data = [c.to_dict() for c in self._conversations.values()]
        self._save_json(self._conversations_file, data)

    def _persist_messages(self) -> None:
        data = [m.to_dict() for m in self._messages.values()]
        self._save_json(self._messages_file, data)

    def _owned(self, conversation_id: str, user_id: str) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return None
        return conversation

    # =========================================================================
    # Conversation Operations
    # =========================================================================

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        self._conversations[conversation.id] = conversation
        self._persist_conversations()
        return conversation

    async def find_conversation(self, conversation_id: str, user_id: str) -> Conversation | None:
        return self._owned(conversation_id, user_id)

    async def list_conversations(self, user_id: str, limit: int = 100) -> list[Conversation]:
        conversations = [c for c in self._conversations.values() if c.user_id == user_id]
        conversations.sort(key=lambda c: c.updated_at, reverse=True)
        return conversations[:limit]

    async def update_conversation(
        self, conversation_id: str, user_id: str, **fields: Any
    ) -> Conversation | None:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update conversation fields: {sorted(unknown)}")
        if "mode" in fields:
            # Raises ValueError for an unknown mode before anything is touched
            fields["mode"] = ConversationMode(fields["mode"])

        conversation = self._owned(conversation_id, user_id)
        if conversation is None:
            return None

        for name, value in fields.items():
            setattr(conversation, name, value)
        conversation.updated_at = now_iso()
        self._persist_conversations()
        return conversation

    async def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        if self._owned(conversation_id, user_id) is None:
            return False

        del self._conversations[conversation_id]
        self._messages = {
            mid: m for mid, m in self._messages.items() if m.conversation_id != conversation_id
        }
        self._persist_conversations()
        self._persist_messages()
        return True

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def create_message(self, message: Message) -> Message:
        self._messages[message.id] = message
        self._persist_messages()

        conversation = self._conversations.get(message.conversation_id)
        if conversation is not None:
            conversation.updated_at = message.created_at
            self._persist_conversations()
        return message

    async def list_messages(self, conversation_id: str) -> list[Message]:
        messages = [m for m in self._messages.values() if m.conversation_id == conversation_id]
        # Stable sort: equal timestamps keep insertion order
        messages.sort(key=lambda m: m.created_at)
        return messages
