# Chat Service: conversation and message operations for the chat loops.
# Created: 2026-09-05
#
# Wraps a ConversationStoreProtocol backend. Storage errors propagate to the
# caller unchanged; nothing here retries.

from __future__ import annotations

import json
import logging
from typing import Any

from codev.chat.models import (
    Conversation,
    ConversationMode,
    Message,
    MessageRole,
    derive_title,
)
from codev.chat.protocol import ConversationStoreProtocol

logger = logging.getLogger(__name__)


class ChatService:
    """Create, resume and append to conversations."""

    def __init__(self, store: ConversationStoreProtocol | None = None):
        if store is None:
            from codev.chat.store import FileConversationStore

            store = FileConversationStore()
        self.store = store

    async def create_conversation(
        self,
        user_id: str,
        mode: ConversationMode | str = ConversationMode.CHAT,
        title: str | None = None,
    ) -> Conversation:
        """Create a new, empty conversation for ``user_id``."""
        mode = ConversationMode(mode)
        conversation = Conversation(
            user_id=user_id,
            mode=mode,
            title=title or f"New {mode.value} conversation",
        )
        await self.store.create_conversation(conversation)
        logger.debug("Created %s conversation %s", mode.value, conversation.id)
        return conversation

    async def get_or_create_conversation(
        self,
        user_id: str,
        conversation_id: str | None = None,
        mode: ConversationMode | str = ConversationMode.CHAT,
    ) -> Conversation:
        """Resume ``conversation_id`` if it belongs to ``user_id``, else start a new one.

        A resumed conversation has its messages loaded in replay order.
        """
        if conversation_id:
            conversation = await self.store.find_conversation(conversation_id, user_id)
            if conversation is not None:
                conversation.messages = await self.get_messages(conversation.id)
                return conversation
            logger.info("Conversation %s not found for user; starting a new one", conversation_id)

        return await self.create_conversation(user_id, mode)

    async def add_message(
        self, conversation_id: str, role: MessageRole | str, content: Any
    ) -> Message:
        """Append a message. Non-string content is stored as JSON text."""
        content_str = content if isinstance(content, str) else json.dumps(content)
        message = Message(
            conversation_id=conversation_id,
            role=MessageRole(role),
            content=content_str,
        )
        return await self.store.create_message(message)

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Messages in ascending creation order, JSON content decoded."""
        messages = await self.store.list_messages(conversation_id)
        return [
            Message(
                id=m.id,
                conversation_id=m.conversation_id,
                role=m.role,
                content=self.parse_content(m.content),
                created_at=m.created_at,
            )
            for m in messages
        ]

    async def record_user_message(self, conversation: Conversation, text: str) -> Message:
        """Save a user message; the first one also becomes the conversation title."""
        message = await self.add_message(conversation.id, MessageRole.USER, text)
        messages = await self.store.list_messages(conversation.id)
        user_messages = [m for m in messages if m.role == MessageRole.USER]
        if len(user_messages) == 1:
            title = derive_title(text)
            await self.update_title(conversation.id, conversation.user_id, title)
            conversation.title = title
        return message

    async def update_title(self, conversation_id: str, user_id: str, title: str) -> Conversation | None:
        return await self.store.update_conversation(conversation_id, user_id, title=title)

    async def get_user_conversations(self, user_id: str) -> list[Conversation]:
        """A user's conversations, most recently updated first."""
        return await self.store.list_conversations(user_id)

    async def delete_conversation(self, conversation_id: str, user_id: str) -> bool:
        return await self.store.delete_conversation(conversation_id, user_id)

    @staticmethod
    def parse_content(content: str) -> Any:
        """Decode JSON content; anything that is not JSON comes back unchanged."""
        if not isinstance(content, str):
            return content
        try:
            return json.loads(content)
        except ValueError:
            return content

    @staticmethod
    def format_messages_for_ai(messages: list[Message]) -> list[dict[str, str]]:
        """Turn stored messages into ``{role, content}`` dicts for the model.

        Messages with empty text are left out; the provider rejects them.
        """
        return [
            {
                "role": m.role.value,
                "content": m.content if isinstance(m.content, str) else json.dumps(m.content),
            }
            for m in messages
            if m.content != ""
        ]
