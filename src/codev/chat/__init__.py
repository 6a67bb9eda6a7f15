"""Conversations and messages.

Created: 2026-09-05

Usage:
    from codev.chat import ChatService

    service = ChatService()
    conversation = await service.get_or_create_conversation(user.id, None, "chat")
    await service.record_user_message(conversation, "Hello")
    history = await service.get_messages(conversation.id)
"""

from codev.chat.models import (
    Conversation,
    ConversationMode,
    Message,
    MessageRole,
    derive_title,
)
from codev.chat.protocol import ConversationStoreProtocol
from codev.chat.service import ChatService
from codev.chat.store import FileConversationStore

__all__ = [
    "ChatService",
    "Conversation",
    "ConversationMode",
    "ConversationStoreProtocol",
    "FileConversationStore",
    "Message",
    "MessageRole",
    "derive_title",
]
