# Tests for chat/models.py, chat/store.py and chat/service.py
# Created: 2026-09-21

import json

import pytest

from codev.chat import (
    ChatService,
    Conversation,
    ConversationMode,
    ConversationStoreProtocol,
    FileConversationStore,
    Message,
    MessageRole,
    derive_title,
)

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def store(tmp_path):
    return FileConversationStore(tmp_path / "conversations")


@pytest.fixture
def service(store):
    return ChatService(store)


# ============================================================================
# Model Tests
# ============================================================================


class TestModels:
    def test_derive_title_short(self):
        assert derive_title("Hello") == "Hello"

    def test_derive_title_exactly_fifty(self):
        text = "x" * 50
        assert derive_title(text) == text

    def test_derive_title_truncates(self):
        text = "y" * 51
        assert derive_title(text) == "y" * 50 + "..."

    def test_conversation_dict_excludes_messages(self):
        conversation = Conversation(user_id="u1", mode=ConversationMode.TOOL, title="t")
        conversation.messages = [Message(conversation_id=conversation.id, content="hi")]
        data = conversation.to_dict()
        assert "messages" not in data
        assert data["mode"] == "tool"
        restored = Conversation.from_dict(data)
        assert restored.id == conversation.id
        assert restored.mode == ConversationMode.TOOL

    def test_message_from_dict(self):
        message = Message.from_dict(
            {"id": "m1", "conversation_id": "c1", "role": "assistant", "content": "ok"}
        )
        assert message.role == MessageRole.ASSISTANT
        assert message.content == "ok"


# ============================================================================
# Store Tests
# ============================================================================


class TestFileConversationStore:
    def test_implements_protocol(self, store):
        assert isinstance(store, ConversationStoreProtocol)

    async def test_create_and_find(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1", title="a"))
        found = await store.find_conversation(conversation.id, "u1")
        assert found is not None
        assert found.title == "a"

    async def test_find_scoped_to_owner(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        assert await store.find_conversation(conversation.id, "u2") is None

    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "conversations"
        first = FileConversationStore(path)
        conversation = await first.create_conversation(Conversation(user_id="u1", title="kept"))
        await first.create_message(Message(conversation_id=conversation.id, content="hi"))

        second = FileConversationStore(path)
        found = await second.find_conversation(conversation.id, "u1")
        assert found.title == "kept"
        messages = await second.list_messages(conversation.id)
        assert [m.content for m in messages] == ["hi"]

    async def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "conversations"
        path.mkdir()
        (path / "conversations.json").write_text("{broken", encoding="utf-8")
        store = FileConversationStore(path)
        assert await store.list_conversations("u1") == []

    async def test_list_most_recent_first(self, store):
        old = await store.create_conversation(Conversation(user_id="u1", title="old"))
        new = await store.create_conversation(Conversation(user_id="u1", title="new"))
        await store.create_conversation(Conversation(user_id="u2", title="other"))
        await store.create_message(Message(conversation_id=old.id, content="bump"))

        listed = await store.list_conversations("u1")
        assert [c.id for c in listed] == [old.id, new.id]

    async def test_update_allowed_fields(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        updated = await store.update_conversation(conversation.id, "u1", title="renamed")
        assert updated.title == "renamed"

    async def test_update_rejects_unknown_fields(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        with pytest.raises(ValueError):
            await store.update_conversation(conversation.id, "u1", created_at="x")
        with pytest.raises(ValueError):
            await store.update_conversation(conversation.id, "u1", id="other")
        assert await store.find_conversation(conversation.id, "u1") is conversation

    async def test_update_mode_persists(self, store, tmp_path):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        updated = await store.update_conversation(conversation.id, "u1", mode="tool")
        assert updated.mode is ConversationMode.TOOL

        reloaded = FileConversationStore(tmp_path / "conversations")
        found = await reloaded.find_conversation(conversation.id, "u1")
        assert found.mode is ConversationMode.TOOL

    async def test_update_invalid_mode_changes_nothing(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        with pytest.raises(ValueError):
            await store.update_conversation(conversation.id, "u1", title="new", mode="bogus")
        assert conversation.title != "new"
        assert conversation.mode is ConversationMode.CHAT
        # Later writes still serialize
        await store.create_message(Message(conversation_id=conversation.id, content="hi"))

    async def test_update_other_owner(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        assert await store.update_conversation(conversation.id, "u2", title="x") is None

    async def test_delete_removes_messages(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        keep = await store.create_conversation(Conversation(user_id="u1"))
        await store.create_message(Message(conversation_id=conversation.id, content="a"))
        await store.create_message(Message(conversation_id=keep.id, content="b"))

        assert await store.delete_conversation(conversation.id, "u2") is False
        assert await store.delete_conversation(conversation.id, "u1") is True
        assert await store.list_messages(conversation.id) == []
        assert len(await store.list_messages(keep.id)) == 1

    async def test_messages_in_creation_order(self, store):
        conversation = await store.create_conversation(Conversation(user_id="u1"))
        for i in range(5):
            await store.create_message(
                Message(conversation_id=conversation.id, content=str(i), created_at="2026-01-01T00:00:00")
            )
        messages = await store.list_messages(conversation.id)
        assert [m.content for m in messages] == ["0", "1", "2", "3", "4"]


# ============================================================================
# Service Tests
# ============================================================================


class TestChatService:
    async def test_create_default_title(self, service):
        conversation = await service.create_conversation("u1", "agent")
        assert conversation.mode == ConversationMode.AGENT
        assert conversation.title == "New agent conversation"

    async def test_get_or_create_new(self, service):
        conversation = await service.get_or_create_conversation("u1")
        assert conversation.user_id == "u1"
        assert conversation.messages == []

    async def test_get_or_create_resumes_with_messages(self, service):
        conversation = await service.create_conversation("u1")
        await service.add_message(conversation.id, MessageRole.USER, "hi")
        await service.add_message(conversation.id, MessageRole.ASSISTANT, "hello")

        resumed = await service.get_or_create_conversation("u1", conversation.id)
        assert resumed.id == conversation.id
        assert [(m.role, m.content) for m in resumed.messages] == [
            (MessageRole.USER, "hi"),
            (MessageRole.ASSISTANT, "hello"),
        ]

    async def test_get_or_create_other_owner_starts_new(self, service):
        conversation = await service.create_conversation("u1")
        other = await service.get_or_create_conversation("u2", conversation.id, "tool")
        assert other.id != conversation.id
        assert other.user_id == "u2"
        assert other.mode == ConversationMode.TOOL

    async def test_structured_content_round_trip(self, service, store):
        conversation = await service.create_conversation("u1")
        payload = {"files": ["a.py"], "count": 1}
        await service.add_message(conversation.id, MessageRole.TOOL, payload)

        raw = await store.list_messages(conversation.id)
        assert raw[0].content == json.dumps(payload)
        decoded = await service.get_messages(conversation.id)
        assert decoded[0].content == payload

    async def test_plain_text_not_decoded(self, service):
        conversation = await service.create_conversation("u1")
        await service.add_message(conversation.id, MessageRole.USER, "not {json")
        messages = await service.get_messages(conversation.id)
        assert messages[0].content == "not {json"

    async def test_first_user_message_sets_title(self, service):
        conversation = await service.create_conversation("u1")
        long_text = "Explain the difference between processes and threads in detail please"
        await service.record_user_message(conversation, long_text)
        assert conversation.title == long_text[:50] + "..."

        await service.record_user_message(conversation, "second question")
        stored = await service.store.find_conversation(conversation.id, "u1")
        assert stored.title == long_text[:50] + "..."

    async def test_user_conversations_scoped(self, service):
        await service.create_conversation("u1")
        await service.create_conversation("u1")
        await service.create_conversation("u2")
        assert len(await service.get_user_conversations("u1")) == 2

    async def test_delete_conversation(self, service):
        conversation = await service.create_conversation("u1")
        assert await service.delete_conversation(conversation.id, "u1") is True
        assert await service.get_user_conversations("u1") == []

    def test_format_messages_for_ai(self):
        messages = [
            Message(role=MessageRole.SYSTEM, content="be brief"),
            Message(role=MessageRole.USER, content="hi"),
            Message(role=MessageRole.TOOL, content={"result": 4}),
        ]
        assert ChatService.format_messages_for_ai(messages) == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
            {"role": "tool", "content": '{"result": 4}'},
        ]

    def test_format_skips_empty_messages(self):
        messages = [
            Message(role=MessageRole.USER, content="search this"),
            Message(role=MessageRole.ASSISTANT, content=""),
            Message(role=MessageRole.USER, content="again"),
        ]
        assert [m["content"] for m in ChatService.format_messages_for_ai(messages)] == [
            "search this",
            "again",
        ]

    def test_default_store_uses_config_dir(self, isolated_config):
        service = ChatService()
        assert service.store.base_path == isolated_config / "conversations"
