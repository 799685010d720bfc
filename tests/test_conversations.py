"""
TaskChat - Conversation Store Tests

Sliding expiry, main-conversation defaulting and the expiry sweep.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from pymongo.errors import DuplicateKeyError

from taskchat.conversations.models import (
    ChatConversation,
    ChatMessage,
    MessageRole,
    main_conversation_id,
)
from taskchat.conversations.repository import ConversationRepository
from tests.conftest import USER_ID, OTHER_USER_ID


TTL = timedelta(days=7)


class TestConversationIds:

    @pytest.mark.parametrize("conversation_id", [None, "", "   "])
    async def test_blank_id_is_main_conversation(self, conversation_service, conversation_id):
        conversation = await conversation_service.get_or_create(USER_ID, conversation_id)
        assert conversation.conversation_id == "main_user-1"
        assert conversation.conversation_id == main_conversation_id(USER_ID)

    async def test_get_main_conversation(self, conversation_service):
        first = await conversation_service.get_main_conversation(USER_ID)
        second = await conversation_service.get_or_create(USER_ID)
        assert first.id == second.id

    async def test_users_are_isolated(self, conversation_service):
        await conversation_service.append(USER_ID, "shared", MessageRole.USER, "mine")

        assert await conversation_service.get_conversation(OTHER_USER_ID, "shared") is None
        theirs = await conversation_service.get_or_create(OTHER_USER_ID, "shared")
        assert theirs.messages == []


class TestExpiry:

    async def test_created_lazily_with_ttl(self, conversation_service, frozen_now):
        conversation = await conversation_service.get_or_create(USER_ID)

        assert conversation.created_at == frozen_now
        assert conversation.expires_at == frozen_now + TTL
        assert conversation.messages == []

    async def test_append_extends_expiry(self, conversation_service, frozen_clock, frozen_now):
        first = await conversation_service.append(USER_ID, None, MessageRole.USER, "hello")
        old_expiry = first.expires_at

        frozen_clock.advance(timedelta(minutes=5))
        second = await conversation_service.append(USER_ID, None, MessageRole.ASSISTANT, "hi!")

        assert second.expires_at > old_expiry
        assert second.expires_at == frozen_now + timedelta(minutes=5) + TTL
        assert second.updated_at == frozen_now + timedelta(minutes=5)
        assert [m.content for m in second.messages] == ["hello", "hi!"]

    async def test_get_or_create_extends_expiry(self, conversation_service, frozen_clock, frozen_now):
        await conversation_service.get_or_create(USER_ID)
        frozen_clock.advance(timedelta(days=3))

        conversation = await conversation_service.get_or_create(USER_ID)

        assert conversation.expires_at == frozen_now + timedelta(days=3) + TTL

    async def test_get_conversation_does_not_extend_expiry(self, conversation_service, frozen_clock, frozen_now):
        await conversation_service.get_or_create(USER_ID, "c1")
        frozen_clock.advance(timedelta(days=3))

        conversation = await conversation_service.get_conversation(USER_ID, "c1")

        assert conversation.expires_at == frozen_now + TTL

    async def test_file_message(self, conversation_service):
        conversation = await conversation_service.append_file_message(USER_ID, None, "text body", "notes.txt")

        message = conversation.messages[0]
        assert message.role == MessageRole.USER
        assert message.is_file
        assert message.file_name == "notes.txt"
        assert message.message_type == "file"


class TestCleanup:

    async def test_cleanup_deletes_only_expired(self, conversation_service, frozen_clock):
        await conversation_service.append(USER_ID, "old", MessageRole.USER, "a")
        frozen_clock.advance(timedelta(days=6))
        await conversation_service.append(USER_ID, "recent", MessageRole.USER, "b")
        frozen_clock.advance(timedelta(days=2))

        deleted = await conversation_service.cleanup_expired()

        assert deleted == 1
        assert await conversation_service.get_conversation(USER_ID, "old") is None
        assert await conversation_service.get_conversation(USER_ID, "recent") is not None

    async def test_active_conversation_survives(self, conversation_service, frozen_clock):
        for _ in range(3):
            await conversation_service.append(USER_ID, None, MessageRole.USER, "ping")
            frozen_clock.advance(timedelta(days=5))

        assert await conversation_service.cleanup_expired() == 0

    async def test_list_skips_expired_and_orders_newest_first(self, conversation_service, frozen_clock):
        await conversation_service.append(USER_ID, "expired", MessageRole.USER, "x")
        frozen_clock.advance(timedelta(days=8))
        await conversation_service.append(USER_ID, "older", MessageRole.USER, "x")
        frozen_clock.advance(timedelta(hours=1))
        await conversation_service.append(USER_ID, "newer", MessageRole.USER, "x")

        conversations = await conversation_service.list_user_conversations(USER_ID)

        assert [c.conversation_id for c in conversations] == ["newer", "older"]

    async def test_delete_conversation(self, conversation_service):
        await conversation_service.get_or_create(USER_ID, "c1")

        assert await conversation_service.delete_conversation(USER_ID, "c1") is True
        assert await conversation_service.delete_conversation(USER_ID, "c1") is False
        assert await conversation_service.get_conversation(USER_ID, "c1") is None


class TestSerialization:

    def test_round_trip_keeps_file_fields(self, frozen_now):
        conversation = ChatConversation.create(USER_ID, "c1", frozen_now, frozen_now + TTL)
        conversation.add_message(ChatMessage.file("body", "a.pdf", frozen_now), frozen_now + TTL)

        doc = conversation.to_dict()
        restored = ChatConversation.from_dict(doc)

        assert doc["_id"] == conversation.id
        assert doc["messages"][0]["is_file"] is True
        assert restored == conversation


class TestMongoUpsert:
    """Mongo adapter behaviour with a mocked collection."""

    @pytest.fixture
    def collection(self):
        mock = MagicMock()
        mock.find_one_and_update = AsyncMock()
        return mock

    @pytest.fixture
    def repository(self, collection):
        db = MagicMock()
        db.__getitem__.return_value = collection
        return ConversationRepository(db)

    async def test_append_retries_once_after_duplicate_key(self, repository, collection, frozen_now):
        stored = ChatConversation.create(USER_ID, "c1", frozen_now, frozen_now + TTL)
        message = ChatMessage(role=MessageRole.USER, content="hi", timestamp=frozen_now)
        stored.add_message(message, frozen_now + TTL)
        collection.find_one_and_update.side_effect = [DuplicateKeyError("E11000 duplicate key"), stored.to_dict()]

        conversation = await repository.append_message(USER_ID, "c1", message, frozen_now + TTL)

        assert collection.find_one_and_update.await_count == 2
        first, second = collection.find_one_and_update.await_args_list
        assert first.args == second.args
        assert [m.content for m in conversation.messages] == ["hi"]

    async def test_second_duplicate_key_propagates(self, repository, collection, frozen_now):
        collection.find_one_and_update.side_effect = DuplicateKeyError("E11000 duplicate key")
        message = ChatMessage(role=MessageRole.USER, content="hi", timestamp=frozen_now)

        with pytest.raises(DuplicateKeyError):
            await repository.append_message(USER_ID, "c1", message, frozen_now + TTL)

        assert collection.find_one_and_update.await_count == 2

    async def test_touch_or_create_retries_once(self, repository, collection, frozen_now):
        stored = ChatConversation.create(USER_ID, "c1", frozen_now, frozen_now + TTL)
        collection.find_one_and_update.side_effect = [DuplicateKeyError("E11000 duplicate key"), stored.to_dict()]

        conversation = await repository.touch_or_create(USER_ID, "c1", frozen_now, frozen_now + TTL)

        assert conversation.conversation_id == "c1"
        assert collection.find_one_and_update.await_count == 2
