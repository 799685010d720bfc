"""
TaskChat - Conversation Repository

Repository pattern for transcript storage.
Includes MongoDB implementation for runtime and in-memory implementation for tests.
"""

from abc import ABC, abstractmethod
import logging
from datetime import datetime
from typing import List, Optional
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from taskchat.conversations.models import ChatConversation, ChatMessage

logger = logging.getLogger(__name__)


class ConversationRepositoryInterface(ABC):
    """
    Abstract interface for conversation repository.

    Conversations are keyed by (user_id, conversation_id). Writes are
    single-document atomic updates so the expiry sweep never blocks appends.
    """

    @abstractmethod
    async def get(self, user_id: str, conversation_id: str) -> Optional[ChatConversation]:
        pass

    @abstractmethod
    async def touch_or_create(
        self,
        user_id: str,
        conversation_id: str,
        now: datetime,
        expires_at: datetime,
    ) -> ChatConversation:
        """Return the conversation, creating it if absent, with expires_at reset."""
        pass

    @abstractmethod
    async def append_message(
        self,
        user_id: str,
        conversation_id: str,
        message: ChatMessage,
        expires_at: datetime,
    ) -> ChatConversation:
        """Append to the conversation, creating it if absent."""
        pass

    @abstractmethod
    async def list_active_by_user(self, user_id: str, now: datetime) -> List[ChatConversation]:
        pass

    @abstractmethod
    async def delete(self, user_id: str, conversation_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        pass


class ConversationRepository(ConversationRepositoryInterface):
    """MongoDB implementation of the conversation repository."""

    COLLECTION_NAME = "chat_conversations"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            [("user_id", ASCENDING), ("conversation_id", ASCENDING)],
            unique=True,
        )
        await self.collection.create_index("expires_at")

    @staticmethod
    def _on_insert(user_id: str, conversation_id: str, now: datetime) -> dict:
        return {
            "_id": str(uuid.uuid4()),
            "user_id": user_id,
            "conversation_id": conversation_id,
            "created_at": now,
        }

    async def _upsert(self, user_id: str, conversation_id: str, update: dict) -> dict:
        """
        Upsert one conversation and return the updated document.

        Two concurrent first writes can both try the insert; the loser hits
        the unique index. The document exists by then, so one retry applies
        the update to it.
        """
        query = {"user_id": user_id, "conversation_id": conversation_id}
        try:
            return await self.collection.find_one_and_update(
                query, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            logger.info(f"Concurrent create of conversation {conversation_id} for user {user_id}, retrying")
            return await self.collection.find_one_and_update(
                query, update, upsert=True, return_document=ReturnDocument.AFTER
            )

    async def get(self, user_id: str, conversation_id: str) -> Optional[ChatConversation]:
        doc = await self.collection.find_one(
            {"user_id": user_id, "conversation_id": conversation_id}
        )
        if doc is None:
            return None
        return ChatConversation.from_dict(doc)

    async def touch_or_create(
        self,
        user_id: str,
        conversation_id: str,
        now: datetime,
        expires_at: datetime,
    ) -> ChatConversation:
        on_insert = self._on_insert(user_id, conversation_id, now)
        on_insert["messages"] = []
        on_insert["updated_at"] = now
        doc = await self._upsert(
            user_id,
            conversation_id,
            {"$set": {"expires_at": expires_at}, "$setOnInsert": on_insert},
        )
        return ChatConversation.from_dict(doc)

    async def append_message(
        self,
        user_id: str,
        conversation_id: str,
        message: ChatMessage,
        expires_at: datetime,
    ) -> ChatConversation:
        doc = await self._upsert(
            user_id,
            conversation_id,
            {
                "$push": {"messages": message.to_dict()},
                "$set": {"updated_at": message.timestamp, "expires_at": expires_at},
                "$setOnInsert": self._on_insert(user_id, conversation_id, message.timestamp),
            },
        )
        return ChatConversation.from_dict(doc)

    async def list_active_by_user(self, user_id: str, now: datetime) -> List[ChatConversation]:
        cursor = self.collection.find(
            {"user_id": user_id, "expires_at": {"$gt": now}}
        ).sort("updated_at", -1)
        conversations: List[ChatConversation] = []
        async for doc in cursor:
            conversations.append(ChatConversation.from_dict(doc))
        return conversations

    async def delete(self, user_id: str, conversation_id: str) -> bool:
        result = await self.collection.delete_one(
            {"user_id": user_id, "conversation_id": conversation_id}
        )
        return result.deleted_count > 0

    async def delete_expired(self, now: datetime) -> int:
        result = await self.collection.delete_many({"expires_at": {"$lte": now}})
        return result.deleted_count


class InMemoryConversationRepository(ConversationRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(self):
        self._conversations: dict[tuple[str, str], ChatConversation] = {}

    def clear(self) -> None:
        self._conversations.clear()

    async def get(self, user_id: str, conversation_id: str) -> Optional[ChatConversation]:
        return self._conversations.get((user_id, conversation_id))

    async def touch_or_create(
        self,
        user_id: str,
        conversation_id: str,
        now: datetime,
        expires_at: datetime,
    ) -> ChatConversation:
        key = (user_id, conversation_id)
        conversation = self._conversations.get(key)
        if conversation is None:
            conversation = ChatConversation.create(user_id, conversation_id, now, expires_at)
            self._conversations[key] = conversation
        else:
            conversation.expires_at = expires_at
        return conversation

    async def append_message(
        self,
        user_id: str,
        conversation_id: str,
        message: ChatMessage,
        expires_at: datetime,
    ) -> ChatConversation:
        conversation = await self.touch_or_create(
            user_id, conversation_id, message.timestamp, expires_at
        )
        conversation.add_message(message, expires_at)
        return conversation

    async def list_active_by_user(self, user_id: str, now: datetime) -> List[ChatConversation]:
        results = [
            c for c in self._conversations.values()
            if c.user_id == user_id and not c.is_expired(now)
        ]
        results.sort(key=lambda c: c.updated_at, reverse=True)
        return results

    async def delete(self, user_id: str, conversation_id: str) -> bool:
        return self._conversations.pop((user_id, conversation_id), None) is not None

    async def delete_expired(self, now: datetime) -> int:
        expired = [key for key, c in self._conversations.items() if c.is_expired(now)]
        for key in expired:
            del self._conversations[key]
        return len(expired)
