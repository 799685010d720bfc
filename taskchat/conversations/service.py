"""
TaskChat - Conversation Service

Transcript persistence for the chat dispatcher.

Every read through get_or_create and every append pushes expires_at to
now + TTL, so an active conversation never expires. Expired transcripts
are removed only by cleanup_expired (run by ConversationCleanupScheduler)
or by explicit deletion.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Callable, List, Optional

from taskchat.config import settings
from taskchat.conversations.models import (
    ChatConversation,
    ChatMessage,
    MessageRole,
    main_conversation_id,
)
from taskchat.conversations.repository import ConversationRepositoryInterface

logger = logging.getLogger(__name__)


class ConversationService:
    """Service layer for conversation transcripts."""

    def __init__(
        self,
        repository: ConversationRepositoryInterface,
        clock: Optional[Callable[[], datetime]] = None,
        ttl: Optional[timedelta] = None,
    ):
        """
        Initialize the conversation service.

        Args:
            repository: Conversation repository implementation
            clock: Optional clock function for testing (returns current datetime)
            ttl: Sliding lifetime of a conversation (defaults to CONVERSATION_TTL_DAYS)
        """
        self.repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.ttl = ttl or timedelta(days=settings.CONVERSATION_TTL_DAYS)

    def _now(self) -> datetime:
        """Get current time using the configured clock."""
        return self._clock()

    @staticmethod
    def resolve_conversation_id(user_id: str, conversation_id: Optional[str]) -> str:
        """Blank conversation ids map to the user's main conversation."""
        if conversation_id is None or not conversation_id.strip():
            return main_conversation_id(user_id)
        return conversation_id.strip()

    async def get_or_create(
        self,
        user_id: str,
        conversation_id: Optional[str] = None,
    ) -> ChatConversation:
        """Fetch or lazily create a conversation, extending its expiry."""
        conversation_id = self.resolve_conversation_id(user_id, conversation_id)
        now = self._now()
        return await self.repository.touch_or_create(
            user_id, conversation_id, now, now + self.ttl
        )

    async def get_main_conversation(self, user_id: str) -> ChatConversation:
        return await self.get_or_create(user_id, main_conversation_id(user_id))

    async def append(
        self,
        user_id: str,
        conversation_id: Optional[str],
        role: MessageRole,
        content: str,
    ) -> ChatConversation:
        """Append a text message to the transcript."""
        conversation_id = self.resolve_conversation_id(user_id, conversation_id)
        now = self._now()
        message = ChatMessage(role=MessageRole(role), content=content, timestamp=now)
        return await self.repository.append_message(
            user_id, conversation_id, message, now + self.ttl
        )

    async def append_file_message(
        self,
        user_id: str,
        conversation_id: Optional[str],
        content: str,
        file_name: Optional[str],
    ) -> ChatConversation:
        """Record an uploaded file as a user message."""
        conversation_id = self.resolve_conversation_id(user_id, conversation_id)
        now = self._now()
        message = ChatMessage.file(content, file_name, now)
        return await self.repository.append_message(
            user_id, conversation_id, message, now + self.ttl
        )

    async def get_conversation(
        self,
        user_id: str,
        conversation_id: str,
    ) -> Optional[ChatConversation]:
        """Owner-scoped lookup. Does not extend expiry."""
        return await self.repository.get(user_id, conversation_id)

    async def list_user_conversations(self, user_id: str) -> List[ChatConversation]:
        """Conversations that have not expired yet, most recently active first."""
        return await self.repository.list_active_by_user(user_id, self._now())

    async def delete_conversation(self, user_id: str, conversation_id: str) -> bool:
        deleted = await self.repository.delete(user_id, conversation_id)
        if deleted:
            logger.info(f"Deleted conversation {conversation_id} for user {user_id}")
        return deleted

    async def cleanup_expired(self) -> int:
        """Delete every conversation whose expires_at has passed."""
        count = await self.repository.delete_expired(self._now())
        if count:
            logger.info(f"Cleaned up {count} expired conversations")
        return count
