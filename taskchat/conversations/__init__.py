"""
TaskChat - Conversations Module

Per-(user, conversation) chat transcripts with a sliding expiry.
"""

from taskchat.conversations.service import ConversationService
from taskchat.conversations.scheduler import ConversationCleanupScheduler

__all__ = ["ConversationService", "ConversationCleanupScheduler"]
