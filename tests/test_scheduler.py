"""
TaskChat - Conversation Cleanup Scheduler Tests
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from taskchat.config import settings
from taskchat.conversations.models import MessageRole
from taskchat.conversations.scheduler import ConversationCleanupScheduler
from tests.conftest import USER_ID


class TestConversationCleanupScheduler:

    async def test_run_once_sweeps_expired(self, conversation_service, frozen_clock):
        await conversation_service.append(USER_ID, None, MessageRole.USER, "hi")
        frozen_clock.advance(timedelta(days=8))
        scheduler = ConversationCleanupScheduler(conversation_service)

        assert await scheduler.run_once() == 1

    async def test_run_once_logs_and_swallows_errors(self, caplog):
        service = MagicMock()
        service.cleanup_expired = AsyncMock(side_effect=RuntimeError("mongo down"))
        scheduler = ConversationCleanupScheduler(service)

        with caplog.at_level("ERROR"):
            assert await scheduler.run_once() == 0

        assert any("conversation cleanup" in r.getMessage() for r in caplog.records)

    async def test_loop_continues_after_failure(self, monkeypatch):
        monkeypatch.setattr(settings, "CONVERSATION_CLEANUP_ENABLED", True)
        service = MagicMock()
        service.cleanup_expired = AsyncMock(side_effect=[RuntimeError("boom"), 2, 0, 0, 0, 0, 0, 0])
        scheduler = ConversationCleanupScheduler(service, interval_seconds=0.01)

        await scheduler.start()
        for _ in range(100):
            if service.cleanup_expired.await_count >= 2:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()

        assert service.cleanup_expired.await_count >= 2
        assert not scheduler.running

    async def test_disabled_via_config(self, monkeypatch):
        monkeypatch.setattr(settings, "CONVERSATION_CLEANUP_ENABLED", False)
        scheduler = ConversationCleanupScheduler(MagicMock())

        await scheduler.start()

        assert not scheduler.running
        await scheduler.stop()

    async def test_start_is_idempotent(self, monkeypatch):
        monkeypatch.setattr(settings, "CONVERSATION_CLEANUP_ENABLED", True)
        service = MagicMock()
        service.cleanup_expired = AsyncMock(return_value=0)
        scheduler = ConversationCleanupScheduler(service, interval_seconds=60)

        await scheduler.start()
        task = scheduler._task
        await scheduler.start()

        assert scheduler._task is task
        await scheduler.stop()
