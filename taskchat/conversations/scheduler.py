import asyncio
import logging

from taskchat.config import settings
from taskchat.conversations.service import ConversationService

logger = logging.getLogger(__name__)


class ConversationCleanupScheduler:
    """Background scheduler that sweeps expired conversations."""

    def __init__(self, service: ConversationService, interval_seconds: float | None = None):
        self.service = service
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.CONVERSATION_CLEANUP_INTERVAL_SECONDS
        )
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler background task."""
        if self._running:
            return

        if not settings.CONVERSATION_CLEANUP_ENABLED:
            logger.info("Conversation cleanup scheduler is disabled via config")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Conversation cleanup scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler background task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Conversation cleanup scheduler stopped")

    async def _run_loop(self) -> None:
        """Main scheduler loop."""
        while self._running:
            await self.run_once()

            # Sleep until next run
            await asyncio.sleep(self.interval_seconds)

    async def run_once(self) -> int:
        """Execute one sweep. Failures are logged, never raised."""
        try:
            return await self.service.cleanup_expired()
        except Exception as e:
            logger.error(f"Error during conversation cleanup: {e}", exc_info=True)
            return 0
