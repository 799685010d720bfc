"""
TaskChat - Database Module

One Motor client per process, shared by the task store and the
conversation transcripts. Datetimes come back timezone-aware (UTC), which
the expiry comparisons rely on.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from taskchat.config import settings
from taskchat.conversations.repository import ConversationRepository
from taskchat.tasks.repository import TaskRepository

logger = logging.getLogger(__name__)


class Database:
    """Motor connection plus collection setup for the chat backend."""

    def __init__(self, uri: str | None = None, name: str | None = None):
        self.uri = uri or settings.MONGODB_URI
        self.name = name or settings.MONGODB_DATABASE
        self.client: AsyncIOMotorClient | None = None
        self.db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        self.client = AsyncIOMotorClient(
            self.uri,
            tz_aware=True,
            serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        )
        self.db = self.client[self.name]
        logger.info(f"Connected to MongoDB database '{self.name}'")

    async def ensure_indexes(self) -> None:
        """Create the task and conversation indexes. Safe to repeat."""
        db = self.get_database()
        await TaskRepository(db).ensure_indexes()
        await ConversationRepository(db).ensure_indexes()
        logger.info("MongoDB indexes ensured for tasks and conversations")

    async def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            self.db = None

    def get_database(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.db


# Singleton database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get the database instance."""
    return database.get_database()
