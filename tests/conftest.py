"""
TaskChat - Test Configuration

Shared fixtures for CI-safe testing without MongoDB or a completion service.
"""

import json
import pytest
from datetime import datetime, timezone, timedelta
from typing import List, Optional

from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from taskchat.main import app
from taskchat.database import get_database
from taskchat.chat.dispatcher import ChatDispatcher
from taskchat.chat.router import (
    get_task_repository,
    get_conversation_repository,
    set_inference_client,
)
from taskchat.conversations.repository import InMemoryConversationRepository
from taskchat.conversations.service import ConversationService
from taskchat.tasks.enums import TaskStatus, TaskPriority
from taskchat.tasks.models import Task
from taskchat.tasks.repository import InMemoryTaskRepository
from taskchat.tasks.service import TaskService


USER_ID = "user-1"
OTHER_USER_ID = "user-2"


# Time control fixtures for deterministic expiry testing
class FrozenClock:
    """A clock that returns a fixed time for deterministic testing."""

    def __init__(self, frozen_time: datetime):
        self._frozen_time = frozen_time

    def __call__(self) -> datetime:
        return self._frozen_time

    def set(self, new_time: datetime) -> None:
        self._frozen_time = new_time

    def advance(self, delta: timedelta) -> None:
        self._frozen_time += delta


class FakeInferenceClient:
    """
    Stand-in for InferenceClient.

    Each queued item is either a completion string or an exception to raise.
    When the queue is empty, `default` is returned.
    """

    def __init__(self, default: str = '{"action": "GENERAL_HELP", "response": "How can I help?"}'):
        self.default = default
        self.queue: List[object] = []
        self.prompts: List[str] = []
        self.closed = False

    def reply_with(self, payload) -> None:
        """Queue a completion. Dicts are serialized to JSON."""
        if isinstance(payload, dict):
            payload = json.dumps(payload)
        self.queue.append(payload)

    def fail_with(self, error: Exception) -> None:
        self.queue.append(error)

    async def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self.queue.pop(0) if self.queue else self.default
        if isinstance(item, Exception):
            raise item
        return item

    async def classify_message(self, message: str, today=None) -> str:
        return await self._next(message)

    async def extract_tasks(self, text: str) -> str:
        return await self._next(text)

    async def check_health(self) -> None:
        await self._next("health")

    async def close(self) -> None:
        self.closed = True


def make_task(
    title: str,
    ticket_number: int = 1,
    owner_id: str = USER_ID,
    status: TaskStatus = TaskStatus.TODO,
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: Optional[datetime] = None,
) -> Task:
    return Task.create(
        owner_id=owner_id,
        ticket_number=ticket_number,
        title=title,
        status=status,
        priority=priority,
        due_date=due_date,
    )


@pytest.fixture
def frozen_now() -> datetime:
    """A fixed 'now' time for testing."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock(frozen_now) -> FrozenClock:
    """A controllable clock for expiry testing."""
    return FrozenClock(frozen_now)


@pytest.fixture
def task_repository():
    """Provide a fresh in-memory task repository for each test."""
    return InMemoryTaskRepository()


@pytest.fixture
def conversation_repository():
    """Provide a fresh in-memory conversation repository for each test."""
    return InMemoryConversationRepository()


@pytest.fixture
def task_service(task_repository) -> TaskService:
    return TaskService(task_repository)


@pytest.fixture
def conversation_service(conversation_repository, frozen_clock) -> ConversationService:
    return ConversationService(conversation_repository, clock=frozen_clock)


@pytest.fixture
def llm() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest.fixture
def dispatcher(task_service, conversation_service, llm, frozen_clock) -> ChatDispatcher:
    return ChatDispatcher(task_service, conversation_service, llm, clock=frozen_clock)


@pytest.fixture
def seed_tasks(task_repository):
    """Insert tasks for USER_ID in the given order. Returns the created tasks."""

    async def _seed(*titles: str, status: TaskStatus = TaskStatus.TODO) -> List[Task]:
        created = []
        for title in titles:
            ticket = await task_repository.next_ticket_number()
            task = make_task(title, ticket_number=ticket, status=status)
            await task_repository.create(task)
            created.append(task)
        return created

    return _seed


@pytest.fixture
def client(task_repository, conversation_repository, llm):
    """Create test client with in-memory repositories and a fake inference client."""

    async def override_get_task_repository():
        return task_repository

    async def override_get_conversation_repository():
        return conversation_repository

    async def override_get_database():
        return MagicMock()

    app.dependency_overrides[get_task_repository] = override_get_task_repository
    app.dependency_overrides[get_conversation_repository] = override_get_conversation_repository
    app.dependency_overrides[get_database] = override_get_database
    set_inference_client(llm)

    yield TestClient(app)

    # Clean up overrides after test
    app.dependency_overrides.clear()
    set_inference_client(None)


@pytest.fixture
def user_headers():
    return {"X-User-Id": USER_ID}


@pytest.fixture
def other_user_headers():
    return {"X-User-Id": OTHER_USER_ID}
