"""
TaskChat - Task Service

Business logic for task-store operations used by the chat dispatcher.
"""

import logging
from typing import Optional, List

from taskchat.tasks.models import Task
from taskchat.tasks.repository import TaskRepositoryInterface
from taskchat.tasks.enums import TaskStatus
from taskchat.tasks.schemas import TaskCreateRequest, TaskUpdateRequest

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """Raised when a task does not exist or belongs to another owner."""


class TaskService:
    """Service layer for task business logic."""

    def __init__(self, repository: TaskRepositoryInterface):
        self.repository = repository

    async def create_task(self, owner_id: str, request: TaskCreateRequest) -> Task:
        """Create a new task for the owner with the next ticket number."""
        ticket_number = await self.repository.next_ticket_number()
        task = Task.create(
            owner_id=owner_id,
            ticket_number=ticket_number,
            title=request.title,
            status=request.status,
            priority=request.priority,
            description=request.description,
            due_date=request.due_date,
        )
        await self.repository.create(task)
        logger.info(f"Created task {task.id} (#{ticket_number}) for user {owner_id}")
        return task

    async def get_task(self, task_id: str, owner_id: str) -> Optional[Task]:
        """Get a task by ID, scoped to owner."""
        return await self.repository.get_by_id(task_id, owner_id)

    async def list_tasks(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
    ) -> List[Task]:
        """List tasks for owner in store order."""
        return await self.repository.list_by_owner(owner_id=owner_id, status=status)

    async def update_task(
        self,
        task_id: str,
        owner_id: str,
        request: TaskUpdateRequest,
    ) -> Task:
        """
        Apply a partial update, scoped to owner.

        Only fields explicitly set on the request are written.

        Raises:
            TaskNotFoundError: If the task does not exist for this owner
        """
        updates = {}
        for key, value in request.model_dump(exclude_unset=True).items():
            if value is None and key in ("title", "status", "priority"):
                continue
            if key in ("status", "priority") and value is not None:
                value = value.value
            updates[key] = value

        if not updates:
            task = await self.repository.get_by_id(task_id, owner_id)
        else:
            task = await self.repository.update(task_id, owner_id, updates)

        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    async def mark_all_complete(self, owner_id: str) -> int:
        """Mark every task that is not DONE as DONE in one batch. Returns the count changed."""
        count = await self.repository.update_status_where_not(owner_id, TaskStatus.DONE)
        logger.info(f"Bulk-completed {count} tasks for user {owner_id}")
        return count

    async def delete_task(self, task_id: str, owner_id: str) -> None:
        """
        Delete a task, scoped to owner.

        Raises:
            TaskNotFoundError: If the task does not exist for this owner
        """
        deleted = await self.repository.delete(task_id, owner_id)
        if not deleted:
            raise TaskNotFoundError(f"Task {task_id} not found")
