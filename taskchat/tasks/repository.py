"""
TaskChat - Task Repository

Repository pattern for task data access.
Includes MongoDB implementation for runtime and in-memory implementation for tests.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument

from taskchat.tasks.models import Task
from taskchat.tasks.enums import TaskStatus, TaskPriority


class TaskRepositoryInterface(ABC):
    """
    Abstract interface for task repository.

    Enables swapping implementations (MongoDB for runtime, in-memory for tests).
    All operations are scoped by owner_id to enforce ownership isolation.
    Listing returns tasks in store order (ticket number ascending).
    """

    @abstractmethod
    async def create(self, task: Task) -> Task:
        pass

    @abstractmethod
    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        pass

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
    ) -> List[Task]:
        pass

    @abstractmethod
    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        pass

    @abstractmethod
    async def update_status_where_not(
        self,
        owner_id: str,
        status: TaskStatus,
    ) -> int:
        """Set `status` on every owned task not already in it. Returns the number changed."""
        pass

    @abstractmethod
    async def delete(self, task_id: str, owner_id: str) -> bool:
        pass

    @abstractmethod
    async def next_ticket_number(self) -> int:
        pass


class TaskRepository(TaskRepositoryInterface):
    """
    MongoDB implementation of the task repository.

    All queries are scoped by owner_id to enforce ownership isolation.
    """

    COLLECTION_NAME = "tasks"
    COUNTERS_COLLECTION_NAME = "counters"
    TICKET_SEQUENCE = "task_ticket"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db[self.COLLECTION_NAME]
        self.counters = db[self.COUNTERS_COLLECTION_NAME]

    async def ensure_indexes(self) -> None:
        """Owner-scoped listing filters on owner_id and sorts by ticket_number."""
        await self.collection.create_index(
            [("owner_id", ASCENDING), ("ticket_number", ASCENDING)]
        )

    async def create(self, task: Task) -> Task:
        await self.collection.insert_one(task.to_dict())
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        doc = await self.collection.find_one({"_id": task_id, "owner_id": owner_id})
        if doc is None:
            return None
        return Task.from_dict(doc)

    async def list_by_owner(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
    ) -> List[Task]:
        query: dict = {"owner_id": owner_id}
        if status is not None:
            query["status"] = status.value

        cursor = self.collection.find(query).sort("ticket_number", 1)
        tasks: List[Task] = []
        async for doc in cursor:
            tasks.append(Task.from_dict(doc))
        return tasks

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        updates["updated_at"] = datetime.now(timezone.utc)

        result = await self.collection.find_one_and_update(
            {"_id": task_id, "owner_id": owner_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        if result is None:
            return None
        return Task.from_dict(result)

    async def update_status_where_not(
        self,
        owner_id: str,
        status: TaskStatus,
    ) -> int:
        result = await self.collection.update_many(
            {"owner_id": owner_id, "status": {"$ne": status.value}},
            {"$set": {"status": status.value, "updated_at": datetime.now(timezone.utc)}},
        )
        return result.modified_count

    async def delete(self, task_id: str, owner_id: str) -> bool:
        result = await self.collection.delete_one({"_id": task_id, "owner_id": owner_id})
        return result.deleted_count > 0

    async def next_ticket_number(self) -> int:
        counter = await self.counters.find_one_and_update(
            {"_id": self.TICKET_SEQUENCE},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]


class InMemoryTaskRepository(TaskRepositoryInterface):
    """
    In-memory implementation for CI-safe testing.
    """

    def __init__(self):
        self._tasks: dict[str, Task] = {}
        self._ticket_seq = 0

    def clear(self) -> None:
        self._tasks.clear()
        self._ticket_seq = 0

    async def create(self, task: Task) -> Task:
        self._tasks[task.id] = task
        return task

    async def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None
        return task

    async def list_by_owner(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
    ) -> List[Task]:
        results = [
            task for task in self._tasks.values()
            if task.owner_id == owner_id and (status is None or task.status == status)
        ]
        results.sort(key=lambda t: t.ticket_number)
        return results

    async def update(self, task_id: str, owner_id: str, updates: dict) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return None

        for key, value in updates.items():
            if key == "status" and value is not None:
                value = TaskStatus(value)
            elif key == "priority" and value is not None:
                value = TaskPriority(value)
            if hasattr(task, key):
                setattr(task, key, value)

        task.updated_at = datetime.now(timezone.utc)
        return task

    async def update_status_where_not(
        self,
        owner_id: str,
        status: TaskStatus,
    ) -> int:
        changed = 0
        now = datetime.now(timezone.utc)
        for task in self._tasks.values():
            if task.owner_id == owner_id and task.status != status:
                task.status = status
                task.updated_at = now
                changed += 1
        return changed

    async def delete(self, task_id: str, owner_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None or task.owner_id != owner_id:
            return False
        del self._tasks[task_id]
        return True

    async def next_ticket_number(self) -> int:
        self._ticket_seq += 1
        return self._ticket_seq
