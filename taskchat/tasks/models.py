"""
TaskChat - Task Models

Internal task model for database operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid

from taskchat.tasks.enums import TaskStatus, TaskPriority


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Task:
    """Task entity for database storage."""

    id: str
    owner_id: str
    ticket_number: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(
        cls,
        owner_id: str,
        ticket_number: int,
        title: str,
        status: TaskStatus = TaskStatus.TODO,
        priority: TaskPriority = TaskPriority.MEDIUM,
        description: Optional[str] = None,
        due_date: Optional[datetime] = None,
    ) -> "Task":
        """Create a new task with generated ID."""
        now = _utcnow()
        return cls(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            ticket_number=ticket_number,
            title=title,
            status=status,
            priority=priority,
            description=description,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> dict:
        """Convert task to dictionary for MongoDB storage."""
        return {
            "_id": self.id,
            "owner_id": self.owner_id,
            "ticket_number": self.ticket_number,
            "title": self.title,
            "status": self.status.value,
            "priority": self.priority.value,
            "description": self.description,
            "due_date": self.due_date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create task from MongoDB document."""
        return cls(
            id=data["_id"],
            owner_id=data["owner_id"],
            ticket_number=data["ticket_number"],
            title=data["title"],
            status=TaskStatus(data["status"]),
            priority=TaskPriority(data["priority"]),
            description=data.get("description"),
            due_date=data.get("due_date"),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )
