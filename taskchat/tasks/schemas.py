"""
TaskChat - Task Schemas

Pydantic models for task-store requests issued by the chat dispatcher.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from taskchat.tasks.enums import TaskStatus, TaskPriority


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""

    title: str = Field(min_length=1, max_length=500, description="Task title")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    description: Optional[str] = Field(default=None, max_length=5000, description="Task description")
    due_date: Optional[datetime] = Field(default=None, description="Task due date")


class TaskUpdateRequest(BaseModel):
    """Request model for updating a task. Unset fields are left untouched."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=500, description="Task title")
    status: Optional[TaskStatus] = Field(default=None, description="Task status")
    priority: Optional[TaskPriority] = Field(default=None, description="Task priority")
    description: Optional[str] = Field(default=None, max_length=5000, description="Task description")
    due_date: Optional[datetime] = Field(default=None, description="Task due date")
