"""
TaskChat - Task Enums

Enums for task-related fields. Values are the persisted wire values.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Task status values."""
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    # Proposed from a file upload, not yet confirmed
    PENDING = "PENDING"


class TaskPriority(str, Enum):
    """Task priority levels."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
