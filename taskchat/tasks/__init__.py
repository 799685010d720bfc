"""
TaskChat - Task Store Module

Owner-scoped task storage used by the chat dispatcher.
"""

from taskchat.tasks.repository import TaskRepositoryInterface
from taskchat.tasks.service import TaskService

__all__ = ["TaskRepositoryInterface", "TaskService"]
