"""
TaskChat - Chat Schemas

Pydantic models for chat API endpoints and dispatcher results.
"""

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from taskchat.tasks.enums import TaskStatus, TaskPriority


class ChatRequest(BaseModel):
    """Request model for the message endpoint."""

    message: str = Field(min_length=1, max_length=1000, description="User's chat message")
    conversation_id: Optional[str] = Field(
        default=None,
        description="Conversation to append to (defaults to the user's main conversation)",
    )


class FileUploadRequest(BaseModel):
    """Request model for the upload endpoint. Text is already extracted from the file."""

    text: str = Field(min_length=1, description="Extracted file text")
    file_name: Optional[str] = Field(default=None, max_length=255, description="Original file name")
    conversation_id: Optional[str] = Field(default=None, description="Conversation to append to")


class TaskProposal(BaseModel):
    """A task extracted from an upload. Never persisted until confirmed."""

    title: str = Field(min_length=1, max_length=500, description="Proposed title")
    description: Optional[str] = Field(default=None, description="Proposed description")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Proposed priority")
    due_date: Optional[datetime] = Field(default=None, description="Proposed due date")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Always PENDING for proposals")


class ConfirmTasksRequest(BaseModel):
    """Request model for confirming proposed tasks."""

    tasks: List[TaskProposal] = Field(description="The proposals returned by the upload endpoint")
    conversation_id: Optional[str] = Field(default=None, description="Conversation to append to")


class ChatResponse(BaseModel):
    """Response model shared by every chat entry point."""

    response_text: str = Field(description="Reply shown to the user")
    conversation_id: str = Field(description="Conversation the exchange was recorded in")
    suggested_tasks: Optional[List[TaskProposal]] = Field(
        default=None,
        description="Proposed tasks awaiting confirmation",
    )
    requires_confirmation: bool = Field(default=False, description="Whether suggested_tasks need confirming")
    action: Optional[str] = Field(default=None, description="Follow-up action the client should offer")
