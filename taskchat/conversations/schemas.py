"""
TaskChat - Conversation Schemas

Pydantic models for transcript API responses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskchat.conversations.models import ChatConversation


class ChatMessageResponse(BaseModel):
    role: str = Field(description="user or assistant")
    content: str = Field(description="Message text")
    timestamp: datetime = Field(description="When the message was appended")
    message_type: str = Field(default="text", description="text or file")
    is_file: bool = Field(default=False, description="Whether the message records an upload")
    file_name: Optional[str] = Field(default=None, description="Uploaded file name")


class ConversationResponse(BaseModel):
    """Response model for a single transcript."""

    id: str = Field(description="Storage ID")
    user_id: str = Field(description="Owner user ID")
    conversation_id: str = Field(description="Conversation ID")
    messages: List[ChatMessageResponse] = Field(description="Messages in append order")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last append timestamp")
    expires_at: datetime = Field(description="Expiry timestamp, pushed out on activity")

    @classmethod
    def from_model(cls, conversation: ChatConversation) -> "ConversationResponse":
        return cls(
            id=conversation.id,
            user_id=conversation.user_id,
            conversation_id=conversation.conversation_id,
            messages=[
                ChatMessageResponse(
                    role=m.role.value,
                    content=m.content,
                    timestamp=m.timestamp,
                    message_type=m.message_type,
                    is_file=m.is_file,
                    file_name=m.file_name,
                )
                for m in conversation.messages
            ],
            created_at=conversation.created_at,
            updated_at=conversation.updated_at,
            expires_at=conversation.expires_at,
        )


class ConversationDeleteResponse(BaseModel):
    """Response model for conversation deletion."""

    message: str = Field(description="Success message")
    conversation_id: str = Field(description="Deleted conversation ID")
