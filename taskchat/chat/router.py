"""
TaskChat - Chat Router

Chat endpoints: messages, file uploads, confirmation of proposed tasks,
and transcript access. All endpoints except /chat/health are user-scoped
via X-User-Id.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from taskchat.config import settings
from taskchat.database import get_database
from taskchat.chat.constants import GENERIC_ERROR_REPLY, FILE_ERROR_REPLY, CONFIRM_ERROR_REPLY
from taskchat.chat.dependencies import CurrentUserId
from taskchat.chat.dispatcher import ChatDispatcher
from taskchat.chat.llm import InferenceClient, InferenceError
from taskchat.chat.schemas import ChatRequest, ChatResponse, FileUploadRequest, ConfirmTasksRequest
from taskchat.conversations.repository import ConversationRepository, ConversationRepositoryInterface
from taskchat.conversations.schemas import ConversationResponse, ConversationDeleteResponse
from taskchat.conversations.service import ConversationService
from taskchat.tasks.repository import TaskRepository, TaskRepositoryInterface
from taskchat.tasks.service import TaskService

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/chat", tags=["Chat"])


# Inference client instance (set at startup, can be overridden in tests)
_inference_client: Optional[InferenceClient] = None


def get_inference_client() -> Optional[InferenceClient]:
    """Get the process-wide inference client, or None when not configured."""
    return _inference_client


def set_inference_client(client: Optional[InferenceClient]) -> None:
    """Set the inference client (at startup, or for testing)."""
    global _inference_client
    _inference_client = client


async def get_task_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> TaskRepositoryInterface:
    """Dependency to get task repository instance."""
    return TaskRepository(db)


async def get_task_service(
    repository: Annotated[TaskRepositoryInterface, Depends(get_task_repository)]
) -> TaskService:
    """Dependency to get task service instance."""
    return TaskService(repository)


async def get_conversation_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> ConversationRepositoryInterface:
    """Dependency to get conversation repository instance."""
    return ConversationRepository(db)


async def get_conversation_service(
    repository: Annotated[ConversationRepositoryInterface, Depends(get_conversation_repository)]
) -> ConversationService:
    """Dependency to get conversation service instance."""
    return ConversationService(repository)


async def get_chat_dispatcher(
    task_service: Annotated[TaskService, Depends(get_task_service)],
    conversation_service: Annotated[ConversationService, Depends(get_conversation_service)],
) -> ChatDispatcher:
    """Dependency to get a per-request dispatcher."""
    return ChatDispatcher(task_service, conversation_service, get_inference_client())


@router.post("/message", response_model=ChatResponse)
async def send_message(
    request: ChatRequest,
    user_id: CurrentUserId,
    dispatcher: Annotated[ChatDispatcher, Depends(get_chat_dispatcher)],
) -> ChatResponse:
    """
    Process a chat message.

    Always answers 200 with a reply; failures degrade to a generic message.
    """
    try:
        logger.info(f"Processing message for user {user_id}: {request.message[:50]}...")
        return await dispatcher.process_message(user_id, request.message, request.conversation_id)
    except Exception as e:
        logger.error(f"Unexpected error processing message: {e}", exc_info=True)
        return ChatResponse(
            response_text=GENERIC_ERROR_REPLY,
            conversation_id=ConversationService.resolve_conversation_id(user_id, request.conversation_id),
        )


@router.post("/upload", response_model=ChatResponse)
async def upload_file(
    request: FileUploadRequest,
    user_id: CurrentUserId,
    dispatcher: Annotated[ChatDispatcher, Depends(get_chat_dispatcher)],
) -> ChatResponse:
    """
    Propose tasks from uploaded file text.

    Nothing is written to the task store; submit the proposals to
    /chat/confirm-tasks to create them.
    """
    try:
        logger.info(f"Processing upload {request.file_name!r} for user {user_id}")
        return await dispatcher.process_file_upload(
            user_id, request.text, request.file_name, request.conversation_id
        )
    except Exception as e:
        logger.error(f"Unexpected error processing upload: {e}", exc_info=True)
        return ChatResponse(
            response_text=FILE_ERROR_REPLY,
            conversation_id=ConversationService.resolve_conversation_id(user_id, request.conversation_id),
        )


@router.post("/confirm-tasks", response_model=ChatResponse)
async def confirm_tasks(
    request: ConfirmTasksRequest,
    user_id: CurrentUserId,
    dispatcher: Annotated[ChatDispatcher, Depends(get_chat_dispatcher)],
) -> ChatResponse:
    """Create previously proposed tasks."""
    try:
        return await dispatcher.confirm_task_creation(user_id, request.tasks, request.conversation_id)
    except Exception as e:
        logger.error(f"Unexpected error confirming tasks: {e}", exc_info=True)
        return ChatResponse(
            response_text=CONFIRM_ERROR_REPLY,
            conversation_id=ConversationService.resolve_conversation_id(user_id, request.conversation_id),
        )


@router.get("/conversation/main", response_model=ConversationResponse)
async def get_main_conversation(
    user_id: CurrentUserId,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
) -> ConversationResponse:
    """Get (or lazily create) the user's main conversation. Extends its expiry."""
    conversation = await service.get_main_conversation(user_id)
    return ConversationResponse.from_model(conversation)


@router.get("/conversation/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str,
    user_id: CurrentUserId,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
) -> ConversationResponse:
    """
    Get a conversation by ID.

    Returns 404 if it doesn't exist or belongs to another user.
    """
    conversation = await service.get_conversation(user_id, conversation_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )
    return ConversationResponse.from_model(conversation)


@router.get("/conversations", response_model=List[ConversationResponse])
async def list_conversations(
    user_id: CurrentUserId,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
) -> List[ConversationResponse]:
    """List the user's non-expired conversations, most recently active first."""
    conversations = await service.list_user_conversations(user_id)
    return [ConversationResponse.from_model(c) for c in conversations]


@router.delete("/conversation/{conversation_id}", response_model=ConversationDeleteResponse)
async def delete_conversation(
    conversation_id: str,
    user_id: CurrentUserId,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
) -> ConversationDeleteResponse:
    """
    Delete a conversation by ID.

    Returns 404 if it doesn't exist or belongs to another user.
    """
    deleted = await service.delete_conversation(user_id, conversation_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )
    return ConversationDeleteResponse(
        message="Conversation deleted successfully",
        conversation_id=conversation_id,
    )


@router.get("/health")
async def chat_health() -> dict:
    """
    Chat health including a live round-trip to the completion service.

    inference_status is UP, DOWN (the call failed), ERROR (unexpected
    failure) or NOT_CONFIGURED (no LLM_API_KEY). Anything but UP reports
    the chat as DEGRADED.
    """
    result = {
        "service": settings.APP_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    client = get_inference_client()
    if client is None:
        result["inference_status"] = "NOT_CONFIGURED"
        result["status"] = "DEGRADED"
        return result

    try:
        await client.check_health()
        result["inference_status"] = "UP"
        result["status"] = "UP"
    except InferenceError as e:
        logger.warning(f"Inference health check failed: {e}")
        result["inference_status"] = "DOWN"
        result["status"] = "DEGRADED"
    except Exception as e:
        logger.error(f"Unexpected error during inference health check: {e}", exc_info=True)
        result["inference_status"] = "ERROR"
        result["status"] = "DEGRADED"
        result["error"] = str(e)
    return result
