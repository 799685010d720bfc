"""
TaskChat - Action Dispatcher

Maps one classified chat message to at most one task-store operation and
renders the reply. Each message is handled on its own: no intent carries
state into the next message.

Flow per message:
- record the user message in the transcript
- classify (inference client -> parser -> normalizer), or keyword fallback
  when the inference service is unavailable
- resolve the target task for update/delete/complete
- run the handler for the intent, converting store failures into a retry reply
- record the assistant reply

File uploads use a two-phase protocol: process_file_upload only proposes
tasks; nothing is written until confirm_task_creation is called with them.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from taskchat.chat.constants import (
    CLARIFICATION_REPLY,
    CREATE_CLARIFICATION_REPLY,
    STORE_FAILURE_REPLY,
    NO_TASKS_REPLY,
    FILE_NO_TASKS_REPLY,
    FILE_ERROR_REPLY,
    CONFIRM_ERROR_REPLY,
    CONFIRM_PARTIAL_REPLY,
    ADD_EXTRACTED_TASKS_ACTION,
    MAX_FILE_MESSAGE_CHARS,
)
from taskchat.chat.enums import Intent
from taskchat.chat.fallback import keyword_fallback, extract_tasks_by_pattern
from taskchat.chat.llm import (
    InferenceClient,
    InferenceError,
    InferenceAuthError,
    InferenceNotConfiguredError,
    InferenceResponseError,
)
from taskchat.chat.normalizer import ExtractedFields, normalize_fields
from taskchat.chat.parser import RawFields, UnparsedCommand, parse_command, parse_extracted_tasks
from taskchat.chat.resolver import Resolution, resolve_task
from taskchat.chat.schemas import ChatResponse, TaskProposal
from taskchat.conversations.models import MessageRole
from taskchat.conversations.service import ConversationService
from taskchat.tasks.enums import TaskStatus
from taskchat.tasks.models import Task
from taskchat.tasks.schemas import TaskCreateRequest, TaskUpdateRequest
from taskchat.tasks.service import TaskService

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 5000


def clip_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description[:MAX_DESCRIPTION_LENGTH]


def render_task_list(tasks: Sequence[Task]) -> str:
    """Numbered list with status, plus the due date when one is set."""
    lines = []
    for index, task in enumerate(tasks, start=1):
        lines.append(f"{index}. {task.title} ({task.status.value})")
        if task.due_date is not None:
            lines.append(f"   Due: {task.due_date.strftime('%Y-%m-%d')}")
    return "\n".join(lines)


class ChatDispatcher:
    """
    Stateless per-request dispatcher.

    The task store and the conversation store are the system of record;
    the dispatcher keeps nothing between calls.
    """

    def __init__(
        self,
        task_service: TaskService,
        conversation_service: ConversationService,
        llm_client: Optional[InferenceClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            task_service: Owner-scoped task store operations
            conversation_service: Transcript store
            llm_client: Inference client, or None when no credential is configured
            clock: Optional clock function for testing (returns current datetime)
        """
        self.task_service = task_service
        self.conversation_service = conversation_service
        self.llm_client = llm_client
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def process_message(
        self,
        user_id: str,
        message: str,
        conversation_id: Optional[str] = None,
    ) -> ChatResponse:
        """Classify one message, apply it to the task store and reply."""
        conversation_id = self.conversation_service.resolve_conversation_id(user_id, conversation_id)
        await self._record(user_id, conversation_id, MessageRole.USER, message)

        response_text = await self._respond(user_id, message)

        await self._record(user_id, conversation_id, MessageRole.ASSISTANT, response_text)
        return ChatResponse(response_text=response_text, conversation_id=conversation_id)

    async def process_file_upload(
        self,
        user_id: str,
        extracted_text: str,
        file_name: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> ChatResponse:
        """
        Propose tasks found in uploaded file text.

        The proposals are returned with requires_confirmation=True and are
        not written to the task store.
        """
        conversation_id = self.conversation_service.resolve_conversation_id(user_id, conversation_id)
        await self._record_file(user_id, conversation_id, extracted_text, file_name)

        proposals: List[TaskProposal] = []
        try:
            proposals = await self._extract_proposals(extracted_text)
            if proposals:
                response_text = (
                    f"I found {len(proposals)} potential tasks in your file. "
                    "Would you like me to add them to your task list?"
                )
            else:
                response_text = FILE_NO_TASKS_REPLY
        except Exception as e:
            logger.error(f"Error processing uploaded file for user {user_id}: {e}", exc_info=True)
            proposals = []
            response_text = FILE_ERROR_REPLY

        await self._record(user_id, conversation_id, MessageRole.ASSISTANT, response_text)

        if not proposals:
            return ChatResponse(response_text=response_text, conversation_id=conversation_id)
        return ChatResponse(
            response_text=response_text,
            conversation_id=conversation_id,
            suggested_tasks=proposals,
            requires_confirmation=True,
            action=ADD_EXTRACTED_TASKS_ACTION,
        )

    async def confirm_task_creation(
        self,
        user_id: str,
        proposals: Sequence[TaskProposal],
        conversation_id: Optional[str] = None,
    ) -> ChatResponse:
        """Create the confirmed proposals. Titles and descriptions are re-sanitized."""
        conversation_id = self.conversation_service.resolve_conversation_id(user_id, conversation_id)

        created = 0
        try:
            for proposal in proposals:
                fields = normalize_fields(RawFields(
                    title=proposal.title,
                    description=proposal.description,
                    priority=proposal.priority.value,
                ))
                if not fields.title:
                    logger.info(f"Skipping proposal with unusable title for user {user_id}")
                    continue
                await self.task_service.create_task(user_id, TaskCreateRequest(
                    title=fields.title[:MAX_TITLE_LENGTH],
                    description=clip_description(fields.description),
                    priority=fields.priority,
                    due_date=proposal.due_date,
                ))
                created += 1
            response_text = f"Successfully added {created} tasks to your list!"
        except Exception as e:
            logger.error(
                f"Error confirming tasks for user {user_id} after {created} created: {e}",
                exc_info=True,
            )
            if created:
                response_text = CONFIRM_PARTIAL_REPLY.format(created=created, total=len(proposals))
            else:
                response_text = CONFIRM_ERROR_REPLY

        await self._record(user_id, conversation_id, MessageRole.ASSISTANT, response_text)
        return ChatResponse(response_text=response_text, conversation_id=conversation_id)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    async def _respond(self, user_id: str, message: str) -> str:
        if self.llm_client is None:
            logger.warning("Inference client not configured (LLM_API_KEY missing), using keyword fallback")
            return await self._fallback(user_id, message)

        try:
            raw = await self.llm_client.classify_message(message, today=self._clock().date())
        except InferenceNotConfiguredError:
            logger.warning("Inference client not configured (LLM_API_KEY missing), using keyword fallback")
            return await self._fallback(user_id, message)
        except InferenceAuthError as e:
            logger.error(f"Inference service rejected the API key, check LLM_API_KEY: {e}")
            return await self._fallback(user_id, message)
        except InferenceResponseError as e:
            logger.warning(f"Inference service returned an unusable response: {e}")
            return CLARIFICATION_REPLY
        except InferenceError as e:
            logger.warning(f"Inference service unavailable, using keyword fallback: {e}")
            return await self._fallback(user_id, message)

        parsed = parse_command(raw)
        if isinstance(parsed, UnparsedCommand):
            return CLARIFICATION_REPLY

        fields = normalize_fields(parsed.fields)
        logger.info(f"Dispatching {parsed.intent.value} for user {user_id}")
        return await self._dispatch(user_id, parsed.intent, fields, parsed.response)

    async def _fallback(self, user_id: str, message: str) -> str:
        reply = keyword_fallback(message)
        if reply.intent != Intent.LIST_TASKS:
            return reply.text
        try:
            return await self._handle_list_tasks(user_id)
        except Exception as e:
            logger.error(f"Task store failure for user {user_id}: {e}", exc_info=True)
            return STORE_FAILURE_REPLY

    # ------------------------------------------------------------------
    # Intent handlers
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        user_id: str,
        intent: Intent,
        fields: ExtractedFields,
        narrative: str,
    ) -> str:
        try:
            if intent == Intent.CREATE_TASK:
                return await self._handle_create_task(user_id, fields)
            if intent == Intent.LIST_TASKS:
                return await self._handle_list_tasks(user_id)
            if intent == Intent.UPDATE_TASK:
                return await self._handle_update_task(user_id, fields)
            if intent == Intent.DELETE_TASK:
                return await self._handle_delete_task(user_id, fields)
            if intent == Intent.MARK_COMPLETE:
                return await self._handle_mark_complete(user_id, fields)
            if intent == Intent.BULK_MARK_COMPLETE:
                return await self._handle_bulk_mark_complete(user_id)
            return narrative
        except Exception as e:
            logger.error(f"Task store failure handling {intent.value} for user {user_id}: {e}", exc_info=True)
            return STORE_FAILURE_REPLY

    async def _handle_create_task(self, user_id: str, fields: ExtractedFields) -> str:
        if not fields.title:
            return CREATE_CLARIFICATION_REPLY

        task = await self.task_service.create_task(user_id, TaskCreateRequest(
            title=fields.title[:MAX_TITLE_LENGTH],
            description=clip_description(fields.description),
            priority=fields.priority,
            due_date=fields.due_date,
        ))
        return f"✅ I've created the task '{task.title}' for you!"

    async def _handle_list_tasks(self, user_id: str) -> str:
        tasks = await self.task_service.list_tasks(user_id)
        if not tasks:
            return NO_TASKS_REPLY
        return "Here are your current tasks:\n\n" + render_task_list(tasks)

    async def _handle_update_task(self, user_id: str, fields: ExtractedFields) -> str:
        resolution, tasks = await self._resolve(user_id, fields)
        if not resolution.found:
            return self._not_found_reply(fields, tasks)

        task = resolution.task
        updates = {}
        # The title is the target when no search query was given, so only
        # treat it as a new title when a separate query identified the task
        if fields.search_query and fields.title:
            updates["title"] = fields.title[:MAX_TITLE_LENGTH]
        if fields.description is not None:
            updates["description"] = clip_description(fields.description)
        if fields.priority_given:
            updates["priority"] = fields.priority
        if fields.due_date is not None:
            updates["due_date"] = fields.due_date

        if not updates:
            return (
                f"What would you like to change about '{task.title}'? "
                "You can give a new title, description, priority or due date."
            )

        updated = await self.task_service.update_task(task.id, user_id, TaskUpdateRequest(**updates))
        return f"✅ I've updated the task '{updated.title}'."

    async def _handle_delete_task(self, user_id: str, fields: ExtractedFields) -> str:
        resolution, tasks = await self._resolve(user_id, fields)
        if not resolution.found:
            return self._not_found_reply(fields, tasks)

        await self.task_service.delete_task(resolution.task.id, user_id)
        return f"🗑️ I've deleted the task '{resolution.task.title}'."

    async def _handle_mark_complete(self, user_id: str, fields: ExtractedFields) -> str:
        resolution, tasks = await self._resolve(user_id, fields)
        if not resolution.found:
            return self._not_found_reply(fields, tasks)

        task = await self.task_service.update_task(
            resolution.task.id, user_id, TaskUpdateRequest(status=TaskStatus.DONE)
        )
        return f"✅ I've marked '{task.title}' as complete!"

    async def _handle_bulk_mark_complete(self, user_id: str) -> str:
        count = await self.task_service.mark_all_complete(user_id)
        if count == 0:
            return "All your tasks are already complete! 🎉"
        if count == 1:
            return "✅ I've marked 1 task as complete."
        return f"✅ I've marked {count} tasks as complete."

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve(self, user_id: str, fields: ExtractedFields) -> tuple[Resolution, List[Task]]:
        fragment = fields.search_query or fields.title
        tasks = await self.task_service.list_tasks(user_id)
        resolution = resolve_task(fragment, tasks)
        if resolution.ambiguous:
            logger.info(
                f"Fragment {fragment!r} matched {len(resolution.matches)} tasks for user {user_id}, "
                f"using the first ({resolution.task.id})"
            )
        return resolution, tasks

    @staticmethod
    def _not_found_reply(fields: ExtractedFields, tasks: Sequence[Task]) -> str:
        if not tasks:
            return NO_TASKS_REPLY
        fragment = fields.search_query or fields.title
        if fragment:
            header = f"I couldn't find a task matching '{fragment}'. Which one did you mean?"
        else:
            header = "Which task did you mean?"
        return f"{header}\n\n{render_task_list(tasks)}"

    async def _extract_proposals(self, text: str) -> List[TaskProposal]:
        entries: Optional[List[RawFields]] = None
        if self.llm_client is not None:
            try:
                entries = parse_extracted_tasks(await self.llm_client.extract_tasks(text))
            except InferenceError as e:
                logger.warning(f"Task extraction via inference failed, using pattern extraction: {e}")

        if entries is None:
            entries = extract_tasks_by_pattern(text)

        proposals = []
        for entry in entries:
            fields = normalize_fields(entry)
            if not fields.title:
                continue
            proposals.append(TaskProposal(
                title=fields.title[:MAX_TITLE_LENGTH],
                description=clip_description(fields.description),
                priority=fields.priority,
                due_date=fields.due_date,
            ))
        return proposals

    async def _record(
        self,
        user_id: str,
        conversation_id: str,
        role: MessageRole,
        content: str,
    ) -> None:
        try:
            await self.conversation_service.append(user_id, conversation_id, role, content)
        except Exception as e:
            logger.error(f"Failed to record {role.value} message in {conversation_id}: {e}", exc_info=True)

    async def _record_file(
        self,
        user_id: str,
        conversation_id: str,
        content: str,
        file_name: Optional[str],
    ) -> None:
        try:
            await self.conversation_service.append_file_message(
                user_id, conversation_id, content[:MAX_FILE_MESSAGE_CHARS], file_name
            )
        except Exception as e:
            logger.error(f"Failed to record file upload in {conversation_id}: {e}", exc_info=True)
