# taskchat/chat/constants.py

VALID_PRIORITIES = {"HIGH", "MEDIUM", "LOW"}

# Instruction text the model sometimes echoes back instead of a value
TEMPLATE_TEXT_MARKERS = (
    "extracted task title",
    "extracted description",
    "actual extracted",
    "if creating",
)
TEMPLATE_DATE_MARKERS = ("extracted", "yyyy-mm-dd")

# Stripped from titles/descriptions before they reach the task store
SANITIZE_PATTERN = r"[<>\"'%;()&+]"

STRICT_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
ISO_DATETIME_PATTERN = r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}"

# Transcript copy of an uploaded file is capped
MAX_FILE_MESSAGE_CHARS = 4000

DEFAULT_NARRATIVE = "I'm here to help you manage your tasks! You can ask me to create, list, update, complete or delete tasks."
CLARIFICATION_REPLY = "I understand you want help with your tasks. Could you be more specific about what you'd like to do?"
CREATE_CLARIFICATION_REPLY = "I understand you want to create a task. Could you please provide more specific details about what you'd like to accomplish?"
STORE_FAILURE_REPLY = "Sorry, I couldn't complete that. Please try again."
GENERIC_ERROR_REPLY = "Sorry, I encountered an error processing your request. Please try again."
NO_TASKS_REPLY = "You don't have any tasks yet. Would you like me to help you add some?"

FILE_NO_TASKS_REPLY = "I couldn't find any actionable tasks in the uploaded file."
FILE_ERROR_REPLY = "Sorry, I encountered an error processing the uploaded file."
CONFIRM_ERROR_REPLY = "Sorry, I couldn't add the tasks. Please try again."
CONFIRM_PARTIAL_REPLY = (
    "I added {created} of {total} tasks before something went wrong. "
    "Please check your list before adding the rest."
)
ADD_EXTRACTED_TASKS_ACTION = "ADD_EXTRACTED_TASKS"

# Keyword fallback vocabulary, checked in this order
BULK_WORDS = {"all", "everything", "every"}
DELETE_WORDS = {"delete", "remove", "erase", "drop"}
UPDATE_WORDS = {"update", "change", "modify", "edit", "rename", "reschedule"}
COMPLETE_WORDS = {"complete", "completed", "done", "finish", "finished"}
CREATE_WORDS = {"create", "add", "new", "remind"}
TASK_WORDS = {"task", "tasks", "todo", "item", "reminder"}
LIST_WORDS = {"list", "show", "tasks", "what", "view"}

# Pattern extraction used when the file-extraction completion is unusable
TASK_SENTENCE_PATTERN = r"(?:need to|should|must|have to|will|going to|plan to|\d+\.\s*)([^.!?\n]{10,100})"
TASK_SENTENCE_EXCLUDES = ("the document", "this file")
PATTERN_TASK_DESCRIPTION = "Extracted from uploaded file"
