"""
TaskChat - Prompt Templates

One-shot prompts for the completion service. Each message is classified on
its own; no conversation history is included.
"""

from datetime import date
from typing import Optional


def build_task_management_prompt(message: str, today: Optional[date] = None) -> str:
    """Prompt that classifies one user message into an action plus fields."""
    today = today or date.today()
    prompt_parts = [
        "You are a helpful task management assistant. Analyze the user's message and extract "
        "specific information to determine what action they want to perform.",
        "",
        f"Today's date: {today.isoformat()}",
        f'User message: "{message}"',
        "",
        "IMPORTANT: Extract ACTUAL information from the user's message. Do NOT use placeholder text.",
        "",
        "Examples:",
        '- "Create a task to buy groceries" -> taskTitle: "Buy groceries", action: "CREATE_TASK"',
        '- "Add task Study Math with Sarah tomorrow high priority" -> taskTitle: "Study Math with Sarah", '
        'dueDate: the date of tomorrow, priority: "HIGH", action: "CREATE_TASK"',
        '- "Show my tasks" -> action: "LIST_TASKS"',
        '- "Mark buy groceries as complete" -> searchQuery: "buy groceries", action: "MARK_COMPLETE"',
        '- "Change the dentist task to high priority" -> searchQuery: "dentist", priority: "HIGH", action: "UPDATE_TASK"',
        '- "I finished everything" -> action: "BULK_MARK_COMPLETE"',
        '- "I need help" -> action: "GENERAL_HELP"',
        "",
        "Possible actions:",
        "1. CREATE_TASK - User wants to add a new task",
        "2. LIST_TASKS - User wants to see their tasks",
        "3. UPDATE_TASK - User wants to modify an existing task",
        "4. DELETE_TASK - User wants to remove a task",
        "5. MARK_COMPLETE - User wants to mark one task as done",
        "6. BULK_MARK_COMPLETE - User wants to mark all tasks as done",
        "7. GENERAL_HELP - User needs help or has a general question",
        "",
        "Response format (JSON only, no extra text):",
        "{",
        '  "action": "CREATE_TASK|LIST_TASKS|UPDATE_TASK|DELETE_TASK|MARK_COMPLETE|BULK_MARK_COMPLETE|GENERAL_HELP",',
        '  "taskTitle": "actual extracted title from user message or null",',
        '  "taskDescription": "actual extracted description from user message or null",',
        '  "dueDate": "YYYY-MM-DD format if date mentioned, or null",',
        '  "priority": "HIGH|MEDIUM|LOW if mentioned, or null",',
        '  "searchQuery": "words identifying an existing task for update/delete/complete, or null",',
        '  "response": "friendly response confirming the action"',
        "}",
        "",
        "Extract REAL values from the user's message. If creating a task, the taskTitle must be "
        "the actual task name the user wants, not placeholder text.",
    ]
    return "\n".join(prompt_parts)


def build_task_extraction_prompt(text: str) -> str:
    """Prompt that pulls proposed tasks out of uploaded document text."""
    prompt_parts = [
        "Extract potential tasks and action items from the following text. Look for:",
        "- Action verbs (schedule, call, send, review, prepare, etc.)",
        "- Deadlines and dates",
        "- Assignments and responsibilities",
        "- Things that need to be done",
        "",
        f'Text: "{text}"',
        "",
        "Respond with JSON format containing an array of tasks:",
        "{",
        '  "tasks": [',
        "    {",
        '      "title": "task title",',
        '      "description": "task description",',
        '      "priority": "HIGH|MEDIUM|LOW",',
        '      "dueDate": "YYYY-MM-DD or null"',
        "    }",
        "  ]",
        "}",
        "",
        "Only extract clear, actionable tasks. If no actionable tasks are found, return:",
        '{"tasks": []}',
    ]
    return "\n".join(prompt_parts)


HEALTH_CHECK_PROMPT = "Respond with 'OK' if you can process this message."
