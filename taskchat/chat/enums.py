"""
TaskChat - Chat Enums

The fixed action vocabulary the completion service classifies into.
"""

from enum import Enum
from typing import Any


class Intent(str, Enum):
    """Classified action for one inbound message."""
    CREATE_TASK = "CREATE_TASK"
    LIST_TASKS = "LIST_TASKS"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    MARK_COMPLETE = "MARK_COMPLETE"
    BULK_MARK_COMPLETE = "BULK_MARK_COMPLETE"
    GENERAL_HELP = "GENERAL_HELP"

    @classmethod
    def from_action(cls, value: Any) -> "Intent":
        """Map a raw action value to an Intent. Anything unrecognised is GENERAL_HELP."""
        if not isinstance(value, str):
            return cls.GENERAL_HELP
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        key = _ACTION_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return cls.GENERAL_HELP


_ACTION_ALIASES = {
    "CREATE": "CREATE_TASK",
    "ADD_TASK": "CREATE_TASK",
    "LIST": "LIST_TASKS",
    "UPDATE": "UPDATE_TASK",
    "DELETE": "DELETE_TASK",
    "COMPLETE_TASK": "MARK_COMPLETE",
    "BULK_COMPLETE": "BULK_MARK_COMPLETE",
    "MARK_ALL_COMPLETE": "BULK_MARK_COMPLETE",
    "HELP": "GENERAL_HELP",
}
