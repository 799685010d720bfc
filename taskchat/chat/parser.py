"""
TaskChat - Completion Parser

Validates the structured payload inside a raw completion. The model is not
trusted to emit pure JSON: the payload is whatever sits between the first
'{' and the last '}'.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from taskchat.chat.constants import DEFAULT_NARRATIVE
from taskchat.chat.enums import Intent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFields:
    """Field strings exactly as the model returned them (None when absent)."""
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[str] = None
    search_query: Optional[str] = None


@dataclass(frozen=True)
class ParsedCommand:
    intent: Intent
    fields: RawFields
    response: str


@dataclass(frozen=True)
class UnparsedCommand:
    """The completion held no usable payload."""
    raw: str
    reason: str


ParseResult = Union[ParsedCommand, UnparsedCommand]


def extract_json_object(raw: Optional[str]) -> Optional[str]:
    """Substring from the first '{' to the last '}', or None if there is none."""
    if not raw:
        return None
    start = raw.find("{")
    end = raw.rfind("}")
    if start < 0 or end < start:
        return None
    return raw[start:end + 1]


def _load_object(raw: Optional[str]) -> tuple[Optional[dict], str]:
    candidate = extract_json_object(raw)
    if candidate is None:
        return None, "no JSON object found"
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        return None, f"malformed JSON: {e.msg}"
    if not isinstance(payload, dict):
        return None, "payload is not an object"
    return payload, ""


def _get_str(payload: dict, *keys: str) -> Optional[str]:
    """First present key as a string. Null, the literal 'null', and containers count as absent."""
    for key in keys:
        value: Any = payload.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if not text or text.lower() == "null":
            continue
        return text
    return None


def _raw_fields(payload: dict) -> RawFields:
    return RawFields(
        title=_get_str(payload, "taskTitle", "title"),
        description=_get_str(payload, "taskDescription", "description"),
        priority=_get_str(payload, "priority"),
        due_date=_get_str(payload, "dueDate", "due_date"),
        search_query=_get_str(payload, "searchQuery", "search_query"),
    )


def parse_command(raw: Optional[str]) -> ParseResult:
    """
    Parse a classification completion.

    A missing or unknown action becomes GENERAL_HELP and a missing response
    narrative becomes a static friendly string; only an absent or malformed
    payload yields UnparsedCommand.
    """
    payload, reason = _load_object(raw)
    if payload is None:
        logger.warning(f"Unparseable completion ({reason}): {(raw or '')[:200]!r}")
        return UnparsedCommand(raw=raw or "", reason=reason)

    return ParsedCommand(
        intent=Intent.from_action(payload.get("action")),
        fields=_raw_fields(payload),
        response=_get_str(payload, "response") or DEFAULT_NARRATIVE,
    )


def parse_extracted_tasks(raw: Optional[str]) -> Optional[List[RawFields]]:
    """
    Parse a file-extraction completion of the form {"tasks": [...]}.

    Returns None when the completion is not a JSON object, so the caller can
    fall back to pattern extraction. Entries without a title are dropped.
    """
    payload, reason = _load_object(raw)
    if payload is None:
        logger.warning(f"Unparseable extraction completion ({reason})")
        return None

    entries = payload.get("tasks")
    if not isinstance(entries, list):
        return []

    results = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        fields = _raw_fields(entry)
        if fields.title:
            results.append(fields)
    return results
