"""
TaskChat - Entity Normalizer

Turns the raw field strings of a parsed completion into typed, sanitized
values. Nothing here raises: bad input degrades to a default or to None.
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from taskchat.chat.constants import (
    VALID_PRIORITIES,
    TEMPLATE_TEXT_MARKERS,
    TEMPLATE_DATE_MARKERS,
    SANITIZE_PATTERN,
    STRICT_DATE_PATTERN,
    ISO_DATETIME_PATTERN,
)
from taskchat.chat.parser import RawFields
from taskchat.tasks.enums import TaskPriority

logger = logging.getLogger(__name__)

_SANITIZE_RE = re.compile(SANITIZE_PATTERN)
_STRICT_DATE_RE = re.compile(STRICT_DATE_PATTERN)
_ISO_DATETIME_RE = re.compile(ISO_DATETIME_PATTERN)


@dataclass(frozen=True)
class ExtractedFields:
    title: Optional[str] = None
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    priority_given: bool = False
    due_date: Optional[datetime] = None
    search_query: Optional[str] = None


def sanitize(value: str) -> str:
    return _SANITIZE_RE.sub("", value).strip()


def normalize_priority(raw: Optional[str]) -> TaskPriority:
    """Upper-case and validate; anything outside HIGH/MEDIUM/LOW is MEDIUM."""
    if raw is None:
        return TaskPriority.MEDIUM
    candidate = str(raw).strip().upper()
    if candidate in VALID_PRIORITIES:
        return TaskPriority(candidate)
    return TaskPriority.MEDIUM


def _is_valid_priority(raw: Optional[str]) -> bool:
    return raw is not None and str(raw).strip().upper() in VALID_PRIORITIES


def normalize_due_date(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse a due date.

    Strict YYYY-MM-DD becomes midnight UTC. Otherwise an ISO date-time is
    accepted (trailing 'Z' included); naive values are taken as UTC.
    Template placeholders and anything unparseable yield None.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    lowered = text.lower()
    if any(marker in lowered for marker in TEMPLATE_DATE_MARKERS):
        logger.debug(f"Ignoring template due date: {text!r}")
        return None

    if _STRICT_DATE_RE.match(text):
        try:
            return datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None

    if _ISO_DATETIME_RE.match(text):
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def _is_template_text(raw: str) -> bool:
    lowered = raw.lower()
    if any(marker in lowered for marker in TEMPLATE_TEXT_MARKERS):
        logger.debug(f"Ignoring template text: {raw!r}")
        return True
    return False


def normalize_text(raw: Optional[str]) -> Optional[str]:
    """Sanitized title/description, or None for empty or leaked instruction text."""
    if raw is None or _is_template_text(raw):
        return None
    cleaned = sanitize(raw)
    return cleaned or None


def normalize_search_query(raw: Optional[str]) -> Optional[str]:
    """
    Search fragment for task resolution.

    Trimmed only. Stored titles keep their punctuation, so apostrophes and
    the like stay in the fragment.
    """
    if raw is None or _is_template_text(raw):
        return None
    return raw.strip() or None


def normalize_fields(raw: RawFields) -> ExtractedFields:
    return ExtractedFields(
        title=normalize_text(raw.title),
        description=normalize_text(raw.description),
        priority=normalize_priority(raw.priority),
        priority_given=_is_valid_priority(raw.priority),
        due_date=normalize_due_date(raw.due_date),
        search_query=normalize_search_query(raw.search_query),
    )
