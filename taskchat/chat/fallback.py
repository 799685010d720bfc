"""
TaskChat - Keyword Fallback

Deterministic intent guess used when the inference service cannot be
reached. Only listing is safe to act on without a model; every other
intent gets a canned reply pointing the user at what to try. Also holds the
pattern-based task extraction used when file extraction cannot use the model.
"""

import re
import logging
from dataclasses import dataclass
from typing import List

from taskchat.chat.constants import (
    BULK_WORDS,
    DELETE_WORDS,
    UPDATE_WORDS,
    COMPLETE_WORDS,
    CREATE_WORDS,
    TASK_WORDS,
    LIST_WORDS,
    TASK_SENTENCE_PATTERN,
    TASK_SENTENCE_EXCLUDES,
    PATTERN_TASK_DESCRIPTION,
)
from taskchat.chat.enums import Intent
from taskchat.chat.parser import RawFields

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z']+")
_TASK_SENTENCE_RE = re.compile(TASK_SENTENCE_PATTERN, re.IGNORECASE)

FALLBACK_REPLIES = {
    Intent.BULK_MARK_COMPLETE: "I'm having trouble reaching my assistant right now, so I can't mark all your tasks complete. Please try again in a moment.",
    Intent.DELETE_TASK: "I'm having trouble reaching my assistant right now, so I can't delete tasks. Please try again in a moment, or say 'list my tasks' to see them.",
    Intent.UPDATE_TASK: "I'm having trouble reaching my assistant right now, so I can't update tasks. Please try again in a moment.",
    Intent.MARK_COMPLETE: "I'm having trouble reaching my assistant right now, so I can't mark tasks complete. Please try again in a moment.",
    Intent.CREATE_TASK: "I'm having trouble reaching my assistant right now, so I can't create tasks. Please try again in a moment.",
    Intent.LIST_TASKS: "Here are your current tasks.",
    Intent.GENERAL_HELP: "I can help you with: listing tasks, creating tasks, updating or completing them, and deleting tasks. My assistant is temporarily unavailable, but you can still say 'list my tasks'.",
}


@dataclass(frozen=True)
class FallbackReply:
    intent: Intent
    text: str


def _guess_intent(words: set) -> Intent:
    # Order matters: more specific and more destructive intents first
    if words & BULK_WORDS and words & COMPLETE_WORDS:
        return Intent.BULK_MARK_COMPLETE
    if words & DELETE_WORDS:
        return Intent.DELETE_TASK
    if words & UPDATE_WORDS:
        return Intent.UPDATE_TASK
    if words & COMPLETE_WORDS:
        return Intent.MARK_COMPLETE
    if words & CREATE_WORDS and words & TASK_WORDS:
        return Intent.CREATE_TASK
    if words & LIST_WORDS:
        return Intent.LIST_TASKS
    return Intent.GENERAL_HELP


def keyword_fallback(message: str) -> FallbackReply:
    words = set(_WORD_RE.findall((message or "").lower()))
    intent = _guess_intent(words)
    logger.debug(f"Keyword fallback intent: {intent.value}")
    return FallbackReply(intent=intent, text=FALLBACK_REPLIES[intent])


def extract_tasks_by_pattern(text: str) -> List[RawFields]:
    """
    Pull task-like phrases ("need to ...", "should ...", numbered items)
    out of raw document text. Used when the extraction completion is unusable.
    """
    results = []
    for match in _TASK_SENTENCE_RE.finditer(text or ""):
        phrase = match.group(1).strip()
        lowered = phrase.lower()
        if not 5 < len(phrase) < 200:
            continue
        if any(exclude in lowered for exclude in TASK_SENTENCE_EXCLUDES):
            continue
        results.append(RawFields(
            title=phrase,
            description=PATTERN_TASK_DESCRIPTION,
            priority="MEDIUM",
        ))
    logger.debug(f"Pattern extraction found {len(results)} candidate tasks")
    return results
