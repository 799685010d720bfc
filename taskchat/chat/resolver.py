"""
TaskChat - Task Resolver

Finds the task a chat message refers to by case-insensitive substring match
on the title. The first match in store order wins; there is no scoring.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from taskchat.tasks.models import Task


class ResolutionStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    task: Optional[Task] = None
    matches: List[Task] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.FOUND

    @property
    def ambiguous(self) -> bool:
        """More than one title matched; `task` is still the first of them."""
        return len(self.matches) > 1


NOT_FOUND = Resolution(status=ResolutionStatus.NOT_FOUND)


def resolve_task(fragment: Optional[str], tasks: Sequence[Task]) -> Resolution:
    if fragment is None:
        return NOT_FOUND
    needle = fragment.strip().lower()
    if not needle:
        return NOT_FOUND

    matches = [task for task in tasks if needle in (task.title or "").lower()]
    if not matches:
        return NOT_FOUND
    return Resolution(status=ResolutionStatus.FOUND, task=matches[0], matches=matches)
