"""
TaskChat - Task Resolver Tests
"""

import pytest

from taskchat.chat.resolver import ResolutionStatus, resolve_task
from tests.conftest import make_task


@pytest.fixture
def tasks():
    return [
        make_task("Buy groceries weekly", ticket_number=1),
        make_task("Call the dentist", ticket_number=2),
        make_task("Buy birthday gift", ticket_number=3),
    ]


class TestResolveTask:

    def test_case_insensitive_substring(self, tasks):
        resolution = resolve_task("buy GROCERIES", tasks)
        assert resolution.found
        assert resolution.task is tasks[0]

    def test_first_match_in_store_order_wins(self, tasks):
        resolution = resolve_task("buy", tasks)

        assert resolution.status == ResolutionStatus.FOUND
        assert resolution.task is tasks[0]
        assert resolution.matches == [tasks[0], tasks[2]]
        assert resolution.ambiguous

    def test_single_match_is_not_ambiguous(self, tasks):
        resolution = resolve_task("dentist", tasks)
        assert resolution.task is tasks[1]
        assert not resolution.ambiguous

    def test_no_match(self, tasks):
        resolution = resolve_task("thing", tasks)
        assert resolution.status == ResolutionStatus.NOT_FOUND
        assert resolution.task is None
        assert not resolution.found

    @pytest.mark.parametrize("fragment", [None, "", "   "])
    def test_empty_fragment_is_not_found(self, tasks, fragment):
        assert resolve_task(fragment, tasks).status == ResolutionStatus.NOT_FOUND
        assert resolve_task(fragment, []).status == ResolutionStatus.NOT_FOUND

    def test_empty_task_list(self):
        assert not resolve_task("anything", []).found

    def test_idempotent(self, tasks):
        first = resolve_task("buy", tasks)
        second = resolve_task("buy", tasks)
        assert first.task is second.task
        assert first == second
