"""Shared pytest fixtures for unit tests."""

from typing import Any, Callable, Sequence
from pathlib import Path
import sys

import pytest

# Ensure project root is importable when tests run from repository root.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from implementation.classes.enums import MessageTone
from implementation.classes.schemas import Candidate, ProbeExchange


class ScriptedIO:
    """ConversationIO fake that replays scripted answers and records everything shown."""

    def __init__(self, answers: Sequence[str]) -> None:
        self._answers = list(answers)
        self.prompts: list[str] = []
        self.shown: list[tuple[str, MessageTone]] = []

    async def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._answers:
            raise EOFError("script exhausted")
        return self._answers.pop(0)

    def show(self, message: str, tone: MessageTone = MessageTone.INFO) -> None:
        self.shown.append((message, tone))

    @property
    def remaining(self) -> int:
        return len(self._answers)

    def messages(self, tone: MessageTone | None = None) -> list[str]:
        return [message for message, t in self.shown if tone is None or t is tone]


class FakeRetriever:
    """
    Returns scripted result sets in order; an Exception instance in the script
    is raised instead. The last entry repeats once the script runs out.
    """

    def __init__(self, results: Sequence[Any]) -> None:
        self._results = list(results)
        self.queries: list[str] = []

    async def search(self, query: str):
        self.queries.append(query)
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeQuestionGenerator:
    def __init__(self, first: Any = "What era do you like?", next_: Any = "Any favourite actors?") -> None:
        self._first = first
        self._next = next_
        self.first_calls: list[str] = []
        self.next_calls: list[tuple[str, str]] = []

    async def first(self, query: str) -> str:
        self.first_calls.append(query)
        if isinstance(self._first, Exception):
            raise self._first
        return self._first

    async def next(self, previous_question: str, previous_answer: str) -> str:
        self.next_calls.append((previous_question, previous_answer))
        if isinstance(self._next, Exception):
            raise self._next
        return self._next


class FakeQueryRefiner:
    """Echoes 'refined: <answer>' unless configured to fail or return a fixed value."""

    def __init__(self, response: Any = None) -> None:
        self._response = response
        self.calls: list[tuple[list[str], str, str]] = []

    async def refine(self, query_history: Sequence[str], question: str, answer: str) -> str:
        self.calls.append((list(query_history), question, answer))
        if isinstance(self._response, Exception):
            raise self._response
        if self._response is not None:
            return self._response
        return f"refined: {answer}"


class FakeRecorder:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error
        self.calls: list[dict[str, Any]] = []

    async def record(
        self,
        original_query: str,
        suggested_titles: Sequence[str],
        probing_context: Sequence[ProbeExchange],
        success: bool,
    ) -> None:
        self.calls.append(
            {
                "original_query": original_query,
                "suggested_titles": list(suggested_titles),
                "probing_context": list(probing_context),
                "success": success,
            }
        )
        if self._error is not None:
            raise self._error


@pytest.fixture
def candidate_factory() -> Callable[..., Candidate]:
    """Return a factory that builds a Candidate with optional overrides."""

    def _factory(**overrides: Any) -> Candidate:
        base_data: dict[str, Any] = {
            "title": "Ocean's Eleven",
            "year": "2001",
            "genre": "Crime, Comedy",
            "rating": "7.7",
        }
        base_data.update(overrides)
        return Candidate(**base_data)

    return _factory


@pytest.fixture
def two_candidates(candidate_factory) -> list[Candidate]:
    return [
        candidate_factory(),
        candidate_factory(title="The Italian Job", year="2003", genre="Action, Crime"),
    ]
