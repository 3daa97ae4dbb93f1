"""
Collaborator contracts for the refinement controller.

Any provider (OpenAI, Qdrant, Postgres, an in-memory fake) plugs into the
controller by implementing these protocols. The controller never assumes a
concrete client.
"""

from typing import Protocol, Sequence

from implementation.classes.enums import MessageTone
from implementation.classes.schemas import Candidate, ProbeExchange


class CandidateRetriever(Protocol):
    """Nearest-neighbour search over the movie catalog."""

    async def search(self, query: str) -> Sequence[Candidate]:
        """Return ranked candidates. An empty sequence means "no match", not an error."""
        ...


class QuestionGenerator(Protocol):
    """Produces the clarifying questions of a probing round."""

    async def first(self, query: str) -> str:
        """Opening question, based on the user's original query."""
        ...

    async def next(self, previous_question: str, previous_answer: str) -> str:
        """Follow-up question that builds on the previous exchange."""
        ...


class QueryRefiner(Protocol):
    """Folds one clarifying exchange into a consolidated search phrase."""

    async def refine(self, query_history: Sequence[str], question: str, answer: str) -> str:
        ...


class OutcomeRecorder(Protocol):
    """Persists the transcript of a finished session."""

    async def record(
        self,
        original_query: str,
        suggested_titles: Sequence[str],
        probing_context: Sequence[ProbeExchange],
        success: bool,
    ) -> None:
        ...


class ConversationIO(Protocol):
    """Line-oriented prompt/response surface."""

    async def ask(self, prompt: str) -> str:
        """Show `prompt` and return one line of raw user input."""
        ...

    def show(self, message: str, tone: MessageTone = MessageTone.INFO) -> None:
        ...
