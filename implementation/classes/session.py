"""
Session state for one refinement conversation.

A Session is owned by exactly one RefinementController run. It holds the
search history, the cumulative probing transcript and the attempt budget, and
refuses transitions that would break the loop's bookkeeping rules.
"""

from dataclasses import dataclass, field

from implementation.classes.enums import SessionOutcome
from implementation.classes.schemas import Candidate, ProbeExchange
from implementation.misc.helpers import join_query_history

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(slots=True)
class Session:
    """
    Mutable state of a single user interaction.

    query_history:   search strings joined into the next retrieval query.
                     Always starts with original_query; reset at the start of
                     every probing round.
    probing_context: every clarifying exchange of the session, never reset.
    last_candidates: result set of the most recent retrieval.
    suggested_titles: titles of the most recent non-empty result set, i.e. the
                     movies the user was actually shown.
    """
    original_query: str
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    query_history: list[str] = field(init=False)
    attempt_count: int = 0
    probing_context: list[ProbeExchange] = field(default_factory=list)
    last_candidates: list[Candidate] = field(default_factory=list)
    suggested_titles: list[str] = field(default_factory=list)
    outcome: SessionOutcome = SessionOutcome.PENDING

    def __post_init__(self) -> None:
        if not self.original_query or not self.original_query.strip():
            raise ValueError("Session requires a non-empty original query")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        self.query_history = [self.original_query]

    def __setattr__(self, name: str, value: object) -> None:
        # original_query is write-once
        if name == "original_query" and hasattr(self, "original_query"):
            raise AttributeError("original_query cannot be changed once the session has started")
        object.__setattr__(self, name, value)

    # ===============================
    #        Derived state
    # ===============================

    @property
    def search_query(self) -> str:
        """The string sent to the retriever: query history joined by spaces."""
        return join_query_history(self.query_history)

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempt_count

    @property
    def is_exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts

    @property
    def is_finished(self) -> bool:
        return self.outcome is not SessionOutcome.PENDING

    # ===============================
    #          Mutations
    # ===============================

    def record_candidates(self, candidates: list[Candidate]) -> None:
        """Replace the current result set. Empty results keep the last suggestions."""
        self._ensure_pending()
        self.last_candidates = list(candidates)
        if self.last_candidates:
            self.suggested_titles = [candidate.title for candidate in self.last_candidates]

    def begin_probing_round(self) -> None:
        """Discard previous refinements from the search history (not from the transcript)."""
        self._ensure_pending()
        if self.is_exhausted:
            raise RuntimeError("No attempts left to start another probing round")
        self.query_history = [self.original_query]

    def add_exchange(self, question: str, answer: str) -> ProbeExchange:
        self._ensure_pending()
        exchange = ProbeExchange(question=question, answer=answer)
        self.probing_context.append(exchange)
        return exchange

    def add_refinement(self, refined_query: str) -> None:
        self._ensure_pending()
        self.query_history.append(refined_query)

    def complete_round(self) -> None:
        """Consume one attempt after a probing round."""
        self._ensure_pending()
        if self.is_exhausted:
            raise RuntimeError(
                f"attempt_count would exceed max_attempts ({self.max_attempts})"
            )
        self.attempt_count += 1

    def mark_satisfied(self) -> None:
        self._ensure_pending()
        if not self.last_candidates:
            raise RuntimeError("A session can only be satisfied by a non-empty result set")
        self.outcome = SessionOutcome.SATISFIED

    def mark_exhausted(self) -> None:
        self._ensure_pending()
        if not self.is_exhausted:
            raise RuntimeError(
                f"Session still has {self.attempts_remaining} attempt(s) left"
            )
        self.outcome = SessionOutcome.EXHAUSTED

    def _ensure_pending(self) -> None:
        if self.is_finished:
            raise RuntimeError(f"Session already ended with outcome '{self.outcome.value}'")
