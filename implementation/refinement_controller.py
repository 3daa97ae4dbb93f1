"""
refinement_controller.py: Bounded, interactive search-refinement loop.

The controller drives one conversation from the user's first query to one of
two terminal outcomes:

  AWAITING_INITIAL_QUERY → SEARCHING → AWAITING_FEEDBACK → PROBING → SEARCHING …
                                     ↘ (no candidates) ↗
  … → SATISFIED   (user affirmed a non-empty result set)
  … → EXHAUSTED   (max_attempts probing rounds without an affirmation)

Each round searches with the current query history. If the user is not
satisfied (or nothing was found), a fixed-length probing round asks
clarifying questions, folds every answer into a refined search phrase, and
the loop searches again.

Behavior:
  - Every collaborator is injected. The controller owns the Session and all
    termination logic; it never reaches for a module-level client.
  - External calls never end a session. Retriever failures and malformed
    result sets count as "no matches", question-generator failures fall
    back to a static question, refiner failures fall back to the user's raw
    answer. Failures are only logged. A blank answer with no refinement
    leaves the query history unchanged.
  - The outcome is recorded exactly once, as a detached background task the
    controller never awaits.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from implementation.classes.enums import ControllerState, Feedback, MessageTone, SessionOutcome
from implementation.classes.protocols import (
    CandidateRetriever,
    ConversationIO,
    OutcomeRecorder,
    QueryRefiner,
    QuestionGenerator,
)
from implementation.classes.schemas import Candidate
from implementation.classes.session import DEFAULT_MAX_ATTEMPTS, Session
from implementation.misc.background import run_in_background
from implementation.misc.helpers import clean_generated_text

logger = logging.getLogger(__name__)

# ===============================
#          Constants
# ===============================

DEFAULT_PROBE_EXCHANGES = 2
DEFAULT_FIRST_QUESTION = "What kind of story, mood or setting are you hoping for?"
DEFAULT_NEXT_QUESTION = "Do you prefer something lighthearted or something more serious?"

INITIAL_QUERY_PROMPT = "What kind of movie are you looking for today? "
FEEDBACK_PROMPT = "\nAre you satisfied? (y/n): "
PROBE_ANSWER_PROMPT = "> "

EMPTY_QUERY_MESSAGE = "Oops! You didn't enter anything. Try again."
INVALID_FEEDBACK_MESSAGE = "Invalid input! Please enter 'y' or 'n'."
NO_MATCHES_MESSAGE = "\nNo matches found."
NOTHING_TO_ACCEPT_MESSAGE = "There is nothing to accept yet, so let's keep refining."
REFINE_INTRO_MESSAGE = "\nLet's refine your search with better questions:"
SATISFIED_MESSAGE = "\nEnjoy your movie!"
EXHAUSTED_MESSAGE = (
    "\nSorry, we couldn't find the perfect movie. We have saved your preferences "
    "and will let you know when we find movies that match them."
)


@dataclass(frozen=True, slots=True)
class RefinementPolicy:
    """
    Tunable rules of the refinement loop.

    max_attempts:           probing rounds allowed before the session is exhausted.
    probe_exchanges:        clarifying question/answer pairs per probing round (k).
    skip_feedback_on_empty: when a search finds nothing, go straight to probing
                            instead of asking whether the user is satisfied.
    """
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    probe_exchanges: int = DEFAULT_PROBE_EXCHANGES
    skip_feedback_on_empty: bool = True
    default_first_question: str = DEFAULT_FIRST_QUESTION
    default_next_question: str = DEFAULT_NEXT_QUESTION

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")
        if self.probe_exchanges < 1:
            raise ValueError(f"probe_exchanges must be positive, got {self.probe_exchanges}")


@dataclass(slots=True)
class SessionResult:
    """
    What a finished run hands back to its caller.

    record_task is the detached outcome-recording task. Callers are free to
    ignore it; tests and entry points may await it.
    """
    session: Session
    record_task: Optional[asyncio.Task]
    transitions: list[ControllerState] = field(default_factory=list)

    @property
    def outcome(self) -> SessionOutcome:
        return self.session.outcome

    @property
    def success(self) -> bool:
        return self.session.outcome is SessionOutcome.SATISFIED


class RefinementController:
    """
    Runs exactly one refinement session.

    Build a new controller per session: the controller keeps the session's
    state machine and must not be shared between concurrent conversations.
    """

    def __init__(
        self,
        retriever: CandidateRetriever,
        question_generator: QuestionGenerator,
        query_refiner: QueryRefiner,
        outcome_recorder: OutcomeRecorder,
        io: ConversationIO,
        policy: Optional[RefinementPolicy] = None,
    ) -> None:
        self._retriever = retriever
        self._question_generator = question_generator
        self._query_refiner = query_refiner
        self._outcome_recorder = outcome_recorder
        self._io = io
        self.policy = policy or RefinementPolicy()

        self.state = ControllerState.AWAITING_INITIAL_QUERY
        self.transitions: list[ControllerState] = [self.state]
        self.session: Optional[Session] = None
        self._record_task: Optional[asyncio.Task] = None
        self._started = False

    # ===============================
    #          Main loop
    # ===============================

    async def run(self) -> SessionResult:
        """
        Drive the session to a terminal state.

        Raises:
            RuntimeError: if the controller was already used for a session.
            EOFError: if the input stream closes; the session is abandoned
                      without a log record.
        """
        if self._started:
            raise RuntimeError("RefinementController runs a single session; create a new one")
        self._started = True

        original_query = await self._read_initial_query()
        session = Session(original_query=original_query, max_attempts=self.policy.max_attempts)
        self.session = session

        while True:
            if session.is_exhausted:
                self._exhaust(session)
                break

            self._transition(ControllerState.SEARCHING)
            candidates = await self._search(session.search_query)
            session.record_candidates(candidates)

            if candidates:
                self._show_candidates(candidates)
                self._transition(ControllerState.AWAITING_FEEDBACK)
                if await self._read_feedback() is Feedback.YES:
                    self._satisfy(session)
                    break
            else:
                self._io.show(NO_MATCHES_MESSAGE, MessageTone.ERROR)
                if not self.policy.skip_feedback_on_empty:
                    self._transition(ControllerState.AWAITING_FEEDBACK)
                    if await self._read_feedback() is Feedback.YES:
                        self._io.show(NOTHING_TO_ACCEPT_MESSAGE, MessageTone.WARNING)

            self._transition(ControllerState.PROBING)
            await self._probe(session)
            session.complete_round()
            logger.debug(
                "Completed probing round %d/%d; next search: %r",
                session.attempt_count, session.max_attempts, session.search_query,
            )

        return SessionResult(
            session=session,
            record_task=self._record_task,
            transitions=list(self.transitions),
        )

    # ===============================
    #        Probing round
    # ===============================

    async def _probe(self, session: Session) -> None:
        """
        Ask `probe_exchanges` clarifying questions and rebuild the query history.

        The first question is derived from the original query; each later one
        from the previous question and answer. Every answer is folded into a
        refined search phrase appended to the query history.
        """
        self._io.show(REFINE_INTRO_MESSAGE, MessageTone.WARNING)
        session.begin_probing_round()

        previous_question: Optional[str] = None
        previous_answer: Optional[str] = None
        for exchange_index in range(self.policy.probe_exchanges):
            if exchange_index == 0:
                question = await self._first_question(session.original_query)
            else:
                question = await self._next_question(previous_question, previous_answer)

            self._io.show(f"• {question}", MessageTone.QUESTION)
            answer = await self._io.ask(PROBE_ANSWER_PROMPT)

            session.add_exchange(question, answer)
            refined_query = await self._refine(list(session.query_history), question, answer)
            if refined_query:
                session.add_refinement(refined_query)
            else:
                logger.debug("Blank answer with no usable refinement; query history unchanged")

            previous_question, previous_answer = question, answer

    # ===============================
    #        User input
    # ===============================

    async def _read_initial_query(self) -> str:
        """Prompt until the user types something other than whitespace."""
        while True:
            raw = await self._io.ask(INITIAL_QUERY_PROMPT)
            query = raw.strip()
            if query:
                return query
            self._io.show(EMPTY_QUERY_MESSAGE, MessageTone.ERROR)

    async def _read_feedback(self) -> Feedback:
        """Prompt until the answer normalizes to exactly 'y' or 'n'."""
        while True:
            feedback = Feedback.from_string(await self._io.ask(FEEDBACK_PROMPT))
            if feedback is not None:
                return feedback
            self._io.show(INVALID_FEEDBACK_MESSAGE, MessageTone.ERROR)

    # ===============================
    #   External calls with fallbacks
    # ===============================

    async def _search(self, query: str) -> list[Candidate]:
        self._io.show(f'Searching for movies based on: "{query}"', MessageTone.SUCCESS)
        self._io.show("Finding recommendations...", MessageTone.QUESTION)
        try:
            results = await self._retriever.search(query)
        except Exception as e:
            logger.warning("Retriever failed for %r; treating as no matches: %s", query, e)
            return []
        if results is None:
            logger.warning("Retriever returned no result set for %r; treating as no matches", query)
            return []
        try:
            return [self._as_candidate(item) for item in results]
        except (TypeError, ValidationError) as e:
            logger.warning("Retriever returned a malformed result set for %r; treating as no matches: %s", query, e)
            return []

    @staticmethod
    def _as_candidate(item: object) -> Candidate:
        if isinstance(item, Candidate):
            return item
        return Candidate.model_validate(item)

    async def _first_question(self, original_query: str) -> str:
        fallback = self.policy.default_first_question
        try:
            generated = await self._question_generator.first(original_query)
        except Exception as e:
            logger.warning("First follow-up question generation failed: %s", e)
            return fallback
        return self._clean_generated(generated, fallback, "first follow-up question")

    async def _next_question(self, previous_question: str, previous_answer: str) -> str:
        fallback = self.policy.default_next_question
        try:
            generated = await self._question_generator.next(previous_question, previous_answer)
        except Exception as e:
            logger.warning("Next follow-up question generation failed: %s", e)
            return fallback
        return self._clean_generated(generated, fallback, "next follow-up question")

    async def _refine(self, query_history: list[str], question: str, answer: str) -> str:
        fallback = answer.strip()
        try:
            generated = await self._query_refiner.refine(query_history, question, answer)
        except Exception as e:
            logger.warning("Query refinement failed; using the raw answer instead: %s", e)
            return fallback
        return self._clean_generated(generated, fallback, "refined query")

    @staticmethod
    def _clean_generated(generated: object, fallback: str, label: str) -> str:
        if not isinstance(generated, str):
            logger.warning("Malformed %s (%s); using fallback", label, type(generated).__name__)
            return fallback
        cleaned = clean_generated_text(generated)
        if not cleaned:
            logger.warning("Empty %s after cleanup; using fallback", label)
            return fallback
        return cleaned

    # ===============================
    #     Terminal transitions
    # ===============================

    def _satisfy(self, session: Session) -> None:
        session.mark_satisfied()
        self._transition(ControllerState.SATISFIED)
        self._io.show(SATISFIED_MESSAGE, MessageTone.SUCCESS)
        self._record_outcome(session)

    def _exhaust(self, session: Session) -> None:
        session.mark_exhausted()
        self._transition(ControllerState.EXHAUSTED)
        self._io.show(EXHAUSTED_MESSAGE, MessageTone.ERROR)
        self._record_outcome(session)

    def _record_outcome(self, session: Session) -> None:
        """Dispatch the outcome recorder without waiting for it."""
        if self._record_task is not None:
            raise RuntimeError("Session outcome was already recorded")
        self._record_task = run_in_background(
            self._outcome_recorder.record(
                session.original_query,
                list(session.suggested_titles),
                list(session.probing_context),
                session.outcome is SessionOutcome.SATISFIED,
            ),
            name="record-session-outcome",
        )

    # ===============================
    #           Helpers
    # ===============================

    def _transition(self, state: ControllerState) -> None:
        logger.debug("Refinement state %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def _show_candidates(self, candidates: list[Candidate]) -> None:
        self._io.show("\nHere are your recommendations:", MessageTone.SUCCESS)
        for index, candidate in enumerate(candidates, start=1):
            self._io.show(f"{index}. {candidate}")
