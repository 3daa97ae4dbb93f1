"""
Enum classes for the refinement conversation.

This module contains the Enum classes used to describe where a session is in
the refinement loop and how it ended.
"""

from enum import Enum


class ControllerState(Enum):
    """States of the refinement loop. SATISFIED and EXHAUSTED are terminal."""
    AWAITING_INITIAL_QUERY = "awaiting_initial_query"
    SEARCHING = "searching"
    AWAITING_FEEDBACK = "awaiting_feedback"
    PROBING = "probing"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        return self in (ControllerState.SATISFIED, ControllerState.EXHAUSTED)


class SessionOutcome(Enum):
    PENDING = "pending"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"


class Feedback(Enum):
    """Normalized answer to the "are you satisfied?" prompt."""
    YES = "y"
    NO = "n"

    @classmethod
    def from_string(cls, response: str) -> "Feedback | None":
        """
        Convert a raw response to a Feedback value.
        Returns None unless the trimmed, lowercased text is exactly "y" or "n".
        """
        cleaned = response.strip().lower()
        _map = {
            "y": cls.YES,
            "n": cls.NO,
        }
        return _map.get(cleaned, None)


class MessageTone(Enum):
    """Visual register of a line shown to the user."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    QUESTION = "question"
