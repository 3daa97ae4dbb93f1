"""
Pydantic schemas for the refinement conversation.

This module contains the read-only records that flow between the refinement
controller and its collaborators: retrieved candidates, clarifying exchanges,
and the log record persisted when a session ends.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# -----------------------------
#          CANDIDATES
# -----------------------------

class Candidate(BaseModel):
    """
    One movie returned by the retriever.

    Only title, year and genre are interpreted; every other payload key
    (description, rating, keywords, ...) is carried along untouched.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    title: str
    year: Optional[str] = None
    genre: Optional[str] = None

    @field_validator("year", mode="before")
    @classmethod
    def coerce_year(cls, v: object) -> Optional[str]:
        """Catalog payloads store the year as text or int; keep it as text."""
        if v is None or v == "":
            return None
        return str(v)

    def __str__(self) -> str:
        year = self.year or "n/a"
        genre = self.genre or "Unknown genre"
        return f"{self.title} ({year}) - {genre}"


# -----------------------------
#       PROBING EXCHANGES
# -----------------------------

class ProbeExchange(BaseModel):
    """A single clarifying question and the user's raw answer."""
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


# -----------------------------
#          LOG RECORDS
# -----------------------------

class LogRecord(BaseModel):
    """
    Snapshot of a finished session, written once by the outcome recorder.
    """
    model_config = ConfigDict(frozen=True)

    original_query: str
    suggested_titles: list[str] = Field(default_factory=list)
    probing_context: list[ProbeExchange] = Field(default_factory=list)
    success: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
