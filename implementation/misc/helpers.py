"""
Helper functions for cleaning generated text and shaping search strings.

This module contains utility functions shared by the refinement controller
and the provider adapters.
"""

from typing import Optional, Sequence

import re

# Leading list markers: bullets/dashes, "1." / "2)" numbering, stray periods.
_LEADING_MARKER_PATTERN = re.compile(r"^\s*(?:[-*•·–—]+|\d+[.)]+|\.+)\s*")
_QUOTE_CHARS = "\"'`“”‘’«»"


def clean_generated_text(text: Optional[str]) -> str:
    """
    Strip formatting artifacts a language model tends to wrap around a
    single-line answer.

    Applies the following transformations until the text stops changing:
    1. Remove leading bullet / numbering markers ("-", "•", "1.", "2)", ".")
    2. Remove surrounding quote characters
    3. Trim whitespace

    Args:
        text: Raw model output. None is treated as empty.

    Returns:
        The cleaned text. Empty string if nothing meaningful is left, which
        callers treat as "use the fallback value".

    Examples:
        >>> clean_generated_text("1. What era do you prefer?")
        'What era do you prefer?'
        >>> clean_generated_text('"witty heist comedy set in Europe"')
        'witty heist comedy set in Europe'
        >>> clean_generated_text("• - ")
        ''
        >>> clean_generated_text("1990s crime thrillers")
        '1990s crime thrillers'
    """
    if not text:
        return ""

    cleaned = text.strip()
    previous = None
    while cleaned != previous:
        previous = cleaned
        cleaned = _LEADING_MARKER_PATTERN.sub("", cleaned)
        cleaned = cleaned.strip().strip(_QUOTE_CHARS).strip()
    return cleaned


def join_query_history(query_history: Sequence[str]) -> str:
    """Concatenate search history into a single retrieval string."""
    return " ".join(query_history)
