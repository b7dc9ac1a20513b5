"""
Team name matching against sheet feedback.
"""

import re
from typing import Iterable, Optional

from .models import FeedbackRecord, MatchedFeedback


_WHITESPACE = re.compile(r"\s+")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_team_name(name: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name.lower().strip())


def parse_score(value: str) -> Optional[float]:
    """Parse the leading numeric part of a score ("8.5/10" -> 8.5).

    Only finite decimal numbers are recognised; "Infinity" and "NaN" give
    None since they cannot be sent back as JSON.
    """
    match = _LEADING_NUMBER.match(value.strip())
    if not match:
        return None
    return float(match.group(0))


def match_feedback(team_name: Optional[str], records: Iterable[FeedbackRecord]) -> MatchedFeedback:
    """Find the first feedback record for ``team_name``."""
    wanted = normalize_team_name(team_name)
    if not wanted:
        return MatchedFeedback()

    for record in records:
        if normalize_team_name(record.team_name) == wanted:
            return MatchedFeedback(
                score=parse_score(record.average_score),
                feedback=record.feedback or None,
                idea=record.idea or None,
                has_match=True,
            )

    return MatchedFeedback()
