"""
Domain layer for the Sheets Proxy Service.
"""

from .models import (
    ConfigurationFailure,
    FeedbackRecord,
    FeedbackResponse,
    FetchOutcome,
    FetchSuccess,
    MatchedFeedback,
    UpstreamFailure,
)
from .sanitizer import sanitize_rows
from .matcher import match_feedback, normalize_team_name

__all__ = [
    "ConfigurationFailure",
    "FeedbackRecord",
    "FeedbackResponse",
    "FetchOutcome",
    "FetchSuccess",
    "MatchedFeedback",
    "UpstreamFailure",
    "sanitize_rows",
    "match_feedback",
    "normalize_team_name",
]
