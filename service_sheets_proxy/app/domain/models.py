"""
Domain models for the Sheets Proxy Service.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import UpstreamErrorKind


class FeedbackRecord(BaseModel):
    """A validated feedback row. Serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    team_name: str = Field(..., alias="teamName", min_length=1)
    idea: str = ""
    average_score: str = Field("", alias="averageScore")
    feedback: str = ""


class FeedbackResponse(BaseModel):
    """Success envelope for the feedback endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: List[FeedbackRecord]
    cached: bool
    stale: bool = False
    timestamp: str
    count: int
    spreadsheet_id: str = Field(..., alias="spreadsheetId")
    sheet_name: str = Field(..., alias="sheetName")


class MatchedFeedback(BaseModel):
    """Feedback matched to a team name."""

    model_config = ConfigDict(populate_by_name=True)

    score: Optional[float] = None
    feedback: Optional[str] = None
    idea: Optional[str] = None
    has_match: bool = Field(False, alias="hasMatch")


@dataclass(frozen=True)
class FetchSuccess:
    """Records are available, either freshly fetched or from the cache."""
    records: Tuple[FeedbackRecord, ...]
    served_from_cache: bool
    stale: bool = False
    fetched_at: Optional[float] = None


@dataclass(frozen=True)
class UpstreamFailure:
    """Upstream rejected the request or could not be reached."""
    kind: UpstreamErrorKind
    message: str
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigurationFailure:
    """A required setting is missing; never retried."""
    message: str


FetchOutcome = Union[FetchSuccess, UpstreamFailure, ConfigurationFailure]
