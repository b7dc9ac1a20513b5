"""
Shared error handling for the Sheets Feedback Proxy.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    success: bool = False
    error: str
    code: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    details: Dict[str, Any] = Field(default_factory=dict)


class SheetsProxyException(Exception):
    """Base exception for sheets proxy services."""

    status_code = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message, code=self.code, details=self.details)


class ConfigurationError(SheetsProxyException):
    """A required setting (usually a credential) is missing."""

    def __init__(self, message: str = "Service is not configured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details, status_code=500)


class UpstreamErrorKind(str, Enum):
    """Classification of upstream failures."""
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"


# Forbidden and not-found are upstream misconfiguration (bad gateway); transient
# failures may succeed later.
UPSTREAM_STATUS_CODES = {
    UpstreamErrorKind.FORBIDDEN: 502,
    UpstreamErrorKind.NOT_FOUND: 502,
    UpstreamErrorKind.TRANSIENT: 503,
}


class UpstreamError(SheetsProxyException):
    """External data source rejected the request or was unreachable."""

    def __init__(
        self,
        kind: UpstreamErrorKind,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.kind = kind
        super().__init__(
            f"UPSTREAM_{kind.name}",
            message,
            details,
            status_code=UPSTREAM_STATUS_CODES[kind],
        )

    @property
    def retryable(self) -> bool:
        return self.kind is UpstreamErrorKind.TRANSIENT
