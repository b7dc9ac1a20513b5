"""
Sheets proxy service for the Sheets Feedback Proxy.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Query, Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService, CORS_HEADERS
from shared.config import SheetsProxyConfig
from shared.errors import ErrorResponse, UPSTREAM_STATUS_CODES

from .adapters.sheets_client import SheetsClient
from .cache.ttl_cache import TTLCache
from .domain.matcher import match_feedback
from .domain.models import (
    ConfigurationFailure,
    FeedbackResponse,
    FetchOutcome,
    FetchSuccess,
    UpstreamFailure,
)
from .retrieval.coordinator import RetrievalCoordinator, RowSource


# Methods outside this list get the same 405 envelope from the base service's
# HTTP exception handler.
FEEDBACK_METHODS = ["GET", "OPTIONS", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class SheetsProxyService(BaseService):
    """Sheets proxy service implementation."""

    def __init__(
        self,
        config: Optional[SheetsProxyConfig] = None,
        client: Optional[RowSource] = None,
        cache: Optional[TTLCache] = None,
    ):
        super().__init__("sheets_proxy", config)

        self.cache = cache if cache is not None else TTLCache(self.config.cache_ttl_seconds)
        self.client = client if client is not None else SheetsClient(
            api_key=self.config.api_key,
            base_url=self.config.api_base_url,
            timeout=self.config.upstream_timeout_seconds,
        )
        self.coordinator = RetrievalCoordinator(
            self.client,
            self.cache,
            self.config.spreadsheet_id,
            self.config.sheet_name,
            serve_stale_on_error=self.config.serve_stale_on_error,
            max_attempts=self.config.upstream_max_attempts,
            metrics=self.metrics,
        )

        self._setup_feedback_routes()

    def _setup_feedback_routes(self):
        """Set up feedback-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "Sheets Feedback Proxy - Sheets Proxy Service",
                "version": "1.0.0",
                "capabilities": ["ttl_cache", "single_flight", "stale_fallback", "feedback_matching"]
            }

        @self.app.api_route("/feedback", methods=FEEDBACK_METHODS)
        async def feedback(request: Request):
            """Serve the sanitized feedback rows."""
            if request.method == "OPTIONS":
                return Response(status_code=200, headers=dict(CORS_HEADERS))

            if request.method != "GET":
                return JSONResponse(
                    status_code=405,
                    content={"error": "Method not allowed"},
                    headers={**CORS_HEADERS, "Allow": "GET, OPTIONS"}
                )

            try:
                outcome = await self.coordinator.retrieve()
            except Exception as e:
                return self._internal_error_response(e)

            return self._render_outcome(outcome)

        @self.app.get("/feedback/match")
        async def match(team_name: str = Query(..., min_length=1, description="Team name to look up")):
            """Match a team name against the sheet feedback."""
            try:
                outcome = await self.coordinator.retrieve()
            except Exception as e:
                return self._internal_error_response(e)

            if not isinstance(outcome, FetchSuccess):
                return self._render_outcome(outcome)

            matched = match_feedback(team_name, outcome.records)
            return {
                "success": True,
                "teamName": team_name,
                "match": matched.model_dump(by_alias=True),
                "cached": outcome.served_from_cache,
                "stale": outcome.stale,
                "timestamp": utc_timestamp(),
            }

        @self.app.get("/feedback/stats")
        async def stats():
            """Coordinator and cache statistics."""
            return {
                "service": self.service_name,
                "cache_key": self.coordinator.cache_key,
                "retrieval": self.coordinator.stats(),
                "timestamp": utc_timestamp(),
            }

    def _render_outcome(self, outcome: FetchOutcome) -> JSONResponse:
        """Map a fetch outcome onto the HTTP envelope."""
        if isinstance(outcome, FetchSuccess):
            body = FeedbackResponse(
                data=list(outcome.records),
                cached=outcome.served_from_cache,
                stale=outcome.stale,
                timestamp=utc_timestamp(),
                count=len(outcome.records),
                spreadsheet_id=self.config.spreadsheet_id,
                sheet_name=self.config.sheet_name,
            )
            return JSONResponse(
                content=body.model_dump(by_alias=True),
                headers={
                    **CORS_HEADERS,
                    "Cache-Control": f"public, max-age={int(self.config.cache_ttl_seconds)}",
                },
            )

        if isinstance(outcome, UpstreamFailure):
            code = f"UPSTREAM_{outcome.kind.name}"
            self.metrics.record_error(code)
            self.logger.error("Upstream failure", code=code, message=outcome.message)
            return self._failure_response(
                outcome.message, code, UPSTREAM_STATUS_CODES[outcome.kind], outcome.details
            )

        if isinstance(outcome, ConfigurationFailure):
            self.metrics.record_error("CONFIGURATION_ERROR")
            self.logger.error("Configuration failure", message=outcome.message)
            return self._failure_response(outcome.message, "CONFIGURATION_ERROR", 500)

        raise TypeError(f"Unknown fetch outcome: {outcome!r}")

    def _failure_response(
        self,
        message: str,
        code: str,
        status_code: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        return self.error_response(
            ErrorResponse(error=message, code=code, details=details or {}),
            status_code,
            spreadsheetId=self.config.spreadsheet_id,
            sheetName=self.config.sheet_name,
        )

    def _internal_error_response(self, error: Exception) -> JSONResponse:
        """Log an unexpected retrieval error and answer with a generic 500."""
        self.logger.error("Error retrieving sheet data", error=str(error), exc_info=True)
        self.metrics.record_error("INTERNAL_ERROR")
        return self._failure_response("Internal server error", "INTERNAL_ERROR", 500)

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Check sheets proxy dependencies without calling the upstream."""
        key = self.coordinator.cache_key
        return {
            "sheets_api": "configured" if self.config.api_key else "missing_api_key",
            "cache": {
                "populated": key in self.cache,
                "valid": self.cache.is_valid(key),
                "age_seconds": self.cache.age(key),
                "fetch_in_flight": self.coordinator.is_fetching(key),
            },
        }


def create_app(
    config: Optional[SheetsProxyConfig] = None,
    client: Optional[RowSource] = None,
    cache: Optional[TTLCache] = None,
):
    """Create sheets proxy service application."""
    service = SheetsProxyService(config=config, client=client, cache=cache)
    return service.app


if __name__ == "__main__":
    service = SheetsProxyService()
    service.run()
