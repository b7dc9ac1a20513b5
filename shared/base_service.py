"""
Base service class for Sheets Feedback Proxy services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Dict, Any, Optional
import time
import os

from shared.config import SheetsProxyConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, set_client_context, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import ErrorResponse, SheetsProxyException


# Sent on every response, errors included, so browser callers can always read
# the JSON envelope.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[SheetsProxyConfig] = None):
        self.service_name = service_name
        self.config = config or get_config()
        self.port = self.config.port
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)
        self._start_time = time.time()

        configure_logging(service_name, self.config.log_level)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        title = self.service_name.replace("_", " ").title()
        return FastAPI(
            title=f"{title} Service",
            description=f"Sheets Feedback Proxy - {title} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def add_request_context(request: Request, call_next):
            start_time = time.time()
            set_request_id(request.headers.get("x-request-id"))
            set_client_context(request.headers.get("user-agent"))

            try:
                response = await call_next(request)
            finally:
                duration = time.time() - start_time

            for header, value in CORS_HEADERS.items():
                response.headers.setdefault(header, value)

            self.metrics.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=response.status_code,
                duration=duration
            )

            self.logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )
            clear_context()

            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                dependencies = await self._check_dependencies()
                self.metrics.record_health_check("ok")

                return {
                    "service": self.service_name,
                    "status": "ok",
                    "uptime_seconds": self._get_uptime(),
                    "dependencies": dependencies,
                    "version": "1.0.0",
                    "commit": os.getenv("GIT_COMMIT", "unknown")
                }
            except Exception as e:
                self.logger.error("Health check failed", error=str(e))
                self.metrics.record_health_check("error")
                return JSONResponse(
                    status_code=503,
                    content={
                        "service": self.service_name,
                        "status": "error",
                        "error": str(e)
                    }
                )

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import CONTENT_TYPE_LATEST
            return Response(
                content=self.metrics.render(),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(SheetsProxyException)
        async def sheets_proxy_exception_handler(request: Request, exc: SheetsProxyException):
            """Handle SheetsProxyException."""
            self.logger.error(
                "Service error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            self.metrics.record_error(exc.code)
            return self.error_response(exc.to_response(), exc.status_code)

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler_405(request: Request, exc: StarletteHTTPException):
            """Answer unsupported methods with the service's 405 envelope."""
            if exc.status_code != 405:
                return await http_exception_handler(request, exc)
            return JSONResponse(
                status_code=405,
                content={"error": "Method not allowed"},
                headers={**(exc.headers or {}), **CORS_HEADERS}
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("INTERNAL_ERROR")
            return self.error_response(
                ErrorResponse(error="Internal server error", code="INTERNAL_ERROR"),
                500
            )

    def error_response(self, error: ErrorResponse, status_code: int, **extra: Any) -> JSONResponse:
        """Render an error envelope with the CORS headers attached."""
        content = error.model_dump()
        content.update(extra)
        return JSONResponse(status_code=status_code, content=content, headers=dict(CORS_HEADERS))

    async def _check_dependencies(self) -> Dict[str, Any]:
        """Check service dependencies. Override in subclasses."""
        return {}

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
