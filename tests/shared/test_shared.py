"""
Unit tests for shared retry, error and configuration helpers.
"""

from unittest.mock import AsyncMock

import pytest

from shared.config import DEFAULT_SHEET_NAME, SheetsProxyConfig
from shared.errors import ConfigurationError, UpstreamError, UpstreamErrorKind
from shared.retry import RetryConfig, _calculate_delay, call_with_retry


class TestCallWithRetry:

    @pytest.fixture(autouse=True)
    def no_delay(self, monkeypatch):
        monkeypatch.setattr("shared.retry._calculate_delay", lambda attempt, config: 0.0)

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="rows")

        assert await call_with_retry(func, "a", config=RetryConfig(max_attempts=3)) == "rows"
        func.assert_awaited_once_with("a")

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        func = AsyncMock(side_effect=[ValueError("one"), ValueError("two"), "ok"])

        result = await call_with_retry(func, exceptions=(ValueError,), config=RetryConfig(max_attempts=3))

        assert result == "ok"
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_reraises_last_exception(self):
        error = UpstreamError(UpstreamErrorKind.TRANSIENT, "Google Sheets API error: 500")
        func = AsyncMock(side_effect=error)

        with pytest.raises(UpstreamError) as exc_info:
            await call_with_retry(func, exceptions=(UpstreamError,), config=RetryConfig(max_attempts=2))

        assert exc_info.value is error
        assert func.await_count == 2

    @pytest.mark.asyncio
    async def test_should_retry_short_circuits(self):
        func = AsyncMock(side_effect=UpstreamError(UpstreamErrorKind.FORBIDDEN, "Access denied"))

        with pytest.raises(UpstreamError):
            await call_with_retry(
                func,
                exceptions=(UpstreamError,),
                config=RetryConfig(max_attempts=5),
                should_retry=lambda exc: exc.retryable,
            )

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_unlisted_exception_not_retried(self):
        func = AsyncMock(side_effect=KeyError("x"))

        with pytest.raises(KeyError):
            await call_with_retry(func, exceptions=(ValueError,), config=RetryConfig(max_attempts=3))

        assert func.await_count == 1


class TestCalculateDelay:

    def test_exponential_capped(self):
        config = RetryConfig(base_delay=0.5, max_delay=5.0, jitter=False)

        assert [_calculate_delay(n, config) for n in (1, 2, 3, 10)] == [0.5, 1.0, 2.0, 5.0]

    def test_jitter_within_ten_percent(self):
        config = RetryConfig(base_delay=1.0, jitter=True)

        assert 0.9 <= _calculate_delay(1, config) <= 1.1


class TestErrors:

    @pytest.mark.parametrize("kind,status,retryable", [
        (UpstreamErrorKind.FORBIDDEN, 502, False),
        (UpstreamErrorKind.NOT_FOUND, 502, False),
        (UpstreamErrorKind.TRANSIENT, 503, True),
    ])
    def test_upstream_error_classification(self, kind, status, retryable):
        error = UpstreamError(kind, "failed")

        assert error.status_code == status
        assert error.retryable is retryable
        assert error.code == f"UPSTREAM_{kind.name}"

    def test_error_response_envelope(self):
        response = ConfigurationError("Google Sheets API key not configured").to_response()
        body = response.model_dump()

        assert body["success"] is False
        assert body["code"] == "CONFIGURATION_ERROR"
        assert body["error"] == "Google Sheets API key not configured"
        assert body["timestamp"]


class TestSheetsProxyConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_API_KEY", raising=False)
        monkeypatch.delenv("SHEETS_API_KEY", raising=False)

        config = SheetsProxyConfig()

        assert config.sheet_name == DEFAULT_SHEET_NAME
        assert config.cache_ttl_seconds == 180
        assert config.upstream_timeout_seconds == 10
        assert config.upstream_max_attempts == 1
        assert config.serve_stale_on_error is True

    def test_generic_api_key_variable_ignored(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_API_KEY", raising=False)
        monkeypatch.delenv("SHEETS_API_KEY", raising=False)
        monkeypatch.setenv("API_KEY", "some-other-service-secret")

        assert SheetsProxyConfig().api_key is None

    def test_prefixed_api_key_variable(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_API_KEY", raising=False)
        monkeypatch.setenv("SHEETS_API_KEY", "prefixed")

        assert SheetsProxyConfig().api_key == "prefixed"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_SHEETS_API_KEY", "secret")
        monkeypatch.setenv("SHEETS_SPREADSHEET_ID", "abc")
        monkeypatch.setenv("SHEETS_SERVE_STALE_ON_ERROR", "false")

        config = SheetsProxyConfig()

        assert config.api_key == "secret"
        assert config.spreadsheet_id == "abc"
        assert config.serve_stale_on_error is False

    def test_rejects_invalid_ttl(self):
        with pytest.raises(ValueError):
            SheetsProxyConfig(cache_ttl_seconds=0)
