"""
Retrieval coordinator for the Sheets Proxy Service.

Serves sheet feedback from the TTL cache when fresh and otherwise fetches it
from the Sheets API. Concurrent callers on a cold or expired key share a
single upstream fetch: the first caller registers an in-flight task for the
key and everyone arriving before it settles awaits that same task, so at most
one upstream request per key is outstanding at any time.

When the upstream fails and an older entry exists, the coordinator can serve
that entry flagged as stale instead of failing (``serve_stale_on_error``).
Configuration failures are never masked this way.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from shared.logging import get_logger
from shared.errors import ConfigurationError, UpstreamError
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, call_with_retry

from ..cache.ttl_cache import TTLCache
from ..domain.models import (
    ConfigurationFailure,
    FeedbackRecord,
    FetchOutcome,
    FetchSuccess,
    UpstreamFailure,
)
from ..domain.sanitizer import sanitize_rows


class RowSource(Protocol):
    async def fetch_rows(self, spreadsheet_id: str, range_name: str) -> Sequence[Any]:
        ...


Records = Tuple[FeedbackRecord, ...]


class RetrievalCoordinator:
    """Cache lookup, single-flight upstream fetch and cache population."""

    def __init__(
        self,
        client: RowSource,
        cache: TTLCache[Records],
        spreadsheet_id: str,
        sheet_name: str,
        *,
        serve_stale_on_error: bool = True,
        max_attempts: int = 1,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.client = client
        self.cache = cache
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.serve_stale_on_error = serve_stale_on_error
        self.retry_config = RetryConfig(
            max_attempts=max_attempts,
            base_delay=0.5,
            max_delay=5.0,
            exponential_base=2.0,
            jitter=True
        )
        self.metrics = metrics
        self.logger = get_logger("sheets_proxy.coordinator")

        self._in_flight: Dict[str, "asyncio.Task[FetchOutcome]"] = {}
        self._stats = {
            "cache_hits": 0,
            "cache_misses": 0,
            "coalesced": 0,
            "stale_served": 0,
            "upstream_calls": 0,
            "upstream_failures": 0,
        }

    @property
    def cache_key(self) -> str:
        return f"{self.spreadsheet_id}-{self.sheet_name}"

    async def retrieve(self) -> FetchOutcome:
        """Return sheet feedback, fetching upstream only when needed."""
        key = self.cache_key

        if self.cache.is_valid(key):
            entry = self.cache.get(key)
            self._count("cache_hits", "hit")
            self.logger.debug("Returning cached sheet data", cache_key=key)
            return FetchSuccess(records=entry.data, served_from_cache=True, fetched_at=entry.fetched_at)

        task = self._in_flight.get(key)
        if task is None:
            self._count("cache_misses", "miss")
            self.logger.info("Fetching fresh sheet data", cache_key=key)
            task = asyncio.ensure_future(self._fetch_and_populate(key))
            self._in_flight[key] = task
        else:
            self._count("coalesced", "coalesced")
            self.logger.debug("Joining in-flight sheet fetch", cache_key=key)

        # A cancelled caller must not cancel the fetch the others are awaiting.
        return await asyncio.shield(task)

    def is_fetching(self, key: Optional[str] = None) -> bool:
        return (key or self.cache_key) in self._in_flight

    def stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "in_flight": len(self._in_flight),
            "cache": self.cache.stats(),
        }

    async def _fetch_and_populate(self, key: str) -> FetchOutcome:
        try:
            self._stats["upstream_calls"] += 1
            start = time.perf_counter()
            try:
                rows = await call_with_retry(
                    self.client.fetch_rows,
                    self.spreadsheet_id,
                    self.sheet_name,
                    exceptions=(UpstreamError,),
                    config=self.retry_config,
                    should_retry=lambda exc: exc.retryable,
                )
            except ConfigurationError as exc:
                self._record_failure("configuration")
                self.logger.error("Sheets proxy is not configured", error=exc.message)
                return ConfigurationFailure(message=exc.message)
            except UpstreamError as exc:
                self._record_failure(exc.kind.value)
                failure = UpstreamFailure(kind=exc.kind, message=exc.message, details=exc.details)
                return self._fallback(key, failure)
            finally:
                self._observe_duration(time.perf_counter() - start)

            records = tuple(sanitize_rows(rows))
            # Zero records is a legitimate answer and is cached like any other.
            entry = self.cache.put(key, records)
            self._record_fetch("success")
            self.logger.info("Sheet data refreshed", cache_key=key, count=len(records))
            return FetchSuccess(records=records, served_from_cache=False, fetched_at=entry.fetched_at)
        finally:
            self._in_flight.pop(key, None)

    def _fallback(self, key: str, failure: UpstreamFailure) -> FetchOutcome:
        """Serve an expired entry in place of an upstream failure, if allowed."""
        entry = self.cache.get(key)
        if not self.serve_stale_on_error or entry is None:
            return failure

        self._count("stale_served", "stale")
        self.logger.warning(
            "Serving stale sheet data after upstream failure",
            cache_key=key,
            kind=failure.kind.value,
            error=failure.message,
            age_seconds=self.cache.age(key),
        )
        return FetchSuccess(records=entry.data, served_from_cache=True, stale=True, fetched_at=entry.fetched_at)

    def _count(self, stat: str, lookup_result: str) -> None:
        self._stats[stat] += 1
        if self.metrics:
            self.metrics.increment_counter("cache_lookups_total", result=lookup_result)

    def _record_fetch(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_fetches_total", result=result)

    def _record_failure(self, result: str) -> None:
        self._stats["upstream_failures"] += 1
        self._record_fetch(result)

    def _observe_duration(self, duration: float) -> None:
        if self.metrics:
            self.metrics.get_metric("upstream_fetch_duration_seconds").observe(duration)
