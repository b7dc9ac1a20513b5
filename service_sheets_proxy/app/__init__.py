"""
Sheets Proxy Service package for the Sheets Feedback Proxy.

This package serves team feedback kept in a Google Sheet to browser clients
without hammering the Sheets API. It provides:

- app.main: HTTP surface (feedback, match, stats, health, metrics).
- app.retrieval: Cache lookup, single-flight fetch and stale fallback.
- app.adapters: Single-attempt client for the Sheets values API.
- app.cache: In-process TTL cache.
- app.domain: Record models, row sanitization and team matching.

Guidelines:
- State lives only for the process lifetime; there is no write path.
- At most one upstream request per cache key may be in flight.
- Failures reach callers as a JSON envelope, never as a raw exception.
"""
