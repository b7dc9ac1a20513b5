"""Retrieval orchestration for the Sheets Proxy Service."""

from .coordinator import RetrievalCoordinator

__all__ = ["RetrievalCoordinator"]
