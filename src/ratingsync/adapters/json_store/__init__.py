"""JSON file persistence for resolution caches and job state."""

from __future__ import annotations

from .cache_store import InMemoryCacheStore, JsonCacheStore
from .job_state import JobStateStore

__all__ = ["InMemoryCacheStore", "JobStateStore", "JsonCacheStore"]
