"""TTL result cache keyed by query fingerprint.

Rules:
  - The fingerprint covers every SearchQuery field, offset included, so a
    continuation batch never collides with page one.
  - Stale entries and entries with zero jobs are misses.
  - ``merge`` only ever appends (dedup by Job.id); reads and writes happen
    under one lock with no await in between, so a late writer cannot shrink
    the accumulated set.
"""

import hashlib
import json
import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from src.core.db import delete_cache_value, get_cache_value, purge_cache, set_cache_value
from src.core.schemas import CacheEntry, Job, SearchQuery

logger = logging.getLogger(__name__)

KEY_PREFIX = "job-search"
LAST_SEARCH_KEY = "last-job-search"
DEFAULT_TTL_S = 300.0

_JOBS = TypeAdapter(list[Job])


class KeyValueStore(Protocol):
    """String-keyed store that remembers when each value was written."""

    def get(self, key: str) -> tuple[str, float] | None: ...
    def set(self, key: str, value: str, stored_at: float) -> None: ...
    def delete(self, key: str) -> None: ...
    def purge(self, older_than: float) -> int: ...


class MemoryStore:
    """Process-local store, used by tests and embedded callers."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> tuple[str, float] | None:
        return self._data.get(key)

    def set(self, key: str, value: str, stored_at: float) -> None:
        self._data[key] = (value, stored_at)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def purge(self, older_than: float) -> int:
        stale = [k for k, (_, at) in self._data.items() if at < older_than]
        for k in stale:
            del self._data[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._data)


class SQLiteStore:
    """Store backed by the ``kv_cache`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str) -> tuple[str, float] | None:
        return get_cache_value(self._conn, key)

    def set(self, key: str, value: str, stored_at: float) -> None:
        set_cache_value(self._conn, key, value, stored_at)

    def delete(self, key: str) -> None:
        delete_cache_value(self._conn, key)

    def purge(self, older_than: float) -> int:
        return purge_cache(self._conn, older_than)


def fingerprint(query: SearchQuery) -> str:
    """Deterministic cache key over every query field, offset included."""
    payload = json.dumps(query.model_dump(mode="json"), sort_keys=True)
    return f"{KEY_PREFIX}:{hashlib.sha256(payload.encode('utf-8')).hexdigest()}"


def accumulation_key(query: SearchQuery) -> str:
    """Key of the merged result set for all batches of one logical search."""
    return f"{fingerprint(query.with_offset(0))}:accumulated"


class ResultCache:
    """Short-lived memoization of search results.

    Usage::

        cache = ResultCache(MemoryStore())
        entry = cache.get(query)
        if entry is None:
            jobs = await adapter.search(query)
            cache.put(query, jobs)
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl_s: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._ttl = ttl_s
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def ttl_s(self) -> float:
        return self._ttl

    def get(self, query: SearchQuery) -> CacheEntry | None:
        """Return a fresh, non-empty entry for the query, else None."""
        return self.get_key(fingerprint(query))

    def get_key(self, key: str) -> CacheEntry | None:
        entry = self._read(key)
        if entry is None:
            return None
        now = self._clock()
        if not entry.is_fresh(now, self._ttl):
            logger.debug("Cache expired for %s (age %.0fs)", key, now - entry.cached_at)
            return None
        if not entry.jobs:
            logger.debug("Cached result for %s is empty, treating as miss", key)
            return None
        logger.info(
            "Using cached results for %s (age %.0fs)", key, now - entry.cached_at,
        )
        return entry

    def put(self, query: SearchQuery, jobs: list[Job]) -> None:
        self.put_key(fingerprint(query), jobs)

    def put_key(self, key: str, jobs: list[Job]) -> None:
        with self._lock:
            self._write(key, jobs)
        logger.debug("Cached %d jobs under %s", len(jobs), key)

    def merge(self, key: str, jobs: list[Job]) -> list[Job]:
        """Append jobs not yet stored under ``key``; return the merged set.

        Existing entries are kept even when stale, so an accumulated set is
        only ever extended.
        """
        with self._lock:
            existing = self._read(key)
            merged = list(existing.jobs) if existing else []
            seen = {job.id for job in merged}
            added = 0
            for job in jobs:
                if job.id not in seen:
                    seen.add(job.id)
                    merged.append(job)
                    added += 1
            self._write(key, merged)
        logger.debug("Merged %d new jobs into %s (%d total)", added, key, len(merged))
        return merged

    def invalidate(self, query: SearchQuery) -> None:
        self._store.delete(fingerprint(query))

    def remember_last_search(self, jobs: list[Job]) -> None:
        """Persist the latest result set for detail views outside the engine."""
        self.put_key(LAST_SEARCH_KEY, jobs)

    def last_search(self) -> list[Job]:
        entry = self._read(LAST_SEARCH_KEY)
        return list(entry.jobs) if entry else []

    def purge_expired(self) -> int:
        removed = self._store.purge(self._clock() - self._ttl)
        if removed:
            logger.info("Purged %d expired cache entries", removed)
        return removed

    # --- Private helpers ---

    def _read(self, key: str) -> CacheEntry | None:
        row = self._store.get(key)
        if row is None:
            return None
        value, stored_at = row
        try:
            jobs = _JOBS.validate_json(value)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry %s", key, exc_info=True)
            return None
        return CacheEntry(jobs=jobs, cached_at=stored_at)

    def _write(self, key: str, jobs: list[Job]) -> None:
        self._store.set(key, _JOBS.dump_json(jobs).decode("utf-8"), self._clock())
