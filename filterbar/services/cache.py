"""
Candidate cache for the value dropdown.

Holds the most recently fetched candidate list per (scope, filter key):

- A stored entry is served on every later open of the same key in the same
  scope; the fetch function is not called again until the scope is
  invalidated. Values created after the first load stay hidden until then.
- Single-flight: concurrent requests for a pair with a fetch in progress
  await that same fetch.
- Failed fetches are never stored.
- Entries are replaced wholesale, never edited.

All access happens on one event loop, so no locking is needed.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Optional, Union

from ..exceptions import CandidateFetchError
from ..models.types import CacheEntry, Candidate

logger = logging.getLogger(__name__)

FetchResult = Iterable[Union[Candidate, str, dict]]
FetchFn = Callable[[str, str], Union[Awaitable[FetchResult], FetchResult]]

PairKey = tuple[str, str]


@dataclass
class CacheStats:
    """Statistics for cache performance monitoring."""

    hits: int = 0
    misses: int = 0
    fetches: int = 0
    failures: int = 0
    invalidations: int = 0
    current_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate as percentage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return (self.hits / total) * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "fetches": self.fetches,
            "failures": self.failures,
            "invalidations": self.invalidations,
            "current_size": self.current_size,
            "hit_rate_percent": round(self.hit_rate, 2),
        }


class CandidateCache:
    """
    Per-(scope, filter key) store of fetched candidates with single-flight loading.

    Usage:
        cache = CandidateCache()
        entry = await cache.fetch_and_store("my-project", "label", fetch_labels)
        cache.get("my-project", "label")  # Same entry, no fetch
        cache.invalidate("my-project")  # Scope changed
    """

    def __init__(self, name: str = "candidates"):
        self.name = name
        self._entries: dict[PairKey, CacheEntry] = {}
        self._in_flight: dict[PairKey, asyncio.Task] = {}
        # Bumped per scope on invalidation so in-flight fetches for a dropped scope are not stored
        self._generations: dict[str, int] = {}
        self._stats = CacheStats()

    def get(self, scope_key: str, filter_key: str) -> Optional[CacheEntry]:
        """Return the stored entry for the pair, or None."""
        return self._entries.get((scope_key, filter_key))

    def lookup(self, scope_key: str, filter_key: str) -> Optional[CacheEntry]:
        """Like get(), but a found entry counts as a cache hit."""
        entry = self._entries.get((scope_key, filter_key))
        if entry is not None:
            self._stats.hits += 1
        return entry

    def is_loading(self, scope_key: str, filter_key: str) -> bool:
        """Whether a fetch for the pair is in progress."""
        return (scope_key, filter_key) in self._in_flight

    async def fetch_and_store(
        self,
        scope_key: str,
        filter_key: str,
        fetch_fn: FetchFn,
    ) -> CacheEntry:
        """
        Return the cached entry for the pair, fetching it on first use.

        Args:
            scope_key: Search context (e.g. project) the candidates belong to
            filter_key: Filter key name such as "label"
            fetch_fn: Called as fetch_fn(scope_key, filter_key); may be sync or async

        Returns:
            The stored CacheEntry (the same object for every caller)

        Raises:
            CandidateFetchError: If the fetch failed; nothing is stored
        """
        pair = (scope_key, filter_key)
        entry = self.lookup(scope_key, filter_key)
        if entry is not None:
            return entry

        task = self._in_flight.get(pair)
        if task is None:
            self._stats.misses += 1
            generation = self._generations.get(scope_key, 0)
            task = asyncio.ensure_future(self._load(scope_key, filter_key, fetch_fn, generation))
            self._in_flight[pair] = task
            task.add_done_callback(lambda done: self._finish(pair, done))
        else:
            logger.debug("Joining in-flight fetch for %s/%s", scope_key, filter_key)

        # Callers may be cancelled; the fetch itself keeps running and still gets stored
        return await asyncio.shield(task)

    async def _load(self, scope_key: str, filter_key: str, fetch_fn: FetchFn, generation: int) -> CacheEntry:
        self._stats.fetches += 1
        logger.debug("Fetching candidates for %s/%s", scope_key, filter_key)

        try:
            result = fetch_fn(scope_key, filter_key)
            if inspect.isawaitable(result):
                result = await result
            candidates = tuple(Candidate.coerce(item) for item in result)
        except CandidateFetchError:
            self._stats.failures += 1
            raise
        except Exception as e:
            self._stats.failures += 1
            raise CandidateFetchError(
                f"Could not load {filter_key} candidates: {e}",
                scope_key=scope_key,
                filter_key=filter_key,
            ) from e

        entry = CacheEntry(
            scope_key=scope_key,
            filter_key=filter_key,
            candidates=candidates,
            fetched_at=time.time(),
        )
        if self._generations.get(scope_key, 0) == generation:
            self._entries[(scope_key, filter_key)] = entry
            self._stats.current_size = len(self._entries)
        else:
            logger.debug("Scope %s invalidated during fetch; not storing", scope_key)
        return entry

    def _finish(self, pair: PairKey, task: asyncio.Task) -> None:
        if self._in_flight.get(pair) is task:
            del self._in_flight[pair]
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Candidate fetch for %s/%s failed: %s", pair[0], pair[1], task.exception())

    def invalidate(self, scope_key: Optional[str] = None) -> int:
        """
        Drop cached entries after a scope change.

        Args:
            scope_key: Scope to drop (drops every scope if None)

        Returns:
            Number of entries removed
        """
        if scope_key is None:
            scopes = {scope for scope, _ in self._entries} | {scope for scope, _ in self._in_flight}
        else:
            scopes = {scope_key}

        for scope in scopes:
            self._generations[scope] = self._generations.get(scope, 0) + 1

        doomed = [pair for pair in self._entries if pair[0] in scopes]
        for pair in doomed:
            del self._entries[pair]
        # Later requests start a fresh fetch instead of joining a stale one
        for pair in [pair for pair in self._in_flight if pair[0] in scopes]:
            del self._in_flight[pair]

        self._stats.invalidations += 1
        self._stats.current_size = len(self._entries)
        logger.debug("Invalidated %d candidate entries (scope=%s)", len(doomed), scope_key)
        return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def stats(self) -> CacheStats:
        """Get current cache statistics."""
        self._stats.current_size = len(self._entries)
        return self._stats


# Process-wide cache for callers that do not inject their own
_candidate_cache: CandidateCache | None = None


def get_candidate_cache() -> CandidateCache:
    """Get the global candidate cache instance."""
    global _candidate_cache
    if _candidate_cache is None:
        _candidate_cache = CandidateCache()
    return _candidate_cache


def reset_candidate_cache() -> None:
    """Drop the global candidate cache. Primarily for testing."""
    global _candidate_cache
    _candidate_cache = None
