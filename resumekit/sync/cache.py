# resumekit/sync/cache.py
"""
Shared query cache and the resume list query.

QueryCache is a keyed in-process store with per-key versions and subscriber
notification. Every view of the same key reads the same entry, so optimistic
edits are visible to all observers at once.

ResumeListQuery is the list view over the ("resumes",) key: load() fetches
from the remote store, get_snapshot() reads, replace() writes.
"""

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

from resumekit.models.resume import ResumeListItem
from resumekit.models.store import ResumeStore

logger = logging.getLogger(__name__)

RESUMES_KEY: tuple = ("resumes",)

Listener = Callable[[Hashable, "QueryState"], None]


@dataclass
class QueryState:
    """
    Cache entry for one key.

    version increases on every data write and is what rollbacks and refetches
    compare against.
    """

    data: Any = None
    loaded: bool = False
    version: int = 0
    error: str | None = None
    stale: bool = False
    fetching: int = 0
    pending_mutations: int = 0


class QueryCache:
    """
    Keyed query cache with subscribers.

    Single event loop only: all reads and writes are synchronous, so no
    locking is needed between suspension points.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, QueryState] = {}
        self._listeners: dict[Hashable, list[Listener]] = {}

    def state(self, key: Hashable) -> QueryState:
        """Get the entry for key, creating an empty one if needed."""
        entry = self._entries.get(key)
        if entry is None:
            entry = QueryState()
            self._entries[key] = entry
        return entry

    def get_data(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None or not entry.loaded:
            return default
        return entry.data

    def version(self, key: Hashable) -> int:
        entry = self._entries.get(key)
        return entry.version if entry else 0

    def set_data(self, key: Hashable, data: Any, fresh: bool = False) -> int:
        """
        Overwrite the data for key and notify subscribers.

        Args:
            key: Cache key
            data: New data
            fresh: True when data comes straight from the store. Only fresh
                writes clear the stale flag; local edits leave it as is.

        Returns:
            The new version of the entry
        """
        entry = self.state(key)
        entry.data = data
        entry.loaded = True
        if fresh:
            entry.stale = False
        entry.version += 1
        self._notify(key, entry)
        return entry.version

    def set_error(self, key: Hashable, error: str | None) -> None:
        """Record (or clear) the last fetch error without touching the data."""
        entry = self.state(key)
        entry.error = error
        self._notify(key, entry)

    def invalidate(self, key: Hashable) -> None:
        """Mark key stale so the next ensure_fresh() refetches it."""
        entry = self.state(key)
        entry.stale = True
        self._notify(key, entry)

    def begin_fetch(self, key: Hashable) -> int:
        """Mark a fetch in flight and return the version it started from."""
        entry = self.state(key)
        entry.fetching += 1
        self._notify(key, entry)
        return entry.version

    def end_fetch(self, key: Hashable) -> None:
        entry = self.state(key)
        entry.fetching = max(0, entry.fetching - 1)
        self._notify(key, entry)

    def begin_mutation(self, key: Hashable) -> None:
        self.state(key).pending_mutations += 1

    def end_mutation(self, key: Hashable) -> None:
        entry = self.state(key)
        entry.pending_mutations = max(0, entry.pending_mutations - 1)

    def subscribe(self, key: Hashable, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for changes to key.

        Returns:
            Function that removes the listener
        """
        listeners = self._listeners.setdefault(key, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        """Drop every entry (owning view torn down). Listeners are kept."""
        self._entries.clear()

    def _notify(self, key: Hashable, entry: QueryState) -> None:
        for listener in list(self._listeners.get(key, ())):
            try:
                listener(key, entry)
            except Exception:
                # One broken observer must not abort a cache write
                logger.exception(f"Cache listener failed for key {key!r}")


class ResumeListQuery:
    """
    The resume list as held in the shared cache.

    Attributes:
        key: Cache key of the list
    """

    def __init__(self, store: ResumeStore, cache: QueryCache, key: tuple = RESUMES_KEY) -> None:
        self._store = store
        self._cache = cache
        self.key = key

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def is_loaded(self) -> bool:
        return self._cache.state(self.key).loaded

    @property
    def is_loading(self) -> bool:
        """True while the first fetch is in flight (no data yet)."""
        entry = self._cache.state(self.key)
        return entry.fetching > 0 and not entry.loaded

    @property
    def is_fetching(self) -> bool:
        return self._cache.state(self.key).fetching > 0

    @property
    def is_stale(self) -> bool:
        return self._cache.state(self.key).stale

    @property
    def error(self) -> str | None:
        return self._cache.state(self.key).error

    @property
    def version(self) -> int:
        return self._cache.version(self.key)

    def get_snapshot(self) -> tuple[ResumeListItem, ...]:
        """Current ordered list (empty tuple if never loaded)."""
        return self._cache.get_data(self.key, ())

    def replace(self, items) -> int:
        """
        Overwrite the cached list.

        Returns:
            The new cache version
        """
        return self._cache.set_data(self.key, tuple(items))

    async def load(self) -> bool:
        """
        Fetch the full list from the store.

        On failure the previous list is kept and the error message exposed.
        A result that arrives while a mutation is in flight, or after a
        mutation wrote the list, is discarded and the list marked stale.

        Returns:
            True if the fetched list was applied
        """
        started_at = self._cache.begin_fetch(self.key)
        try:
            items = await self._store.list_all()
        except Exception as e:
            message = str(e) or "Failed to load resumes"
            logger.warning(f"Loading resume list failed: {message}")
            self._cache.set_error(self.key, message)
            return False
        finally:
            self._cache.end_fetch(self.key)

        entry = self._cache.state(self.key)
        if entry.pending_mutations > 0 or entry.version != started_at:
            logger.info(
                f"Discarding stale resume list fetch (started at v{started_at}, "
                f"now v{entry.version}, {entry.pending_mutations} mutation(s) in flight)"
            )
            self._cache.invalidate(self.key)
            return False

        entry.error = None
        self._cache.set_data(self.key, tuple(items), fresh=True)
        logger.info(f"Loaded {len(items)} resume(s)")
        return True
