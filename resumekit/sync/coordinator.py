# resumekit/sync/coordinator.py
"""
Resume list mutation coordinator.

Applies create and delete intents to the shared resume list:

    - create: admitted only when no other create is in flight; the list is
      updated once the store returns the canonical record (no placeholder).
    - delete: the item is removed from the list immediately, before the
      store call is issued, and restored if the store call fails.

Both are fire-and-forget: create() and remove() schedule an asyncio task and
return it. Every settled mutation emits exactly one notification. Store
failures never propagate out of the coordinator.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from resumekit.models.errors import RemoteError
from resumekit.models.resume import ResumeListItem
from resumekit.models.store import ResumeStore
from resumekit.sync.cache import QueryCache, ResumeListQuery
from resumekit.sync.notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

CREATE_SUCCESS = "Resume created"
CREATE_FAILED = "Failed to create resume"
DELETE_SUCCESS = "Resume deleted"
DELETE_FAILED = "Failed to delete resume"


def editor_path(resume_id: str) -> str:
    """Path of the editor page for a resume."""
    return f"/editor/{resume_id}"


def error_message(exc: BaseException, fallback: str) -> str:
    """Message to show for a failed mutation (the error's own, if it has one)."""
    if isinstance(exc, RemoteError):
        return exc.message or fallback
    return str(exc) or fallback


class MutationKind(Enum):
    CREATE = "create"
    DELETE = "delete"


@dataclass
class PendingMutation:
    """
    One in-flight create or delete.

    Attributes:
        kind: CREATE or DELETE
        target: Title for create, resume id for delete
        snapshot: List before the optimistic edit (delete only)
        version: Cache version written by the optimistic edit (delete only)
    """

    kind: MutationKind
    target: str | None
    snapshot: tuple[ResumeListItem, ...] | None = None
    version: int | None = None


def reinsert(
    current: tuple[ResumeListItem, ...],
    snapshot: tuple[ResumeListItem, ...],
    item: ResumeListItem,
) -> tuple[ResumeListItem, ...]:
    """
    Put item back into current at its position from snapshot.

    The item goes right after its nearest earlier neighbour that is still
    present, else right before its nearest later neighbour, else at the end.
    Edits made to current by other mutations are kept.
    """
    if any(existing.id == item.id for existing in current):
        return current

    ids = [existing.id for existing in current]
    index = next(i for i, existing in enumerate(snapshot) if existing.id == item.id)

    for earlier in reversed(snapshot[:index]):
        if earlier.id in ids:
            pos = ids.index(earlier.id) + 1
            return current[:pos] + (item,) + current[pos:]

    for later in snapshot[index + 1:]:
        if later.id in ids:
            pos = ids.index(later.id)
            return current[:pos] + (item,) + current[pos:]

    return current + (item,)


class ResumeListCoordinator:
    """
    Owns the resume list while mutations are in flight.

    Exposes the list, loading/error state and the is_creating/is_deleting
    flags. Listeners registered with subscribe() are called on every list
    change and on every flag change.
    """

    def __init__(
        self,
        store: ResumeStore,
        cache: QueryCache | None = None,
        notifier: Notifier | None = None,
        navigate: Callable[[str], None] | None = None,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            store: Remote resume store
            cache: Shared query cache (a private one if omitted)
            notifier: Receives one message per settled mutation
            navigate: Called with the editor path after a successful create
        """
        self._store = store
        self._query = ResumeListQuery(store, cache or QueryCache())
        self._notifier = notifier or LoggingNotifier()
        self._navigate = navigate
        self._creating = False
        self._pending: list[PendingMutation] = []
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Callable[["ResumeListCoordinator"], None]] = []
        self._unsubscribe = self._query.cache.subscribe(
            self._query.key, lambda _key, _state: self._changed()
        )

    # -- Exposed state -----------------------------------------------------

    @property
    def query(self) -> ResumeListQuery:
        return self._query

    @property
    def resumes(self) -> tuple[ResumeListItem, ...]:
        return self._query.get_snapshot()

    @property
    def is_loading(self) -> bool:
        return self._query.is_loading

    @property
    def error(self) -> str | None:
        return self._query.error

    @property
    def is_creating(self) -> bool:
        return self._creating

    @property
    def is_deleting(self) -> bool:
        return any(m.kind is MutationKind.DELETE for m in self._pending)

    @property
    def pending(self) -> list[PendingMutation]:
        return list(self._pending)

    def subscribe(self, listener: Callable[["ResumeListCoordinator"], None]) -> Callable[[], None]:
        """
        Register a listener for list and flag changes.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                # A broken observer must not stop a mutation from settling
                logger.exception("Resume list listener failed")

    # -- Loading -----------------------------------------------------------

    async def refetch(self) -> bool:
        """Fetch the list from the store (see ResumeListQuery.load)."""
        return await self._query.load()

    async def ensure_fresh(self) -> bool:
        """Fetch the list if it was never loaded or has been invalidated."""
        if self._query.is_loaded and not self._query.is_stale:
            return True
        return await self._query.load()

    # -- Mutations ---------------------------------------------------------

    def create(self, title: str | None = None) -> asyncio.Task | None:
        """
        Request creation of a resume.

        Dropped silently (returns None) while another create is in flight.

        Returns:
            The task running the create, or None if dropped
        """
        if self._creating:
            logger.info("Create request dropped: a create is already in flight")
            return None

        self._creating = True
        mutation = PendingMutation(MutationKind.CREATE, title)
        self._begin(mutation)
        return self._spawn(self._run_create(mutation))

    def remove(self, resume_id: str) -> asyncio.Task:
        """
        Request deletion of a resume.

        The item leaves the cached list before this method returns.

        Returns:
            The task running the delete
        """
        snapshot = self._query.get_snapshot()
        mutation = PendingMutation(MutationKind.DELETE, resume_id, snapshot=snapshot)

        if any(item.id == resume_id for item in snapshot):
            mutation.version = self._query.replace(
                item for item in snapshot if item.id != resume_id
            )

        self._begin(mutation)
        return self._spawn(self._run_delete(mutation))

    async def wait_idle(self) -> None:
        """Wait until every mutation issued so far has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # -- Internals ---------------------------------------------------------

    def _begin(self, mutation: PendingMutation) -> None:
        self._pending.append(mutation)
        self._query.cache.begin_mutation(self._query.key)
        self._changed()

    def _settle(self, mutation: PendingMutation) -> None:
        self._pending.remove(mutation)
        self._query.cache.end_mutation(self._query.key)
        if mutation.kind is MutationKind.CREATE:
            self._creating = False
        self._changed()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_create(self, mutation: PendingMutation) -> None:
        try:
            record = await self._store.create(mutation.target)
        except Exception as e:
            logger.warning(f"Create failed: {e!r}")
            self._settle(mutation)
            self._notifier.error(error_message(e, CREATE_FAILED))
            return

        current = self._query.get_snapshot()
        self._query.replace((record,) + tuple(i for i in current if i.id != record.id))
        self._settle(mutation)
        logger.info(f"Created resume {record.id}")
        self._notifier.success(CREATE_SUCCESS)
        if self._navigate is not None:
            self._navigate(editor_path(record.id))

    async def _run_delete(self, mutation: PendingMutation) -> None:
        try:
            await self._store.delete(mutation.target)
        except Exception as e:
            logger.warning(f"Delete of {mutation.target} failed: {e!r}")
            self._rollback(mutation)
            self._settle(mutation)
            self._notifier.error(error_message(e, DELETE_FAILED))
            return

        self._settle(mutation)
        logger.info(f"Deleted resume {mutation.target}")
        self._notifier.success(DELETE_SUCCESS)

    def _rollback(self, mutation: PendingMutation) -> None:
        """Undo this delete's optimistic removal without touching sibling edits."""
        if mutation.version is None:
            return  # nothing was removed locally

        if self._query.version == mutation.version:
            self._query.replace(mutation.snapshot)
            return

        removed = next(i for i in mutation.snapshot if i.id == mutation.target)
        self._query.replace(reinsert(self._query.get_snapshot(), mutation.snapshot, removed))
        logger.info(f"Re-inserted {mutation.target} after concurrent list changes")

    def close(self) -> None:
        """Detach from the shared cache."""
        self._unsubscribe()
        self._listeners.clear()

