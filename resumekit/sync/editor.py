# resumekit/sync/editor.py
"""
Single-resume editor state with autosave.

The document lives in the shared QueryCache under ("resume", id). Content
edits land in the cache at once and are saved after a quiet period; saves
run one at a time and are retried on transient failures. Metadata edits are
applied optimistically and rolled back if the store rejects them.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from enum import Enum

from resumekit.config.schema import EditorConfig
from resumekit.models.content import ResumeData, ResumeMetadata
from resumekit.models.resume import ResumeDocument
from resumekit.models.store import ResumeStore
from resumekit.sync.cache import RESUMES_KEY, QueryCache
from resumekit.sync.coordinator import error_message
from resumekit.sync.notifications import LoggingNotifier, Notifier
from resumekit.sync.retry import save_retrying

logger = logging.getLogger(__name__)

SAVE_FAILED = "Failed to save. Your changes may be lost."
UPDATE_FAILED = "Failed to update"


class SaveStatus(Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


def resume_key(resume_id: str) -> tuple:
    return ("resume", resume_id)


class ResumeEditor:
    """
    Editing session for one resume.

    Usage:
        editor = ResumeEditor(store, resume_id, cache=cache)
        await editor.load()
        editor.set_data(lambda data: data.model_copy(update={...}))
        await editor.flush()
    """

    def __init__(
        self,
        store: ResumeStore,
        resume_id: str,
        cache: QueryCache | None = None,
        notifier: Notifier | None = None,
        config: EditorConfig | None = None,
    ) -> None:
        self._store = store
        self._resume_id = resume_id
        self._cache = cache or QueryCache()
        self._notifier = notifier or LoggingNotifier()
        self._config = config or EditorConfig()
        self._key = resume_key(resume_id)
        self._save_status = SaveStatus.IDLE
        self._pending: ResumeData | None = None
        self._timer: asyncio.Task | None = None
        self._save_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def resume_id(self) -> str:
        return self._resume_id

    @property
    def document(self) -> ResumeDocument | None:
        return self._cache.get_data(self._key)

    @property
    def data(self) -> ResumeData | None:
        doc = self.document
        return doc.data if doc else None

    @property
    def is_loading(self) -> bool:
        entry = self._cache.state(self._key)
        return entry.fetching > 0 and not entry.loaded

    @property
    def error(self) -> str | None:
        return self._cache.state(self._key).error

    @property
    def save_status(self) -> SaveStatus:
        return self._save_status

    @property
    def has_pending_changes(self) -> bool:
        return self._pending is not None

    async def load(self) -> bool:
        """
        Fetch the document from the store.

        Returns:
            True on success; on failure the error is exposed via .error
        """
        self._cache.begin_fetch(self._key)
        try:
            doc = await self._store.get(self._resume_id)
        except Exception as e:
            message = error_message(e, "Failed to load resume")
            logger.warning(f"Loading resume {self._resume_id} failed: {message}")
            self._cache.set_error(self._key, message)
            return False
        finally:
            self._cache.end_fetch(self._key)

        self._cache.state(self._key).error = None
        self._cache.set_data(self._key, doc, fresh=True)
        return True

    # -- Content -----------------------------------------------------------

    def set_data(self, update: ResumeData | Callable[[ResumeData], ResumeData]) -> None:
        """
        Replace the content (or apply an updater to it) and schedule autosave.

        Ignored until the document has been loaded.
        """
        doc = self.document
        if doc is None:
            logger.warning(f"Edit ignored: resume {self._resume_id} not loaded")
            return

        new_data = update(doc.data) if callable(update) else update
        self._cache.set_data(self._key, replace(doc, data=new_data))
        self._schedule_save(new_data)

    def _schedule_save(self, data: ResumeData) -> None:
        self._pending = data
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = self._spawn(self._debounce())

    async def _debounce(self) -> None:
        await asyncio.sleep(self._config.autosave_delay)
        self._timer = None
        await self._save_pending()

    async def _save_pending(self) -> bool:
        async with self._save_lock:
            data = self._pending
            if data is None:
                return True
            return await self._save(data)

    async def _save(self, data: ResumeData) -> bool:
        self._save_status = SaveStatus.SAVING
        try:
            async for attempt in save_retrying(self._config):
                with attempt:
                    updated_at = await self._store.update_content(self._resume_id, data)
        except Exception as e:
            logger.error(f"Saving resume {self._resume_id} failed: {e!r}")
            self._save_status = SaveStatus.ERROR
            self._notifier.error(SAVE_FAILED)
            return False

        # A newer edit may have arrived while saving; keep it pending
        if self._pending is data:
            self._pending = None
        self._save_status = SaveStatus.SAVED

        doc = self.document
        if doc is not None:
            self._cache.set_data(self._key, replace(doc, updated_at=updated_at))
        logger.info(f"Saved resume {self._resume_id}")
        return True

    async def flush(self) -> bool:
        """
        Save any pending edit now instead of waiting for the autosave delay.

        Returns:
            False if the last save attempt failed
        """
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            self._timer = None
        if self._pending is None:
            async with self._save_lock:
                return self._save_status is not SaveStatus.ERROR
        return await self._save_pending()

    # -- Metadata ----------------------------------------------------------

    def set_metadata(self, metadata: ResumeMetadata) -> asyncio.Task:
        """
        Apply a metadata change optimistically.

        The cached document changes before this method returns. If the store
        rejects the change, the document is restored and an error is shown.
        On success the resume list is invalidated.

        Returns:
            The task running the store update
        """
        previous = self.document
        if previous is not None:
            self._cache.set_data(self._key, replace(previous, **metadata.changes()))
        return self._spawn(self._run_metadata(metadata, previous))

    async def _run_metadata(
        self, metadata: ResumeMetadata, previous: ResumeDocument | None
    ) -> None:
        try:
            await self._store.update_metadata(self._resume_id, metadata)
        except Exception as e:
            logger.warning(f"Metadata update of {self._resume_id} failed: {e!r}")
            if previous is not None:
                self._cache.set_data(self._key, previous)
            self._notifier.error(UPDATE_FAILED)
            return

        self._cache.invalidate(RESUMES_KEY)

    # -- Lifecycle ---------------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> bool:
        """Flush pending edits and wait for in-flight metadata updates."""
        saved = await self.flush()
        pending = [t for t in self._tasks if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        return saved
