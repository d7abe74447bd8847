# tests/unit/test_editor.py
"""
Unit tests for ResumeEditor.

Tests debounced autosave, retry on transient failures, and optimistic
metadata updates with rollback. Backoff delays are zeroed via EditorConfig.
"""

import asyncio

import pytest
import pytest_asyncio

from resumekit.config.schema import EditorConfig
from resumekit.models.content import ResumeBasics, ResumeData, ResumeMetadata
from resumekit.models.errors import ErrorCode, RemoteError
from resumekit.models.memory_store import InMemoryResumeStore
from resumekit.sync.cache import RESUMES_KEY, QueryCache
from resumekit.sync.editor import (
    SAVE_FAILED,
    UPDATE_FAILED,
    ResumeEditor,
    SaveStatus,
    resume_key,
)
from resumekit.sync.notifications import RecordingNotifier

FAST = EditorConfig(autosave_delay=0.02, retry_min_delay=0, retry_max_delay=0)


class FlakyStore(InMemoryResumeStore):
    """In-memory store that fails the next N writes with queued exceptions."""

    def __init__(self):
        super().__init__("user-1")
        self.content_failures: list[Exception] = []
        self.metadata_failures: list[Exception] = []
        self.saved: list[ResumeData] = []

    async def update_content(self, resume_id, data):
        self.saved.append(data)
        if self.content_failures:
            raise self.content_failures.pop(0)
        return await super().update_content(resume_id, data)

    async def update_metadata(self, resume_id, metadata):
        if self.metadata_failures:
            raise self.metadata_failures.pop(0)
        await super().update_metadata(resume_id, metadata)


def _named(name: str):
    return lambda data: data.model_copy(update={"basics": ResumeBasics(name=name)})


@pytest_asyncio.fixture
async def store() -> FlakyStore:
    return FlakyStore()


@pytest_asyncio.fixture
async def resume_id(store: FlakyStore) -> str:
    record = await store.create("My Resume")
    return record.id


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def editor(store, resume_id, notifier):
    """Loaded editor with fast autosave and an inspectable notifier."""
    editor = ResumeEditor(store, resume_id, notifier=notifier, config=FAST)
    await editor.load()
    return editor


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_puts_document_in_cache(self, store, resume_id):
        cache = QueryCache()
        editor = ResumeEditor(store, resume_id, cache=cache)

        assert await editor.load() is True

        assert editor.document.title == "My Resume"
        assert cache.get_data(resume_key(resume_id)) is editor.document
        assert editor.error is None
        assert not editor.is_loading

    @pytest.mark.asyncio
    async def test_load_missing_resume_exposes_error(self, store):
        editor = ResumeEditor(store, "does-not-exist")

        assert await editor.load() is False

        assert editor.document is None
        assert editor.error == "Resume not found"

    @pytest.mark.asyncio
    async def test_load_signed_out(self, resume_id, store):
        signed_out = InMemoryResumeStore(None, database=store.database)
        editor = ResumeEditor(signed_out, resume_id)

        await editor.load()

        assert editor.error == "Please sign in to continue"

    @pytest.mark.asyncio
    async def test_edit_before_load_is_ignored(self, store, resume_id):
        editor = ResumeEditor(store, resume_id, config=FAST)

        editor.set_data(_named("Ada"))

        assert not editor.has_pending_changes
        assert store.saved == []


class TestAutosave:
    @pytest.mark.asyncio
    async def test_edit_visible_immediately(self, editor):
        editor.set_data(_named("Ada"))

        assert editor.data.basics.name == "Ada"
        assert editor.has_pending_changes

    @pytest.mark.asyncio
    async def test_rapid_edits_saved_once(self, editor, store):
        editor.set_data(_named("A"))
        editor.set_data(_named("Ad"))
        editor.set_data(_named("Ada"))

        await asyncio.sleep(FAST.autosave_delay * 5)

        assert len(store.saved) == 1
        assert store.saved[0].basics.name == "Ada"
        assert editor.save_status is SaveStatus.SAVED
        assert not editor.has_pending_changes

    @pytest.mark.asyncio
    async def test_flush_saves_without_waiting(self, store, resume_id):
        editor = ResumeEditor(
            store, resume_id, config=EditorConfig(autosave_delay=60, retry_min_delay=0)
        )
        await editor.load()
        editor.set_data(ResumeData(basics=ResumeBasics(name="Grace")))

        assert await editor.flush() is True

        assert (await store.get(resume_id)).data.basics.name == "Grace"
        assert len(store.saved) == 1

    @pytest.mark.asyncio
    async def test_flush_without_changes_is_noop(self, editor, store):
        assert await editor.flush() is True
        assert store.saved == []

    @pytest.mark.asyncio
    async def test_save_updates_cached_timestamp(self, editor):
        before = editor.document.updated_at
        editor.set_data(_named("Ada"))

        await editor.flush()

        assert editor.document.updated_at >= before
        assert editor.data.basics.name == "Ada"

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self, editor, store, notifier):
        store.content_failures = [
            RemoteError("Server error", ErrorCode.SERVER),
            ConnectionError("reset"),
        ]
        editor.set_data(_named("Ada"))

        assert await editor.flush() is True

        assert len(store.saved) == 3
        assert editor.save_status is SaveStatus.SAVED
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_gives_up_after_configured_attempts(self, editor, store, notifier):
        store.content_failures = [RemoteError("Server error")] * 5
        editor.set_data(_named("Ada"))

        assert await editor.flush() is False

        assert len(store.saved) == FAST.save_attempts
        assert editor.save_status is SaveStatus.ERROR
        assert editor.has_pending_changes
        assert notifier.errors == [SAVE_FAILED]

    @pytest.mark.asyncio
    async def test_validation_error_not_retried(self, editor, store, notifier):
        store.content_failures = [RemoteError("basics.email: Invalid email", ErrorCode.VALIDATION)]
        editor.set_data(_named("Ada"))

        assert await editor.flush() is False

        assert len(store.saved) == 1
        assert notifier.errors == [SAVE_FAILED]

    @pytest.mark.asyncio
    async def test_close_flushes_pending_edit(self, store, resume_id):
        editor = ResumeEditor(store, resume_id, config=EditorConfig(autosave_delay=60))
        await editor.load()
        editor.set_data(_named("Linus"))

        assert await editor.close() is True

        assert (await store.get(resume_id)).data.basics.name == "Linus"


class TestMetadata:
    @pytest.mark.asyncio
    async def test_change_applied_before_store_confirms(self, editor, store, resume_id, notifier):
        task = editor.set_metadata(ResumeMetadata(title="Renamed", template_id="modern"))

        assert editor.document.title == "Renamed"
        assert editor.document.template_id == "modern"

        await task
        stored = await store.get(resume_id)
        assert (stored.title, stored.template_id) == ("Renamed", "modern")
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_success_invalidates_resume_list(self, store, resume_id):
        cache = QueryCache()
        cache.set_data(RESUMES_KEY, ())
        editor = ResumeEditor(store, resume_id, cache=cache)
        await editor.load()

        await editor.set_metadata(ResumeMetadata(title="Renamed"))

        assert cache.state(RESUMES_KEY).stale

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, editor, store, resume_id, notifier):
        store.metadata_failures = [RemoteError("Server error")]
        original = editor.document

        await editor.set_metadata(ResumeMetadata(title="Renamed"))

        assert editor.document.title == original.title == "My Resume"
        assert notifier.errors == [UPDATE_FAILED]
        assert (await store.get(resume_id)).title == "My Resume"

    @pytest.mark.asyncio
    async def test_failure_does_not_invalidate_list(self, store, resume_id):
        store.metadata_failures = [RemoteError("Server error")]
        cache = QueryCache()
        cache.set_data(RESUMES_KEY, ())
        editor = ResumeEditor(store, resume_id, cache=cache, notifier=RecordingNotifier())
        await editor.load()

        await editor.set_metadata(ResumeMetadata(accent_color="#000000"))

        assert not cache.state(RESUMES_KEY).stale
