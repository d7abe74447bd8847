# tests/unit/test_coordinator.py
"""
Unit tests for ResumeListCoordinator.

Uses a scripted store whose calls can be held open with asyncio.Event so
tests can observe the list while a create or delete is in flight.
"""

import asyncio

import pytest

from resumekit.models.errors import RemoteError, forbidden
from resumekit.models.memory_store import InMemoryResumeStore
from resumekit.models.resume import ResumeListItem
from resumekit.models.store import ResumeStore
from resumekit.sync.cache import RESUMES_KEY, QueryCache
from resumekit.sync.coordinator import (
    CREATE_FAILED,
    CREATE_SUCCESS,
    DELETE_FAILED,
    DELETE_SUCCESS,
    MutationKind,
    ResumeListCoordinator,
    editor_path,
    error_message,
    reinsert,
)
from resumekit.sync.notifications import NotificationLevel, RecordingNotifier

R1 = ResumeListItem(id="1", title="Dev")
R2 = ResumeListItem(id="2", title="Ops")
R3 = ResumeListItem(id="3", title="Data")


class ScriptedStore(ResumeStore):
    """
    Store whose list/create/delete results are set by the test.

    hold(op) returns an Event the call waits on; fail(op, exc) makes the
    call raise once released.
    """

    def __init__(self, items=()):
        self.items = list(items)
        self.created: list[ResumeListItem] = []
        self.calls: list[tuple] = []
        self._gates: dict = {}
        self._failures: dict = {}

    def hold(self, op, target=None) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(op, target)] = gate
        return gate

    def fail(self, op, exc, target=None) -> None:
        self._failures[(op, target)] = exc

    async def _call(self, op, target=None):
        self.calls.append((op, target))
        gate = self._gates.get((op, target)) or self._gates.get((op, None))
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        exc = self._failures.get((op, target)) or self._failures.get((op, None))
        if exc is not None:
            raise exc

    async def list_all(self):
        await self._call("list")
        return list(self.items)

    async def create(self, title=None):
        await self._call("create", title)
        record = self.created.pop(0)
        self.items.insert(0, record)
        return record

    async def delete(self, resume_id):
        await self._call("delete", resume_id)
        self.items = [i for i in self.items if i.id != resume_id]

    async def get(self, resume_id):
        raise NotImplementedError

    async def update_content(self, resume_id, data):
        raise NotImplementedError

    async def update_metadata(self, resume_id, metadata):
        raise NotImplementedError

    async def set_public(self, resume_id, is_public):
        raise NotImplementedError

    async def get_public_link(self, resume_id):
        raise NotImplementedError

    async def get_public(self, slug):
        raise NotImplementedError


async def _loaded(items, **kwargs):
    store = ScriptedStore(items)
    notifier = RecordingNotifier()
    coordinator = ResumeListCoordinator(store, notifier=notifier, **kwargs)
    await coordinator.refetch()
    return store, notifier, coordinator


def _ids(coordinator):
    return [item.id for item in coordinator.resumes]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreate:
    @pytest.mark.asyncio
    async def test_canonical_record_prepended_and_editor_opened(self):
        opened = []
        store, notifier, coordinator = await _loaded([R1], navigate=opened.append)
        new = ResumeListItem(id="2", title="New Resume")
        store.created.append(new)

        await coordinator.create("New Resume")

        assert coordinator.resumes == (new, R1)
        assert opened == [editor_path("2")] == ["/editor/2"]
        assert notifier.messages == [CREATE_SUCCESS]

    @pytest.mark.asyncio
    async def test_list_unchanged_until_store_returns(self):
        store, _, coordinator = await _loaded([R1])
        store.created.append(R2)
        gate = store.hold("create")

        task = coordinator.create()
        await asyncio.sleep(0)

        assert coordinator.is_creating
        assert coordinator.resumes == (R1,)

        gate.set()
        await task
        assert not coordinator.is_creating
        assert _ids(coordinator) == ["2", "1"]

    @pytest.mark.asyncio
    async def test_second_create_dropped_while_in_flight(self):
        store, notifier, coordinator = await _loaded([R1])
        store.created.append(R2)
        gate = store.hold("create")
        flags = []
        coordinator.subscribe(lambda c: flags.append(c.is_creating))

        first = coordinator.create()
        flags_after_first = list(flags)
        second = coordinator.create()

        assert second is None
        assert flags == flags_after_first

        gate.set()
        await first
        assert [c for c in store.calls if c[0] == "create"] == [("create", None)]
        assert notifier.messages == [CREATE_SUCCESS]

    @pytest.mark.asyncio
    async def test_guard_released_after_settle(self):
        store, _, coordinator = await _loaded([])
        store.created.extend([R1, R2])

        await coordinator.create()
        await coordinator.create()

        assert _ids(coordinator) == ["2", "1"]

    @pytest.mark.asyncio
    async def test_failure_leaves_list_and_reports_store_message(self):
        opened = []
        store, notifier, coordinator = await _loaded([R1], navigate=opened.append)
        store.fail("create", RemoteError("Maximum resume limit reached (50)"))

        await coordinator.create()

        assert coordinator.resumes == (R1,)
        assert not coordinator.is_creating
        assert opened == []
        assert notifier.errors == ["Maximum resume limit reached (50)"]
        assert len(notifier.notifications) == 1

    @pytest.mark.asyncio
    async def test_failure_without_message_uses_fallback(self):
        store, notifier, coordinator = await _loaded([R1])
        store.fail("create", RemoteError())

        await coordinator.create()

        assert notifier.errors == [CREATE_FAILED]

    @pytest.mark.asyncio
    async def test_record_already_in_list_is_not_duplicated(self):
        store, _, coordinator = await _loaded([R1])
        store.created.append(R1)

        await coordinator.create()

        assert coordinator.resumes == (R1,)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDelete:
    @pytest.mark.asyncio
    async def test_item_removed_before_store_call_resolves(self):
        store, notifier, coordinator = await _loaded([R1, R2])
        gate = store.hold("delete")

        task = coordinator.remove("1")

        assert _ids(coordinator) == ["2"]
        assert coordinator.is_deleting
        assert notifier.notifications == []

        gate.set()
        await task
        assert _ids(coordinator) == ["2"]
        assert not coordinator.is_deleting
        assert notifier.messages == [DELETE_SUCCESS]

    @pytest.mark.asyncio
    async def test_failure_restores_original_order(self):
        store, notifier, coordinator = await _loaded([R1, R2])
        store.fail("delete", forbidden())

        task = coordinator.remove("1")
        assert _ids(coordinator) == ["2"]
        await task

        assert coordinator.resumes == (R1, R2)
        assert notifier.notifications[0].level is NotificationLevel.ERROR
        assert notifier.errors == ["You don't have access to this resume"]

    @pytest.mark.asyncio
    async def test_failure_without_message_uses_fallback(self):
        store, notifier, coordinator = await _loaded([R1])
        store.fail("delete", RemoteError())

        await coordinator.remove("1")

        assert notifier.errors == [DELETE_FAILED]

    @pytest.mark.asyncio
    async def test_unknown_id_still_calls_store(self):
        store, notifier, coordinator = await _loaded([R1])

        await coordinator.remove("zzz")

        assert ("delete", "zzz") in store.calls
        assert coordinator.resumes == (R1,)
        assert notifier.messages == [DELETE_SUCCESS]

    @pytest.mark.asyncio
    async def test_unknown_id_failure_changes_nothing(self):
        store, notifier, coordinator = await _loaded([R1])
        store.fail("delete", RemoteError("Resume not found"))

        await coordinator.remove("zzz")

        assert coordinator.resumes == (R1,)
        assert notifier.errors == ["Resume not found"]

    @pytest.mark.asyncio
    async def test_concurrent_failure_does_not_resurrect_sibling(self):
        store, notifier, coordinator = await _loaded([R1, R2, R3])
        gate_1 = store.hold("delete", "1")
        gate_2 = store.hold("delete", "2")
        store.fail("delete", RemoteError("Server error"), target="1")

        task_1 = coordinator.remove("1")
        task_2 = coordinator.remove("2")
        assert _ids(coordinator) == ["3"]

        gate_2.set()
        await task_2
        gate_1.set()
        await task_1

        assert _ids(coordinator) == ["1", "3"]
        assert sorted(notifier.messages) == sorted([DELETE_SUCCESS, "Server error"])

    @pytest.mark.asyncio
    async def test_both_concurrent_failures_restore_everything(self):
        store, notifier, coordinator = await _loaded([R1, R2, R3])
        gate = store.hold("delete")
        store.fail("delete", RemoteError("Server error"))

        task_1 = coordinator.remove("1")
        task_2 = coordinator.remove("3")
        assert _ids(coordinator) == ["2"]

        gate.set()
        await asyncio.gather(task_1, task_2)

        assert coordinator.resumes == (R1, R2, R3)
        assert notifier.errors == ["Server error", "Server error"]

    @pytest.mark.asyncio
    async def test_failure_keeps_create_that_landed_meanwhile(self):
        store, _, coordinator = await _loaded([R1, R2])
        store.created.append(R3)
        gate = store.hold("delete")
        store.fail("delete", RemoteError("Server error"))

        task = coordinator.remove("2")
        await coordinator.create()
        gate.set()
        await task

        assert _ids(coordinator) == ["3", "1", "2"]


# ---------------------------------------------------------------------------
# Loading and shared state
# ---------------------------------------------------------------------------


class TestLoading:
    @pytest.mark.asyncio
    async def test_create_during_first_load_leaves_list_stale(self):
        store = ScriptedStore([R1])
        store.created.append(R2)
        coordinator = ResumeListCoordinator(store, notifier=RecordingNotifier())
        list_gate = store.hold("list")
        create_gate = store.hold("create")

        load_task = asyncio.create_task(coordinator.refetch())
        await asyncio.sleep(0)
        coordinator.create()
        list_gate.set()
        assert await load_task is False

        create_gate.set()
        await coordinator.wait_idle()
        assert _ids(coordinator) == ["2"]
        assert coordinator.query.is_stale

        assert await coordinator.ensure_fresh() is True
        assert _ids(coordinator) == ["2", "1"]

    @pytest.mark.asyncio
    async def test_delete_after_invalidate_still_refetches(self):
        store, _, coordinator = await _loaded([R1, R2, R3])
        coordinator.query.cache.invalidate(RESUMES_KEY)
        store.items[0] = ResumeListItem(id="1", title="Lead Dev")

        await coordinator.remove("3")

        assert _ids(coordinator) == ["1", "2"]
        assert coordinator.query.is_stale
        assert await coordinator.ensure_fresh() is True
        assert [item.title for item in coordinator.resumes] == ["Lead Dev", "Ops"]

    @pytest.mark.asyncio
    async def test_raising_listener_does_not_block_create(self):
        store, notifier, coordinator = await _loaded([R1])
        store.created.append(R2)

        def broken(_coordinator):
            raise RuntimeError("listener bug")

        coordinator.subscribe(broken)

        await coordinator.create()

        assert _ids(coordinator) == ["2", "1"]
        assert not coordinator.is_creating
        assert notifier.messages == [CREATE_SUCCESS]

    @pytest.mark.asyncio
    async def test_raising_listener_does_not_block_rollback(self):
        store, notifier, coordinator = await _loaded([R1, R2])
        store.fail("delete", RemoteError("Server error"))

        def broken(_coordinator):
            raise RuntimeError("listener bug")

        coordinator.subscribe(broken)

        await coordinator.remove("1")

        assert _ids(coordinator) == ["1", "2"]
        assert not coordinator.is_deleting
        assert notifier.errors == ["Server error"]

    @pytest.mark.asyncio
    async def test_initial_load_failure_exposes_error(self):
        store = ScriptedStore()
        store.fail("list", ConnectionError("Network unreachable"))
        coordinator = ResumeListCoordinator(store, notifier=RecordingNotifier())

        assert await coordinator.refetch() is False

        assert coordinator.resumes == ()
        assert coordinator.error == "Network unreachable"
        assert not coordinator.is_loading

    @pytest.mark.asyncio
    async def test_refetch_during_delete_is_discarded(self):
        store, _, coordinator = await _loaded([R1, R2])
        gate = store.hold("delete")

        task = coordinator.remove("1")
        # Store still lists R1 because the delete has not run yet
        assert await coordinator.refetch() is False
        assert _ids(coordinator) == ["2"]
        assert coordinator.query.is_stale

        gate.set()
        await task
        assert await coordinator.ensure_fresh() is True
        assert _ids(coordinator) == ["2"]
        assert not coordinator.query.is_stale

    @pytest.mark.asyncio
    async def test_ensure_fresh_skips_loaded_list(self):
        store, _, coordinator = await _loaded([R1])
        calls_before = len(store.calls)

        assert await coordinator.ensure_fresh() is True

        assert len(store.calls) == calls_before

    @pytest.mark.asyncio
    async def test_ensure_fresh_refetches_after_invalidate(self):
        store, _, coordinator = await _loaded([R1])
        store.items.append(R2)
        coordinator.query.cache.invalidate(RESUMES_KEY)

        await coordinator.ensure_fresh()

        assert _ids(coordinator) == ["1", "2"]

    @pytest.mark.asyncio
    async def test_coordinators_sharing_cache_see_same_edit(self):
        cache = QueryCache()
        store = ScriptedStore([R1, R2])
        first = ResumeListCoordinator(store, cache=cache, notifier=RecordingNotifier())
        second = ResumeListCoordinator(store, cache=cache, notifier=RecordingNotifier())
        await first.refetch()
        gate = store.hold("delete")

        task = first.remove("1")

        assert second.resumes == (R2,)
        gate.set()
        await task

    @pytest.mark.asyncio
    async def test_listeners_see_flags_and_list(self):
        store, _, coordinator = await _loaded([R1])
        store.created.append(R2)
        events = []
        unsubscribe = coordinator.subscribe(
            lambda c: events.append((c.is_creating, len(c.resumes)))
        )

        await coordinator.create()
        unsubscribe()

        assert events[0] == (True, 1)
        assert events[-1] == (False, 2)

    @pytest.mark.asyncio
    async def test_pending_tracks_in_flight_mutations(self):
        store, _, coordinator = await _loaded([R1, R2])
        gate = store.hold("delete")

        coordinator.remove("1")
        coordinator.remove("2")

        assert [m.kind for m in coordinator.pending] == [MutationKind.DELETE] * 2
        gate.set()
        await coordinator.wait_idle()
        assert coordinator.pending == []

    @pytest.mark.asyncio
    async def test_works_against_in_memory_store(self):
        store = InMemoryResumeStore("user-1")
        notifier = RecordingNotifier()
        coordinator = ResumeListCoordinator(store, notifier=notifier)
        await coordinator.refetch()

        coordinator.create("First")
        await coordinator.wait_idle()
        created = coordinator.resumes[0]
        coordinator.remove(created.id)
        await coordinator.wait_idle()

        assert coordinator.resumes == ()
        assert await store.list_all() == []
        assert notifier.messages == [CREATE_SUCCESS, DELETE_SUCCESS]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestReinsert:
    def test_goes_after_nearest_earlier_neighbour(self):
        snapshot = (R1, R2, R3)
        assert reinsert((R1, R3), snapshot, R2) == (R1, R2, R3)

    def test_goes_before_later_neighbour_when_earlier_gone(self):
        snapshot = (R1, R2, R3)
        assert reinsert((R3,), snapshot, R1) == (R1, R3)

    def test_appended_when_no_neighbour_left(self):
        extra = ResumeListItem(id="9", title="Other")
        assert reinsert((extra,), (R1, R2), R2) == (extra, R2)

    def test_present_item_left_alone(self):
        assert reinsert((R1, R2), (R1, R2), R2) == (R1, R2)


def test_error_message_prefers_own_message():
    assert error_message(RemoteError("Nope"), "fallback") == "Nope"
    assert error_message(RemoteError(), "fallback") == "fallback"
    assert error_message(ValueError(), "fallback") == "fallback"
    assert error_message(TimeoutError("slow"), "fallback") == "slow"
