"""Unit tests for the WatchCoordinator debounce loop and error handling."""

import asyncio

import pytest

from tailcat.config import TailConfig
from tailcat.coordinator import WatchCoordinator
from tailcat.file_watcher import CHANGE, RENAME
from tailcat.models import SessionState, WatchState
from tailcat.splitter import LineSplitter


class FakeHandle:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeReader:
    """Stands in for IncrementalReader; each pass can be held open by a gate."""

    def __init__(self, error: Exception | None = None):
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.gate = asyncio.Event()
        self.gate.set()
        self.error = error

    async def read_from_cursor(self, state):
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await self.gate.wait()
            if self.error is not None:
                raise self.error
            state.cursor = (state.cursor or 0) + 1
            return 0
        finally:
            self.active -= 1


def _make_coordinator(reader: FakeReader):
    errors = []
    state = SessionState(
        file_path="/tmp/does-not-matter.log",
        splitter=LineSplitter(b"\n"),
        emit=lambda line: None,
        cursor=0,
    )
    coordinator = WatchCoordinator(state, TailConfig(), errors.append)
    coordinator._reader = reader
    handle = FakeHandle()
    state.watch_handle = handle
    state.state = WatchState.WATCHING
    return coordinator, state, handle, errors


# ── Debounce ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_single_notification_runs_one_pass():
    reader = FakeReader()
    coordinator, state, handle, _ = _make_coordinator(reader)

    coordinator._on_notification(handle, CHANGE)
    await coordinator.wait_idle()

    assert reader.calls == 1
    assert state.cursor == 1
    assert state.is_reading is False
    assert state.pending_passes == 0


@pytest.mark.asyncio
async def test_burst_during_pass_coalesces_into_one_extra_pass():
    reader = FakeReader()
    reader.gate.clear()
    coordinator, state, handle, _ = _make_coordinator(reader)

    coordinator._on_notification(handle, CHANGE)
    await asyncio.sleep(0)
    assert state.is_reading is True

    for _ in range(20):
        coordinator._on_notification(handle, CHANGE)
    assert state.pending_passes == 1

    reader.gate.set()
    await coordinator.wait_idle()

    assert reader.calls == 2
    assert reader.max_active == 1
    assert state.is_reading is False
    assert state.pending_passes == 0


@pytest.mark.asyncio
async def test_rename_events_are_ignored():
    reader = FakeReader()
    coordinator, state, handle, _ = _make_coordinator(reader)

    coordinator._on_notification(handle, RENAME)
    await coordinator.wait_idle()

    assert reader.calls == 0
    assert state.read_task is None


@pytest.mark.asyncio
async def test_events_from_detached_handle_are_dropped():
    reader = FakeReader()
    coordinator, state, _, _ = _make_coordinator(reader)

    coordinator._on_notification(FakeHandle(), CHANGE)
    await coordinator.wait_idle()

    assert reader.calls == 0


# ── Errors ──────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_missing_file_is_tolerated():
    reader = FakeReader(error=FileNotFoundError("gone"))
    coordinator, state, handle, errors = _make_coordinator(reader)

    coordinator._on_notification(handle, CHANGE)
    await coordinator.wait_idle()

    assert errors == []
    assert state.watch_handle is handle
    assert handle.closed is False
    assert state.is_reading is False
    assert state.pending_passes == 0

    # The next notification goes through the same tolerant path
    coordinator._on_notification(handle, CHANGE)
    await coordinator.wait_idle()
    assert reader.calls == 2
    assert errors == []


@pytest.mark.asyncio
async def test_fatal_error_detaches_and_reports():
    boom = PermissionError("denied")
    reader = FakeReader(error=boom)
    coordinator, state, handle, errors = _make_coordinator(reader)

    coordinator._on_notification(handle, CHANGE)
    await coordinator.wait_idle()

    assert errors == [boom]
    assert handle.closed is True
    assert state.watch_handle is None
    assert state.state == WatchState.IDLE
    assert state.is_reading is False


# ── Stop ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_stop_lets_in_flight_pass_finish():
    reader = FakeReader()
    reader.gate.clear()
    coordinator, state, handle, _ = _make_coordinator(reader)

    coordinator._on_notification(handle, CHANGE)
    await asyncio.sleep(0)
    await coordinator.stop()

    assert handle.closed is True
    assert state.watch_handle is None

    reader.gate.set()
    await coordinator.wait_idle()
    # The pass completed and kept its cursor advance
    assert state.cursor == 1


@pytest.mark.asyncio
async def test_stop_is_idempotent():
    coordinator, state, handle, _ = _make_coordinator(FakeReader())
    await coordinator.stop()
    await coordinator.stop()
    assert handle.closed is True
    assert state.watch_handle is None
