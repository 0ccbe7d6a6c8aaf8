"""WatchCoordinator: drives a session through wait, catch-up and live watching."""

import asyncio
import logging
from typing import Callable

from tailcat.config import TailConfig
from tailcat.directory_watcher import DirectoryWatcher
from tailcat.file_watcher import CHANGE, FileWatchHandle
from tailcat.models import SessionState, WatchState
from tailcat.reader import IncrementalReader, file_size

logger = logging.getLogger(__name__)

# A burst of notifications during a pass collapses into one follow-up pass
MAX_PENDING_PASSES = 1


class WatchCoordinator:
    """Owns the lifecycle of one session's watch.

    States move IDLE -> WAITING_FOR_FILE -> CATCHING_UP -> WATCHING. While
    WATCHING, every data-change notification either starts the debounce loop
    or, when a pass is already running, bumps ``pending_passes`` so the loop
    runs once more before going idle.
    """

    def __init__(
        self,
        state: SessionState,
        config: TailConfig,
        on_error: Callable[[BaseException], None],
    ):
        self._state = state
        self._config = config
        self._on_error = on_error
        self._reader = IncrementalReader(config)
        self._creation: asyncio.Future | None = None

    async def start(self, cursor: int | None = None):
        """Establish the watch. Returns once the live watch is attached.

        The observer is started before the catch-up pass, so bytes written
        while catching up raise a notification that queues one more pass.
        An ``unwatch()`` that lands while waiting or catching up abandons
        the start and leaves the session unwatched.
        """
        state = self._state

        # A pass left over from a previous watch must finish before we
        # touch the cursor or run a catch-up pass of our own
        await self.wait_idle()
        generation = state.generation

        if cursor is not None and cursor != state.cursor:
            state.cursor = cursor
            state.splitter.reset()

        try:
            while True:
                size = await self._wait_for_file(generation)
                if size is None:
                    logger.info("Watch of %s cancelled while waiting", state.file_path)
                    return

                if state.cursor is None:
                    state.cursor = size
                elif state.cursor > size:
                    # os.stat may report a stale size; never sit past the end
                    state.cursor = size

                if state.watch_handle is not None:
                    state.state = WatchState.WATCHING
                    return
                handle = FileWatchHandle(
                    state.file_path,
                    asyncio.get_running_loop(),
                    self._on_notification,
                    self._config.observer_timeout,
                )
                handle.start()
                state.watch_handle = handle
                state.state = WatchState.CATCHING_UP

                try:
                    await self._run_pass()
                except FileNotFoundError:
                    logger.info("%s vanished during catch-up, waiting again", state.file_path)
                    await self._detach()
                    continue
                break
        except BaseException:
            await self._detach()
            state.state = WatchState.IDLE
            raise

        if state.generation != generation:
            return
        state.state = WatchState.WATCHING
        if state.pending_passes > 0:
            # Something was written while we were catching up
            self._schedule_drain()
        logger.info("Watching %s from cursor %d", state.file_path, state.cursor)

    async def _wait_for_file(self, generation: int) -> int | None:
        """Return the current file size, waiting for creation if it is missing.

        Returns None when the session was stopped while waiting.
        """
        state = self._state
        waited = False
        while True:
            if state.generation != generation:
                return None
            try:
                size = await file_size(state.file_path)
            except FileNotFoundError:
                state.state = WatchState.WAITING_FOR_FILE
                watcher = DirectoryWatcher(state.file_path, self._config.observer_timeout)
                self._creation = asyncio.ensure_future(watcher.wait_for_creation())
                try:
                    await self._creation
                except asyncio.CancelledError:
                    if state.generation != generation:
                        return None
                    raise
                finally:
                    self._creation = None
                waited = True
                continue

            if waited and state.cursor is None:
                # Everything in a freshly created file is new
                state.cursor = 0
            return size

    async def _run_pass(self):
        state = self._state
        state.is_reading = True
        try:
            await self._reader.read_from_cursor(state)
        finally:
            state.is_reading = False

    async def _detach(self):
        state = self._state
        handle, state.watch_handle = state.watch_handle, None
        state.pending_passes = 0
        if handle is not None:
            await asyncio.to_thread(handle.close)
        return handle

    async def stop(self):
        """Detach the live watch and abandon any start still in progress.

        An in-flight pass is left to finish.
        """
        state = self._state
        state.generation += 1
        state.state = WatchState.IDLE

        creation = self._creation
        if creation is not None and not creation.done():
            creation.cancel()
            # Its finally block stops the directory observer
            await asyncio.wait([creation])

        if await self._detach() is not None:
            logger.info("Stopped watching %s at cursor %s", state.file_path, state.cursor)

    async def wait_idle(self):
        """Wait for the current debounce loop, if any, to finish."""
        task = self._state.read_task
        if task is not None and not task.done():
            await asyncio.wait([task])

    def _on_notification(self, handle: FileWatchHandle, kind: str):
        """Called on the event loop for every event the file watch forwards."""
        state = self._state
        if handle is not state.watch_handle:
            # Late event from a handle that has since been detached
            return
        if kind != CHANGE:
            logger.debug("Ignoring %s event for %s", kind, state.file_path)
            return

        state.pending_passes = min(state.pending_passes + 1, MAX_PENDING_PASSES)
        if state.is_reading:
            return
        self._schedule_drain()

    def _schedule_drain(self):
        self._state.is_reading = True
        self._state.read_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self):
        state = self._state
        try:
            while state.pending_passes > 0:
                # Consume before reading so a notification that lands during
                # the pass schedules exactly one more
                state.pending_passes -= 1
                await self._reader.read_from_cursor(state)
        except FileNotFoundError:
            logger.info("Watched file %s is missing, waiting for further events", state.file_path)
            state.pending_passes = 0
        except Exception as e:
            logger.error("Read pass failed for %s: %s", state.file_path, e)
            await self.stop()
            self._on_error(e)
        finally:
            state.is_reading = False
