"""DirectoryWatcher: waits for a missing file to appear in its parent directory."""

import asyncio
import logging
import os

import aiofiles.os
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from tailcat.errors import WatchFailure

logger = logging.getLogger(__name__)


class _CreationHandler(FileSystemEventHandler):
    """Watchdog handler that resolves a future when the target name appears."""

    def __init__(self, target: str, loop: asyncio.AbstractEventLoop, future: asyncio.Future):
        super().__init__()
        self._target = target
        self._loop = loop
        self._future = future

    def _resolve(self):
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(_set_once, self._future)

    def on_created(self, event):
        if event.is_directory:
            return
        if os.path.basename(event.src_path) == self._target:
            self._resolve()

    def on_moved(self, event):
        if event.is_directory:
            return
        if os.path.basename(event.dest_path) == self._target:
            self._resolve()


def _set_once(future: asyncio.Future):
    if not future.done():
        future.set_result(None)


class DirectoryWatcher:
    """Watches the parent directory of a path until the path is (re)created."""

    def __init__(self, file_path: str, observer_timeout: float = 1.0):
        self._file_path = os.path.abspath(file_path)
        self._directory = os.path.dirname(self._file_path)
        self._name = os.path.basename(self._file_path)
        self._observer_timeout = observer_timeout

    async def wait_for_creation(self):
        """Block until a file with the target's name is created or moved in."""
        loop = asyncio.get_running_loop()
        created = loop.create_future()
        handler = _CreationHandler(self._name, loop, created)

        observer = Observer()
        try:
            observer.schedule(handler, self._directory, recursive=False)
            observer.start()
        except OSError as e:
            raise WatchFailure(self._directory, str(e)) from e
        logger.info("Waiting for %s to appear in %s", self._name, self._directory)

        try:
            # Catch a file created before the observer was running
            if await aiofiles.os.path.exists(self._file_path):
                _set_once(created)
            await created
            logger.info("Watched file created: %s", self._file_path)
        finally:
            observer.stop()
            await asyncio.to_thread(observer.join, self._observer_timeout)
