"""FileWatchHandle: live watchdog observer forwarding events for one file."""

import asyncio
import logging
import os
from typing import Callable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from tailcat.errors import WatchFailure

logger = logging.getLogger(__name__)

CHANGE = "change"
RENAME = "rename"


class _TargetHandler(FileSystemEventHandler):
    """Filters directory events down to the target file and classifies them."""

    def __init__(self, target: str, forward: Callable[[str], None]):
        super().__init__()
        self._target = target
        self._forward = forward

    def _matches(self, path) -> bool:
        return os.path.realpath(path) == self._target

    def on_modified(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._forward(CHANGE)

    def on_created(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._forward(RENAME)

    def on_deleted(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._forward(RENAME)

    def on_moved(self, event):
        if event.is_directory:
            return
        if self._matches(event.src_path) or self._matches(event.dest_path):
            self._forward(RENAME)


class FileWatchHandle:
    """One running observer for one file.

    The observer watches the parent directory non-recursively, so the handle
    survives the file being deleted or replaced. Events are handed to
    ``on_event`` on the event loop thread.
    """

    def __init__(
        self,
        file_path: str,
        loop: asyncio.AbstractEventLoop,
        on_event: Callable[["FileWatchHandle", str], None],
        observer_timeout: float = 1.0,
    ):
        self.file_path = os.path.realpath(file_path)
        self._loop = loop
        self._on_event = on_event
        self._observer_timeout = observer_timeout
        self._observer = None

    def _forward(self, kind: str):
        # Runs on the observer thread
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._on_event, self, kind)

    def start(self):
        directory = os.path.dirname(self.file_path)
        observer = Observer()
        try:
            observer.schedule(
                _TargetHandler(self.file_path, self._forward), directory, recursive=False
            )
            observer.start()
        except OSError as e:
            raise WatchFailure(self.file_path, str(e)) from e
        self._observer = observer
        logger.debug("Observer started for %s", self.file_path)

    def close(self):
        """Stop and join the observer. Safe to call more than once."""
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=self._observer_timeout)
        if observer.is_alive():
            logger.warning("Observer for %s did not exit within timeout", self.file_path)
        else:
            logger.debug("Observer stopped for %s", self.file_path)
