"""TailSession: public facade for tailing one file."""

import asyncio
import logging
from typing import Callable

from tailcat.config import TailConfig
from tailcat.coordinator import WatchCoordinator
from tailcat.errors import InvalidArgument
from tailcat.models import SessionState, WatchState
from tailcat.splitter import LineSplitter

logger = logging.getLogger(__name__)

LineHandler = Callable[[str], None]
ErrorHandler = Callable[[BaseException], None]


class TailSession:
    """Watches a file and emits every completed, non-blank line appended to it.

    Usage::

        session = TailSession("/var/log/app.log")
        session.on_line(print)
        await session.watch()
        ...
        cursor = await session.unwatch()    # persist, then later:
        await session.watch(cursor=cursor)

    The first ``watch()`` starts at the end of the file, so existing content
    is not replayed. Passing an older ``cursor`` replays everything from that
    offset before ``watch()`` returns.
    """

    def __init__(self, file_path: str, config: TailConfig | None = None):
        if not file_path:
            raise InvalidArgument("No file path has been passed")

        self._config = config or TailConfig()
        self._line_handlers: list[LineHandler] = []
        self._error_handlers: list[ErrorHandler] = []
        self._state = SessionState(
            file_path=file_path,
            splitter=LineSplitter(self._config.separator_bytes, self._config.encoding),
            emit=self._emit,
        )
        self._coordinator = WatchCoordinator(self._state, self._config, self._fail)
        self._watch_lock = asyncio.Lock()

    @property
    def file_path(self) -> str:
        return self._state.file_path

    @property
    def cursor(self) -> int | None:
        return self._state.cursor

    @property
    def is_watching(self) -> bool:
        return self._state.is_watching

    @property
    def watch_state(self) -> WatchState:
        return self._state.state

    def on_line(self, handler: LineHandler):
        """Register a callback invoked with each new line, in file order."""
        self._line_handlers.append(handler)

    def on_error(self, handler: ErrorHandler):
        """Register a callback invoked when a live read pass fails fatally."""
        self._error_handlers.append(handler)

    async def watch(self, cursor: int | None = None):
        """Start watching the file. A no-op if already watching."""
        if cursor is not None and cursor < 0:
            raise InvalidArgument(f"cursor must be non-negative, got {cursor}")

        async with self._watch_lock:
            if self._state.is_watching:
                return
            await self._coordinator.start(cursor)

    async def unwatch(self) -> int:
        """Stop watching and return the cursor so it can be persisted."""
        await self._coordinator.stop()
        return self._state.cursor or 0

    async def wait_idle(self):
        """Wait until no read pass is in flight."""
        await self._coordinator.wait_idle()

    def lines(self) -> "LineStream":
        """Return an async iterator over emitted lines.

        The stream subscribes as soon as it is created, so lines emitted
        before the first ``__anext__`` are buffered, not lost. Close it with
        ``aclose()`` to unsubscribe.
        """
        return LineStream(self._line_handlers)

    def _emit(self, line: str):
        for handler in list(self._line_handlers):
            try:
                handler(line)
            except Exception:
                logger.exception("Line handler failed for %s", self._state.file_path)

    def _fail(self, error: BaseException):
        if not self._error_handlers:
            logger.error("Unhandled tail error for %s: %s", self._state.file_path, error)
            return
        for handler in list(self._error_handlers):
            try:
                handler(error)
            except Exception:
                logger.exception("Error handler failed for %s", self._state.file_path)


class LineStream:
    """Queue-backed async iterator subscribed to a session's line handlers."""

    def __init__(self, handlers: list[LineHandler]):
        self._handlers = handlers
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._handler = self._queue.put_nowait
        self._handlers.append(self._handler)

    def __aiter__(self) -> "LineStream":
        return self

    async def __anext__(self) -> str:
        if self._queue.empty() and self._handler not in self._handlers:
            raise StopAsyncIteration
        return await self._queue.get()

    async def aclose(self):
        if self._handler in self._handlers:
            self._handlers.remove(self._handler)

    async def __aenter__(self) -> "LineStream":
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
