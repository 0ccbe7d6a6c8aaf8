"""IncrementalReader: reads the bytes appended since the cursor and emits lines."""

import logging
import stat
from typing import AsyncIterator

import aiofiles
import aiofiles.os

from tailcat.config import TailConfig
from tailcat.errors import NotAFile
from tailcat.models import SessionState

logger = logging.getLogger(__name__)


async def file_size(path: str) -> int:
    """Return the size of a regular file.

    Raises FileNotFoundError when the path is missing and NotAFile when it
    exists but is not a regular file.
    """
    st = await aiofiles.os.stat(path)
    if not stat.S_ISREG(st.st_mode):
        raise NotAFile(path)
    return st.st_size


async def read_range(path: str, start: int, end: int, chunk_size: int) -> AsyncIterator[bytes]:
    """Yield bytes [start, end) from a file in chunks of at most chunk_size."""
    async with aiofiles.open(path, mode="rb") as f:
        await f.seek(start)
        remaining = end - start
        while remaining > 0:
            data = await f.read(min(chunk_size, remaining))
            if not data:
                # File shrank while we were reading
                break
            remaining -= len(data)
            yield data


class IncrementalReader:
    def __init__(self, config: TailConfig):
        self._config = config

    async def read_from_cursor(self, state: SessionState) -> int:
        """Run one read pass for a session. Returns the number of lines emitted."""
        size = await file_size(state.file_path)
        if size <= 0:
            # stat can briefly report an empty file mid-write; not an error
            logger.debug("Skipping pass for %s: size=%d", state.file_path, size)
            return 0

        cursor = state.cursor or 0
        if cursor > size:
            logger.warning(
                "File %s shrank below cursor (%d > %d), resetting cursor",
                state.file_path, cursor, size,
            )
            state.cursor = size
            state.splitter.reset()
            return 0
        if cursor == size:
            return 0

        emitted = 0
        consumed = 0
        async for chunk in read_range(state.file_path, cursor, size, self._config.chunk_size):
            consumed += len(chunk)
            for line in state.splitter.feed(chunk):
                state.emit(line)
                emitted += 1

        # The held-back fragment is buffered state, so the cursor still moves
        # past it. Only a short read (file shrank mid-pass) stops before size.
        state.cursor = cursor + consumed
        logger.debug(
            "Read %s [%d, %d): %d line(s)",
            state.file_path, cursor, state.cursor, emitted,
        )
        return emitted
