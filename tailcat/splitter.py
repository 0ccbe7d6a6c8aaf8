"""LineSplitter: turns a byte stream into complete lines across chunk boundaries."""

import logging

logger = logging.getLogger(__name__)


class LineSplitter:
    """Buffers the unterminated tail of each chunk and prepends it to the next.

    Splitting happens on raw bytes so a multi-byte character cut in half by a
    chunk boundary is reassembled before decoding. Blank lines (after
    stripping whitespace) are dropped; emitted lines keep their whitespace.
    """

    def __init__(self, separator: bytes = b"\n", encoding: str = "utf-8"):
        if not separator:
            raise ValueError("separator must not be empty")
        self._separator = separator
        self._encoding = encoding
        self._fragment = b""

    @property
    def fragment(self) -> bytes:
        """The unterminated tail carried into the next chunk."""
        return self._fragment

    def feed(self, chunk: bytes) -> list[str]:
        """Split a chunk and return the complete, non-blank lines it finishes."""
        if not chunk:
            return []

        # Join before splitting so a multi-byte separator cut by the chunk
        # boundary is still recognised
        data = self._fragment + chunk
        segments = data.split(self._separator)

        # An unterminated chunk leaves its last segment for the next call
        if data.endswith(self._separator):
            segments.pop()
            self._fragment = b""
        else:
            self._fragment = segments.pop()

        lines = []
        for segment in segments:
            line = segment.decode(self._encoding, errors="replace")
            if line.strip():
                lines.append(line)
        if self._fragment:
            logger.debug("Holding back %d byte fragment", len(self._fragment))
        return lines

    def reset(self):
        """Drop any carried fragment."""
        self._fragment = b""
