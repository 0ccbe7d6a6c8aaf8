import asyncio
import os
import time

import pytest

EOL = os.linesep


async def _wait_until(predicate, timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll predicate until it is true or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_bytes(b"")
    return path


@pytest.fixture
def append():
    """Append text to a file, one write per line, like a logging process."""

    def _append(path, *lines: str):
        with open(path, "a", encoding="utf-8", newline="") as f:
            for line in lines:
                f.write(line)
                f.flush()

    return _append


def foo_lines(start: int = 0, count: int = 5) -> list[str]:
    return [f"foo_{i}{EOL}" for i in range(start, start + count)]


@pytest.fixture
def foo():
    return foo_lines
