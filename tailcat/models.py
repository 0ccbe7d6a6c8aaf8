"""Per-session mutable state shared by the coordinator and the reader."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from tailcat.splitter import LineSplitter


class WatchState(Enum):
    IDLE = "idle"
    WAITING_FOR_FILE = "waiting_for_file"
    CATCHING_UP = "catching_up"
    WATCHING = "watching"


@dataclass
class SessionState:
    file_path: str
    splitter: LineSplitter
    emit: Callable[[str], None]
    cursor: int | None = None        # None until the first watch() picks a start
    generation: int = 0              # bumped by every stop, abandons a pending start
    watch_handle: object | None = None
    is_reading: bool = False
    pending_passes: int = 0
    state: WatchState = WatchState.IDLE
    read_task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def is_watching(self) -> bool:
        return self.watch_handle is not None
