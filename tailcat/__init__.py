"""tailcat — watch a file and emit every line appended to it."""

from tailcat.config import TailConfig, load_yaml_config
from tailcat.errors import InvalidArgument, NotAFile, TailError, WatchFailure
from tailcat.models import WatchState
from tailcat.session import TailSession

__all__ = [
    "InvalidArgument",
    "NotAFile",
    "TailConfig",
    "TailError",
    "TailSession",
    "WatchFailure",
    "WatchState",
    "load_yaml_config",
]
