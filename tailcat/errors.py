"""Error taxonomy for tail sessions."""


class TailError(Exception):
    """Base class for every error raised by tailcat."""


class InvalidArgument(TailError, ValueError):
    """Raised when a session or config is built from an invalid value."""


class NotAFile(TailError):
    """Raised when the watched path exists but is not a regular file."""

    def __init__(self, path: str):
        super().__init__(f"Can only watch regular files: {path}")
        self.path = path


class WatchFailure(TailError):
    """Raised when a filesystem observer cannot be started."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to watch {path}: {reason}")
        self.path = path
        self.reason = reason
