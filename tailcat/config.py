"""Configuration module — frozen dataclass loaded from defaults, env vars and YAML."""

import codecs
import logging
import os
from dataclasses import dataclass

import yaml

from tailcat.errors import InvalidArgument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TailConfig:
    encoding: str = "utf-8"
    line_separator: str = os.linesep
    chunk_size: int = 65536
    observer_timeout: float = 1.0   # seconds to wait for an observer thread to exit
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.line_separator:
            raise InvalidArgument("line_separator must be a non-empty string")
        if self.chunk_size <= 0:
            raise InvalidArgument(f"chunk_size must be positive, got {self.chunk_size}")
        if self.observer_timeout < 0:
            raise InvalidArgument(
                f"observer_timeout must not be negative, got {self.observer_timeout}"
            )

    @property
    def separator_bytes(self) -> bytes:
        return self.line_separator.encode(self.encoding)

    @classmethod
    def from_env(cls) -> "TailConfig":
        """Create a TailConfig from environment variables with defaults."""
        return cls(**_env_overrides())

    @classmethod
    def from_sources(cls, yaml_data: dict | None = None) -> "TailConfig":
        """Build a TailConfig from defaults <- env vars <- YAML (highest priority)."""
        kwargs = _env_overrides()
        for key, value in (yaml_data or {}).items():
            if key not in cls.__dataclass_fields__:
                raise InvalidArgument(f"Unknown config key: {key}")
            if key == "line_separator":
                value = _unescape(str(value))
            kwargs[key] = value

        try:
            kwargs["chunk_size"] = int(kwargs.get("chunk_size", cls.chunk_size))
            kwargs["observer_timeout"] = float(
                kwargs.get("observer_timeout", cls.observer_timeout)
            )
        except (TypeError, ValueError) as e:
            raise InvalidArgument(f"Invalid numeric config value: {e}") from e
        return cls(**kwargs)


def _unescape(value: str) -> str:
    """Turn a literal ``\\n`` or ``\\r\\n`` from env/YAML into the real characters."""
    return codecs.decode(value, "unicode_escape")


def _env_overrides() -> dict:
    kwargs: dict = {
        "encoding": os.environ.get("TAILCAT_ENCODING", TailConfig.encoding),
        "log_level": os.environ.get("TAILCAT_LOG_LEVEL", TailConfig.log_level).upper(),
    }

    separator = os.environ.get("TAILCAT_LINE_SEPARATOR")
    if separator:
        kwargs["line_separator"] = _unescape(separator)

    try:
        kwargs["chunk_size"] = int(
            os.environ.get("TAILCAT_CHUNK_SIZE", str(TailConfig.chunk_size))
        )
        kwargs["observer_timeout"] = float(
            os.environ.get("TAILCAT_OBSERVER_TIMEOUT", str(TailConfig.observer_timeout))
        )
    except ValueError as e:
        raise InvalidArgument(f"Invalid numeric environment value: {e}") from e
    return kwargs


def load_yaml_config(path: str | None) -> dict:
    """Load TailConfig overrides from a YAML file. Returns empty dict if no path.

    Keys may be written with hyphens (``chunk-size``). Keys that are not
    TailConfig fields are logged and dropped.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}

    if not isinstance(data, dict):
        raise InvalidArgument(f"Config file {path} must contain a mapping")

    overrides = {}
    for raw_key, value in data.items():
        key = str(raw_key).replace("-", "_")
        if key not in TailConfig.__dataclass_fields__:
            logger.warning("Ignoring unknown config key in %s: %s", path, raw_key)
            continue
        overrides[key] = value
    return overrides
