"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building ProbeOptions and
LoggingConfig by composing configuration sources with explicit precedence.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from mediaprobe.config.env import EnvReader
from mediaprobe.config.models import (
    DEFAULT_PIPE_CHUNK_SIZE,
    LoggingConfig,
    ProbeOptions,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Invocation
    ffprobe_path: Path | None = None
    working_directory: Path | None = None
    encoding: str | None = None
    extra_arguments: tuple[str, ...] | None = None
    timeout: float | None = None
    pipe_chunk_size: int | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None


class ConfigBuilder:
    """Builds configuration values by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_env(EnvReader()))
        builder.apply(ConfigSource(timeout=30.0))
        options = builder.build_options()
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build_options(self) -> ProbeOptions:
        """Build ProbeOptions with defaults for unset values."""
        return ProbeOptions(
            ffprobe_path=self._get("ffprobe_path", None),
            working_directory=self._get("working_directory", None),
            encoding=self._get("encoding", "utf-8"),
            extra_arguments=tuple(self._get("extra_arguments", ())),
            timeout=self._get("timeout", None),
            pipe_chunk_size=self._get("pipe_chunk_size", DEFAULT_PIPE_CHUNK_SIZE),
        )

    def build_logging(self) -> LoggingConfig:
        """Build LoggingConfig with defaults for unset values."""
        return LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
        )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    Args:
        reader: EnvReader instance for reading environment variables.

    Returns:
        ConfigSource with values from environment variables.
    """
    return ConfigSource(
        ffprobe_path=reader.get_path("MEDIAPROBE_FFPROBE_PATH", must_exist=False),
        working_directory=reader.get_path("MEDIAPROBE_WORKING_DIR"),
        encoding=reader.get_str("MEDIAPROBE_ENCODING"),
        extra_arguments=reader.get_args("MEDIAPROBE_EXTRA_ARGS"),
        timeout=reader.get_float("MEDIAPROBE_TIMEOUT"),
        pipe_chunk_size=reader.get_int("MEDIAPROBE_PIPE_CHUNK_SIZE"),
        logging_level=reader.get_str("MEDIAPROBE_LOG_LEVEL"),
        logging_file=reader.get_path("MEDIAPROBE_LOG_FILE", must_exist=False),
        logging_format=reader.get_str("MEDIAPROBE_LOG_FORMAT"),
        logging_include_stderr=reader.get_bool("MEDIAPROBE_LOG_INCLUDE_STDERR"),
    )
