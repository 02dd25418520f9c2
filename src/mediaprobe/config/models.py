"""Configuration data models for mediaprobe.

Options are plain immutable values handed to every probe operation; nothing
in the library reads a process-wide default.
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_PIPE_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ProbeOptions:
    """Options consumed by a single ffprobe invocation.

    This dataclass is immutable (frozen) so one instance can be shared
    between concurrent invocations without copying.
    """

    ffprobe_path: Path | None = None
    """Explicit ffprobe executable. None means look it up in PATH."""

    working_directory: Path | None = None
    """Working directory for the child process. None inherits the caller's."""

    encoding: str = "utf-8"
    """Text encoding of ffprobe's stdout and stderr."""

    extra_arguments: tuple[str, ...] = field(default_factory=tuple)
    """Arguments inserted before the input locator."""

    timeout: float | None = None
    """Seconds before the child process is killed. None waits forever."""

    pipe_chunk_size: int = DEFAULT_PIPE_CHUNK_SIZE
    """Bytes copied per write when feeding a stream through a named pipe."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not isinstance(self.extra_arguments, tuple):
            raise ValueError(
                "extra_arguments must be a tuple of strings, "
                f"got {type(self.extra_arguments).__name__}"
            )
        if not all(isinstance(arg, str) for arg in self.extra_arguments):
            raise ValueError("extra_arguments must only contain strings")
        if not self.encoding:
            raise ValueError("encoding must not be empty")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.pipe_chunk_size <= 0:
            raise ValueError(
                f"pipe_chunk_size must be positive, got {self.pipe_chunk_size}"
            )


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )
