"""MediaIntrospector interface and error taxonomy.

Errors fall in two groups:

Pre-flight (raised before any process is spawned):
    InputNotFoundError, ToolNotFoundError

Post-flight (raised after the process has run):
    ProcessFailedError, DecodeFailedError (FormatMissingError),
    ProbeCancelledError

Post-flight errors carry the captured stderr text verbatim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from mediaprobe.domain.analysis import MediaAnalysis
    from mediaprobe.introspector.sources import InputSource


class MediaIntrospectionError(Exception):
    """Base class for media introspection failures."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class InputNotFoundError(MediaIntrospectionError):
    """Raised when a local input path or file:// URI does not exist."""

    def __init__(self, locator: str) -> None:
        super().__init__(f"No file found at '{locator}'")
        self.locator = locator


class ToolNotFoundError(MediaIntrospectionError):
    """Raised when the ffprobe binary cannot be located or executed."""

    pass


class ProcessFailedError(MediaIntrospectionError):
    """Raised when ffprobe exits non-zero or exceeds its timeout.

    Attributes:
        exit_code: Exit status, or None if the process was killed on timeout.
        stderr: Everything ffprobe wrote to stderr.
        timed_out: True if the run was stopped by the timeout.
    """

    def __init__(
        self,
        message: str,
        exit_code: int | None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message, stderr)
        self.exit_code = exit_code
        self.timed_out = timed_out


class DecodeFailedError(MediaIntrospectionError):
    """Raised when ffprobe output cannot be decoded into a report."""

    pass


class FormatMissingError(DecodeFailedError):
    """Raised when a container report has no format object."""

    pass


class ProbeCancelledError(MediaIntrospectionError):
    """Raised when a run was stopped through its cancel event."""

    pass


class MediaIntrospector(Protocol):
    """Protocol for media introspection implementations.

    Implementations turn an input source into a MediaAnalysis, blocking or
    asynchronously. FFprobeIntrospector is the ffprobe-backed one.
    """

    def analyse(self, source: InputSource | str) -> MediaAnalysis:
        """Analyse the container and streams of an input.

        Args:
            source: Input path, URI, byte stream or InputSource.

        Returns:
            MediaAnalysis of the input.

        Raises:
            MediaIntrospectionError: If the input cannot be introspected.
        """
        ...

    async def analyse_async(self, source: InputSource | str) -> MediaAnalysis:
        """Asynchronous counterpart of analyse()."""
        ...
