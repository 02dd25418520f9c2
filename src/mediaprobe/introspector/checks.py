"""Pre-flight and post-flight checkpoints of a probe run.

Pre-flight checks run before any process is created:
    check_input      -> InputNotFoundError
    require_ffprobe  -> ToolNotFoundError

The post-flight check inspects a finished ProcessResult:
    check_result     -> ProbeCancelledError / ProcessFailedError
"""

import logging
from pathlib import Path

from mediaprobe.config.models import ProbeOptions
from mediaprobe.introspector.interface import (
    InputNotFoundError,
    ProbeCancelledError,
    ProcessFailedError,
    ToolNotFoundError,
)
from mediaprobe.introspector.sources import InputSource, PathSource, UriSource
from mediaprobe.process.invoker import ProcessResult
from mediaprobe.tools.detection import find_tool

logger = logging.getLogger(__name__)

FFPROBE_NAME = "ffprobe"


def check_input(source: InputSource) -> None:
    """Verify that a local input exists.

    Paths and file:// URIs must point at an existing file. Remote URIs and
    byte streams are not checked.

    Raises:
        InputNotFoundError: If the local input does not exist.
    """
    if isinstance(source, PathSource):
        local_path = source.path
    elif isinstance(source, UriSource):
        local_path = source.local_path
    else:
        return

    if local_path is not None and not local_path.is_file():
        raise InputNotFoundError(source.locator)


def require_ffprobe(options: ProbeOptions) -> Path:
    """Resolve the ffprobe executable.

    Args:
        options: Options carrying an optional explicit ffprobe path.

    Returns:
        Path to the ffprobe executable.

    Raises:
        ToolNotFoundError: If ffprobe is not found or not executable.
    """
    path = find_tool(FFPROBE_NAME, options.ffprobe_path)
    if path is None:
        if options.ffprobe_path is not None:
            raise ToolNotFoundError(
                f"ffprobe not found or not executable at {options.ffprobe_path}"
            )
        raise ToolNotFoundError(
            "ffprobe is not installed or not in PATH. "
            "Install ffmpeg, or set MEDIAPROBE_FFPROBE_PATH to its location."
        )
    return path


def check_result(result: ProcessResult) -> ProcessResult:
    """Classify a finished run.

    Args:
        result: Result of the ffprobe process.

    Returns:
        The same result, if ffprobe exited with status 0.

    Raises:
        ProbeCancelledError: If the run was cancelled.
        ProcessFailedError: If ffprobe timed out or exited non-zero.
    """
    stderr = result.error_text
    if result.cancelled:
        raise ProbeCancelledError("ffprobe run was cancelled", stderr)
    if result.timed_out:
        raise ProcessFailedError(
            "ffprobe timed out", exit_code=None, stderr=stderr, timed_out=True
        )
    if result.exit_code != 0:
        logger.warning(
            "ffprobe exited with code %s: %s", result.exit_code, stderr.strip()
        )
        raise ProcessFailedError(
            f"ffprobe exited with non-zero exit-code "
            f"({result.exit_code} - {stderr.strip()})",
            exit_code=result.exit_code,
            stderr=stderr,
        )
    return result
