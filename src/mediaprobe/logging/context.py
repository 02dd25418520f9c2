"""Probe context for structured logging.

Provides context propagation for probe invocations using contextvars,
enabling automatic injection of the invocation id and input locator into
log records. Works across threads and asyncio tasks alike.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_invocation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "invocation_id", default=None
)
_input_locator: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "input_locator", default=None
)

# Record attributes set by ProbeContextFilter
CONTEXT_FIELDS = frozenset({"invocation_id", "input_locator", "probe_tag"})


def set_probe_context(invocation_id: str, input_locator: str | None = None) -> None:
    """Set the current probe context.

    Args:
        invocation_id: Short identifier of the ffprobe invocation.
        input_locator: Path, URI or pipe path passed to ffprobe, or None.
    """
    _invocation_id.set(invocation_id)
    _input_locator.set(input_locator)


def clear_probe_context() -> None:
    """Clear the current probe context."""
    _invocation_id.set(None)
    _input_locator.set(None)


@contextmanager
def probe_context(
    invocation_id: str,
    input_locator: str | None = None,
) -> Generator[None, None, None]:
    """Context manager for a single probe invocation.

    Sets the context on entry and restores the previous one on exit.

    Example:
        with probe_context("a1b2c3d4", "/videos/movie.mkv"):
            logger.info("Probing")  # Record carries both values
    """
    old_invocation_id = _invocation_id.get()
    old_input_locator = _input_locator.get()
    try:
        set_probe_context(invocation_id, input_locator)
        yield
    finally:
        _invocation_id.set(old_invocation_id)
        _input_locator.set(old_input_locator)


def get_probe_context() -> tuple[str | None, str | None]:
    """Get current probe context.

    Returns:
        Tuple of (invocation_id, input_locator), either may be None.
    """
    return _invocation_id.get(), _input_locator.get()


class ProbeContextFilter(logging.Filter):
    """Logging filter that injects probe context into log records.

    Adds invocation_id and input_locator attributes for JSON output, and a
    compact probe_tag like "[probe:a1b2c3d4] " for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        invocation_id, input_locator = get_probe_context()

        record.invocation_id = invocation_id
        record.input_locator = input_locator
        record.probe_tag = f"[probe:{invocation_id}] " if invocation_id else ""

        return True  # Never filter out records
