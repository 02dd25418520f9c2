"""Structured logging module for mediaprobe.

Provides configurable logging with JSON format support and file rotation.
Includes probe context support so records emitted during an invocation
carry its id and input locator.
"""

from mediaprobe.logging.config import configure_logging
from mediaprobe.logging.context import (
    ProbeContextFilter,
    clear_probe_context,
    get_probe_context,
    probe_context,
    set_probe_context,
)
from mediaprobe.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "ProbeContextFilter",
    "clear_probe_context",
    "configure_logging",
    "get_probe_context",
    "probe_context",
    "set_probe_context",
]
