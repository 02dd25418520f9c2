"""Root logger setup for applications embedding mediaprobe.

The library only emits records under the "mediaprobe" logger; an
application that wants mediaprobe's text or JSON layout calls
configure_logging() once at startup.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from mediaprobe.logging.context import ProbeContextFilter
from mediaprobe.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from mediaprobe.config.models import LoggingConfig

# probe_tag is "[probe:a1b2c3d4] " inside a probe and empty outside one
TEXT_FORMAT = "%(asctime)s - %(probe_tag)s%(name)s - %(levelname)s - %(message)s"


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or report why it cannot be used."""
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {config.file}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to config.

    Records go to config.file when it can be opened, and to stderr when
    include_stderr is set or the file is unusable. Every handler carries a
    ProbeContextFilter.

    Args:
        config: Logging configuration.
    """
    level = getattr(logging, config.level.upper())

    if config.format.casefold() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    context_filter = ProbeContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
