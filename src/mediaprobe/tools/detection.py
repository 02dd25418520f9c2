"""External tool location.

Only the lookup needed before spawning ffprobe lives here; version and
capability detection are left to callers.
"""

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def is_executable(path: Path) -> bool:
    """Return True if path is a regular file the current user may execute."""
    return path.is_file() and os.access(path, os.X_OK)


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    A configured path is used as-is when it points at an executable file.
    A configured bare name (no directory part) is resolved through PATH.
    Otherwise the tool name is looked up on PATH.

    Args:
        name: Tool name (e.g., "ffprobe").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.parent == Path(".") and not configured_path.exists():
            which_result = shutil.which(str(configured_path))
            if which_result:
                return Path(which_result)
        elif is_executable(configured_path):
            return configured_path
        logger.warning(
            "Configured path for %s is not an executable file: %s",
            name,
            configured_path,
        )
        return None

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)

    logger.debug("%s not found on PATH", name)
    return None
