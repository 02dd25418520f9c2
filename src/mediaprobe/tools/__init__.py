"""External tool lookup."""

from mediaprobe.tools.detection import find_tool, is_executable

__all__ = ["find_tool", "is_executable"]
