"""Typed access to MEDIAPROBE_* environment variables.

Values that are set but malformed are logged and replaced by the caller's
default, so a bad variable never stops an application from starting.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Read and convert environment variables.

    Reads os.environ unless another mapping is given.

    Example:
        reader = EnvReader(env={"MEDIAPROBE_TIMEOUT": "30"})
        reader.get_float("MEDIAPROBE_TIMEOUT")  # 30.0
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def _convert(
        self,
        var: str,
        default: T | None,
        convert: Callable[[str], T],
        description: str,
    ) -> T | None:
        value = self._env.get(var)
        if value is None:
            return default
        try:
            return convert(value)
        except ValueError:
            logger.warning("Invalid %s for %s: %s", description, var, value)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Return the raw value; an empty string counts as set."""
        return self._env.get(var, default)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, default, int, "integer value")

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._convert(var, default, float, "float value")

    def get_args(
        self, var: str, default: tuple[str, ...] | None = None
    ) -> tuple[str, ...] | None:
        """Split the value into ffprobe arguments using shell quoting rules.

        MEDIAPROBE_EXTRA_ARGS="-probesize 5M -user_agent 'my agent'" yields
        four arguments.
        """
        return self._convert(
            var, default, lambda value: tuple(shlex.split(value)), "argument list"
        )

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Return True for "true", "1", "yes" or "on" in any case; False otherwise."""
        value = self._env.get(var)
        if value is None:
            return default
        return value.casefold() in _TRUE_VALUES

    def get_path(
        self, var: str, must_exist: bool = True, default: Path | None = None
    ) -> Path | None:
        """Return the value as a path with ~ expanded.

        Args:
            var: Environment variable name.
            must_exist: Replace a path that does not exist with default,
                logging a warning. Leave False for files created later and
                for executables resolved elsewhere.
            default: Value used when unset, or missing under must_exist.
        """
        value = self._env.get(var)
        if value is None:
            return default

        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning("%s points to non-existent path: %s", var, value)
            return default
        return path
