"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. Explicit overrides (passed directly to functions)
2. Environment variables (MEDIAPROBE_*)
3. Default values

Environment variables:
- MEDIAPROBE_FFPROBE_PATH: Path to ffprobe executable
- MEDIAPROBE_WORKING_DIR: Working directory for ffprobe
- MEDIAPROBE_ENCODING: Encoding of ffprobe output (default utf-8)
- MEDIAPROBE_EXTRA_ARGS: Extra ffprobe arguments, shell-quoted
- MEDIAPROBE_TIMEOUT: Seconds before ffprobe is killed
- MEDIAPROBE_PIPE_CHUNK_SIZE: Bytes per write when piping a stream
- MEDIAPROBE_LOG_LEVEL / MEDIAPROBE_LOG_FILE / MEDIAPROBE_LOG_FORMAT /
  MEDIAPROBE_LOG_INCLUDE_STDERR: Logging settings

The loader returns new immutable values on every call; nothing is cached
at module level.
"""

from __future__ import annotations

from mediaprobe.config.builder import ConfigBuilder, ConfigSource, source_from_env
from mediaprobe.config.env import EnvReader
from mediaprobe.config.models import LoggingConfig, ProbeOptions


def load_probe_options(
    env: EnvReader | None = None,
    overrides: ConfigSource | None = None,
) -> ProbeOptions:
    """Build ProbeOptions from the environment and explicit overrides.

    Args:
        env: Environment reader. Defaults to one over os.environ.
        overrides: Values that take precedence over the environment.

    Returns:
        Validated ProbeOptions.

    Raises:
        ValueError: If the combined values fail validation.
    """
    builder = ConfigBuilder()
    builder.apply(source_from_env(env or EnvReader()))
    if overrides is not None:
        builder.apply(overrides)
    return builder.build_options()


def load_logging_config(
    env: EnvReader | None = None,
    overrides: ConfigSource | None = None,
) -> LoggingConfig:
    """Build LoggingConfig from the environment and explicit overrides."""
    builder = ConfigBuilder()
    builder.apply(source_from_env(env or EnvReader()))
    if overrides is not None:
        builder.apply(overrides)
    return builder.build_logging()
