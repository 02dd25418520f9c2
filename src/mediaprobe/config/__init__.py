"""Configuration management for mediaprobe.

Configuration is an explicit, immutable value:
- ProbeOptions: what a single ffprobe invocation consumes
- LoggingConfig: how log output is configured
- EnvReader: testable environment variable reading
- ConfigBuilder/ConfigSource: layered construction with explicit precedence
- load_probe_options/load_logging_config: environment-backed factories
"""

from mediaprobe.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
)
from mediaprobe.config.env import EnvReader
from mediaprobe.config.loader import load_logging_config, load_probe_options
from mediaprobe.config.models import (
    DEFAULT_PIPE_CHUNK_SIZE,
    LoggingConfig,
    ProbeOptions,
)

__all__ = [
    # Models
    "DEFAULT_PIPE_CHUNK_SIZE",
    "LoggingConfig",
    "ProbeOptions",
    # Loader
    "load_logging_config",
    "load_probe_options",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
]
