"""mediaprobe: typed ffprobe reports for Python.

Example:
    from mediaprobe import FFprobeIntrospector, load_probe_options

    introspector = FFprobeIntrospector(load_probe_options())
    analysis = introspector.analyse("/videos/movie.mkv")
"""

from mediaprobe.config import LoggingConfig, ProbeOptions, load_probe_options
from mediaprobe.domain import (
    MediaAnalysis,
    ReportKind,
)
from mediaprobe.introspector import (
    DecodeFailedError,
    FFprobeIntrospector,
    FormatMissingError,
    InputNotFoundError,
    MediaIntrospectionError,
    PathSource,
    ProbeCancelledError,
    ProcessFailedError,
    StreamSource,
    ToolNotFoundError,
    UriSource,
)

__version__ = "0.1.0"

__all__ = [
    "FFprobeIntrospector",
    "MediaAnalysis",
    "ReportKind",
    "ProbeOptions",
    "LoggingConfig",
    "load_probe_options",
    "PathSource",
    "UriSource",
    "StreamSource",
    "MediaIntrospectionError",
    "InputNotFoundError",
    "ToolNotFoundError",
    "ProcessFailedError",
    "DecodeFailedError",
    "FormatMissingError",
    "ProbeCancelledError",
]
