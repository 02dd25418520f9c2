"""Introspector module for mediaprobe.

This module provides media introspection through ffprobe:

- MediaIntrospector: Protocol defining the introspection interface
- FFprobeIntrospector: Production implementation using ffprobe
- InputSource (PathSource, UriSource, StreamSource): accepted inputs
- MediaIntrospectionError and subclasses: the error taxonomy

Parsers for ffprobe JSON output:
- parse_report: dispatch on ReportKind
- parse_container_report, parse_frame_report, parse_packet_report,
  parse_pixel_formats
"""

from mediaprobe.introspector.checks import check_input, check_result, require_ffprobe
from mediaprobe.introspector.ffprobe import FFprobeIntrospector, build_arguments
from mediaprobe.introspector.interface import (
    DecodeFailedError,
    FormatMissingError,
    InputNotFoundError,
    MediaIntrospectionError,
    MediaIntrospector,
    ProbeCancelledError,
    ProcessFailedError,
    ToolNotFoundError,
)
from mediaprobe.introspector.parsers import (
    parse_container_report,
    parse_frame_report,
    parse_packet_report,
    parse_pixel_formats,
    parse_report,
)
from mediaprobe.introspector.sources import (
    InputSource,
    PathSource,
    StreamSource,
    UriSource,
    as_source,
)

__all__ = [
    "MediaIntrospector",
    "FFprobeIntrospector",
    "build_arguments",
    # Errors
    "MediaIntrospectionError",
    "InputNotFoundError",
    "ToolNotFoundError",
    "ProcessFailedError",
    "DecodeFailedError",
    "FormatMissingError",
    "ProbeCancelledError",
    # Checkpoints
    "check_input",
    "check_result",
    "require_ffprobe",
    # Parsers
    "parse_report",
    "parse_container_report",
    "parse_frame_report",
    "parse_packet_report",
    "parse_pixel_formats",
    # Sources
    "InputSource",
    "PathSource",
    "StreamSource",
    "UriSource",
    "as_source",
]
