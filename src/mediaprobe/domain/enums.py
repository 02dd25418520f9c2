"""Domain enums for mediaprobe."""

from enum import Enum


class ReportKind(Enum):
    """Which ffprobe report an invocation asks for.

    Each kind selects a fixed set of ffprobe flags and a report schema.
    """

    CONTAINER = "container"  # -show_format -show_streams
    FRAMES = "frames"  # -show_frames
    PACKETS = "packets"  # -show_packets
    PIXEL_FORMATS = "pixel_formats"  # -show_pixel_formats, no input

    @property
    def needs_input(self) -> bool:
        """Return True if the report describes an input file or stream."""
        return self is not ReportKind.PIXEL_FORMATS


class CodecType(Enum):
    """Media kind of a stream, as reported in ffprobe's codec_type."""

    VIDEO = "video"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    DATA = "data"
    ATTACHMENT = "attachment"
