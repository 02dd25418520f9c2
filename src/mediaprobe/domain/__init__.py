"""Domain models for ffprobe reports and media analysis."""

from mediaprobe.domain.analysis import (
    AudioStream,
    MediaAnalysis,
    SubtitleStream,
    VideoStream,
    parse_duration,
    parse_rate,
)
from mediaprobe.domain.enums import CodecType, ReportKind
from mediaprobe.domain.reports import (
    ContainerReport,
    Format,
    Frame,
    FrameReport,
    Packet,
    PacketReport,
    PixelComponent,
    PixelFormat,
    PixelFormatCatalogue,
    PixelFormatFlags,
    Stream,
)
from mediaprobe.domain.side_data import (
    SIDE_DATA_VARIANTS,
    ContentLightLevelMetadata,
    DoviConfigurationRecord,
    HdrDynamicMetadataSmpte2094,
    MasteringDisplayMetadata,
    SideData,
    decode_side_data,
)

__all__ = [
    # Analysis
    "AudioStream",
    "MediaAnalysis",
    "SubtitleStream",
    "VideoStream",
    "parse_duration",
    "parse_rate",
    # Enums
    "CodecType",
    "ReportKind",
    # Reports
    "ContainerReport",
    "Format",
    "Frame",
    "FrameReport",
    "Packet",
    "PacketReport",
    "PixelComponent",
    "PixelFormat",
    "PixelFormatCatalogue",
    "PixelFormatFlags",
    "Stream",
    # Side data
    "SIDE_DATA_VARIANTS",
    "ContentLightLevelMetadata",
    "DoviConfigurationRecord",
    "HdrDynamicMetadataSmpte2094",
    "MasteringDisplayMetadata",
    "SideData",
    "decode_side_data",
]
