"""Typed ffprobe reports.

One model per ffprobe JSON document kind:

- ContainerReport: -show_format -show_streams
- FrameReport: -show_frames
- PacketReport: -show_packets
- PixelFormatCatalogue: -show_pixel_formats

All models are frozen and decoded in a single pass by
mediaprobe.introspector.parsers.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field

from mediaprobe.domain.side_data import SideDataEntry
from mediaprobe.domain.types import (
    DecimalString,
    FlagMapping,
    FlexInt,
    ProbeModel,
    TagMapping,
    TagValue,
    empty_mapping,
)


class _TaggedModel(ProbeModel):
    """Report entity carrying a free-form tag mapping."""

    tags: TagMapping = Field(default_factory=empty_mapping)

    def get_tag(self, key: str) -> str | None:
        """Look up a tag, falling back to a case-insensitive match.

        Matroska writes some tags upper-case (DURATION), MP4 lower-case.

        Args:
            key: Tag name.

        Returns:
            Tag value, or None if the tag is absent.
        """
        if key in self.tags:
            return self.tags[key]
        folded = key.casefold()
        for name, value in self.tags.items():
            if name.casefold() == folded:
                return value
        return None

    @property
    def language(self) -> str | None:
        return self.get_tag("language")

    @property
    def creation_time(self) -> str | None:
        return self.get_tag("creation_time")

    @property
    def rotate(self) -> str | None:
        return self.get_tag("rotate")

    @property
    def tag_duration(self) -> str | None:
        """Duration tag as written by the muxer, e.g. "00:01:30.000000000"."""
        return self.get_tag("duration")


class Format(_TaggedModel):
    """Container-level attributes from the "format" object."""

    filename: str | None = None
    nb_streams: int | None = None
    nb_programs: int | None = None
    format_name: str | None = None
    format_long_name: str | None = None
    start_time: DecimalString | None = None
    duration: DecimalString | None = None
    size: DecimalString | None = None
    bit_rate: DecimalString | None = None
    probe_score: int | None = None


class Stream(_TaggedModel):
    """One elementary stream from the "streams" array."""

    index: int
    codec_type: str | None = None
    codec_name: str | None = None
    codec_long_name: str | None = None
    codec_tag: str | None = None
    codec_tag_string: str | None = None
    profile: TagValue | None = None
    level: int | None = None
    start_time: DecimalString | None = None
    duration: DecimalString | None = None
    bit_rate: DecimalString | None = None
    bits_per_raw_sample: DecimalString | None = None
    nb_frames: DecimalString | None = None
    avg_frame_rate: str | None = None
    frame_rate: str | None = Field(default=None, alias="r_frame_rate")
    display_aspect_ratio: str | None = None
    sample_aspect_ratio: str | None = None

    # Video
    width: int | None = None
    height: int | None = None
    pixel_format: str | None = Field(default=None, alias="pix_fmt")
    color_space: str | None = None
    color_primaries: str | None = None
    color_transfer: str | None = None
    color_range: str | None = None
    field_order: str | None = None

    # Audio
    sample_rate: DecimalString | None = None
    sample_format: str | None = Field(default=None, alias="sample_fmt")
    channels: int | None = None
    channel_layout: str | None = None

    disposition: FlagMapping = Field(default_factory=empty_mapping)
    side_data_list: tuple[SideDataEntry, ...] = ()

    def get_disposition(self, key: str) -> int | None:
        """Return a disposition flag, or None if ffprobe did not report it."""
        return self.disposition.get(key)

    @property
    def is_default(self) -> bool:
        return self.get_disposition("default") == 1

    @property
    def is_forced(self) -> bool:
        return self.get_disposition("forced") == 1


class Frame(ProbeModel):
    """Decode-level metadata of one frame.

    ffprobe 5.0 renamed pkt_pts and pkt_duration; both spellings are read.
    """

    media_type: str | None = None
    stream_index: FlexInt | None = None
    key_frame: FlexInt | None = None
    pts: FlexInt | None = Field(
        default=None, validation_alias=AliasChoices("pts", "pkt_pts")
    )
    pts_time: DecimalString | None = Field(
        default=None, validation_alias=AliasChoices("pts_time", "pkt_pts_time")
    )
    pkt_dts: FlexInt | None = None
    pkt_dts_time: DecimalString | None = None
    best_effort_timestamp: FlexInt | None = None
    best_effort_timestamp_time: DecimalString | None = None
    duration: FlexInt | None = Field(
        default=None, validation_alias=AliasChoices("duration", "pkt_duration")
    )
    duration_time: DecimalString | None = Field(
        default=None,
        validation_alias=AliasChoices("duration_time", "pkt_duration_time"),
    )
    pkt_pos: FlexInt | None = None
    pkt_size: FlexInt | None = None
    width: FlexInt | None = None
    height: FlexInt | None = None
    pixel_format: str | None = Field(
        default=None, validation_alias=AliasChoices("pix_fmt", "pixel_format")
    )
    pict_type: str | None = None
    coded_picture_number: FlexInt | None = None
    display_picture_number: FlexInt | None = None
    interlaced_frame: FlexInt | None = None
    top_field_first: FlexInt | None = None
    repeat_pict: FlexInt | None = None
    chroma_location: str | None = None
    side_data_list: tuple[SideDataEntry, ...] = ()

    @property
    def is_key_frame(self) -> bool:
        return self.key_frame == 1


class Packet(ProbeModel):
    """Demux-level metadata of one packet."""

    codec_type: str | None = None
    stream_index: FlexInt | None = None
    pts: FlexInt | None = None
    pts_time: DecimalString | None = None
    dts: FlexInt | None = None
    dts_time: DecimalString | None = None
    duration: FlexInt | None = None
    duration_time: DecimalString | None = None
    size: FlexInt | None = None
    pos: FlexInt | None = None
    flags: str | None = None
    side_data_list: tuple[SideDataEntry, ...] = ()

    @property
    def is_key_frame(self) -> bool:
        """True if the packet flags mark a key frame (e.g. "K__")."""
        return self.flags is not None and "K" in self.flags


class ContainerReport(ProbeModel):
    """Result of a -show_format -show_streams run.

    format is required; parsers report its absence as FormatMissingError.
    """

    format: Format
    streams: tuple[Stream, ...] = ()


class FrameReport(ProbeModel):
    frames: tuple[Frame, ...] = ()


class PacketReport(ProbeModel):
    packets: tuple[Packet, ...] = ()


class PixelFormatFlags(ProbeModel):
    """Capability flags of a pixel format (ffprobe prints them as 0/1)."""

    big_endian: bool = False
    palette: bool = False
    bitstream: bool = False
    hwaccel: bool = False
    planar: bool = False
    rgb: bool = False
    alpha: bool = False


class PixelComponent(ProbeModel):
    index: int
    bit_depth: int


class PixelFormat(ProbeModel):
    """One entry of the pixel format catalogue.

    Hardware formats report no bits_per_pixel and no components.
    """

    name: str
    nb_components: int = 0
    log2_chroma_w: int | None = None
    log2_chroma_h: int | None = None
    bits_per_pixel: int | None = None
    flags: PixelFormatFlags = Field(default_factory=PixelFormatFlags)
    components: tuple[PixelComponent, ...] = ()

    @property
    def bit_depths(self) -> tuple[int, ...]:
        """Per-component bit depth, in component order."""
        return tuple(component.bit_depth for component in self.components)


class PixelFormatCatalogue(ProbeModel):
    """All pixel formats known to the ffprobe build."""

    pixel_formats: tuple[PixelFormat, ...] = ()

    def get(self, name: str) -> PixelFormat | None:
        """Return the pixel format with the given name, or None."""
        for pixel_format in self.pixel_formats:
            if pixel_format.name == name:
                return pixel_format
        return None

    def __len__(self) -> int:
        return len(self.pixel_formats)
