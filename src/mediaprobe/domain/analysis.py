"""Queryable model over a decoded container report.

MediaAnalysis wraps one ContainerReport and partitions its streams by media
kind once, at construction. The typed stream wrappers are frozen dataclasses
holding the source Stream plus values parsed out of ffprobe's text fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from fractions import Fraction

from mediaprobe.domain.enums import CodecType
from mediaprobe.domain.reports import ContainerReport, Format, Stream

logger = logging.getLogger(__name__)


def parse_duration(value: str | None) -> timedelta | None:
    """Parse an ffprobe duration into a timedelta.

    Accepts sexagesimal ("1:02:03.500000", as printed with -sexagesimal)
    and plain seconds ("3723.5").

    Args:
        value: Duration text, or None.

    Returns:
        Parsed duration, or None if the value is absent or unparseable
        (ffprobe prints "N/A" for unknown durations).
    """
    if value is None:
        return None
    text = value.strip()
    try:
        if ":" in text:
            hours, minutes, seconds = text.split(":")
            total = (
                Decimal(int(hours)) * 3600
                + Decimal(int(minutes)) * 60
                + Decimal(seconds)
            )
        else:
            total = Decimal(text)
    except (ValueError, InvalidOperation):
        return None
    if not total.is_finite():
        return None
    return timedelta(seconds=float(total))


def parse_rate(value: str | None) -> Fraction | None:
    """Parse a rational rate such as "30000/1001".

    Returns:
        The rate, or None for absent, malformed or "0/0" values.
    """
    if not value:
        return None
    try:
        rate = Fraction(value)
    except (ValueError, ZeroDivisionError):
        return None
    return rate if rate > 0 else None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(Decimal(value))
    except (ValueError, InvalidOperation):
        return None


@dataclass(frozen=True)
class VideoStream:
    """A video stream with parsed conveniences."""

    stream: Stream
    frame_rate: Fraction | None
    avg_frame_rate: Fraction | None
    duration: timedelta | None
    rotation: int

    @classmethod
    def from_stream(cls, stream: Stream) -> VideoStream:
        return cls(
            stream=stream,
            frame_rate=parse_rate(stream.frame_rate),
            avg_frame_rate=parse_rate(stream.avg_frame_rate),
            duration=parse_duration(stream.duration),
            rotation=_parse_int(stream.rotate) or 0,
        )

    @property
    def index(self) -> int:
        return self.stream.index

    @property
    def width(self) -> int | None:
        return self.stream.width

    @property
    def height(self) -> int | None:
        return self.stream.height

    @property
    def pixel_format(self) -> str | None:
        return self.stream.pixel_format

    @property
    def language(self) -> str | None:
        return self.stream.language


@dataclass(frozen=True)
class AudioStream:
    """An audio stream with parsed conveniences."""

    stream: Stream
    sample_rate: int | None
    duration: timedelta | None

    @classmethod
    def from_stream(cls, stream: Stream) -> AudioStream:
        return cls(
            stream=stream,
            sample_rate=_parse_int(stream.sample_rate),
            duration=parse_duration(stream.duration),
        )

    @property
    def index(self) -> int:
        return self.stream.index

    @property
    def channels(self) -> int | None:
        return self.stream.channels

    @property
    def channel_layout(self) -> str | None:
        return self.stream.channel_layout

    @property
    def language(self) -> str | None:
        return self.stream.language


@dataclass(frozen=True)
class SubtitleStream:
    stream: Stream
    duration: timedelta | None

    @classmethod
    def from_stream(cls, stream: Stream) -> SubtitleStream:
        return cls(stream=stream, duration=parse_duration(stream.duration))

    @property
    def index(self) -> int:
        return self.stream.index

    @property
    def language(self) -> str | None:
        return self.stream.language


class MediaAnalysis:
    """Read-only view of one container report.

    Streams are partitioned into video, audio and subtitle sequences by
    codec_type, keeping report order. Data and attachment streams appear
    only in ``streams``.
    """

    def __init__(
        self,
        report: ContainerReport,
        error_lines: tuple[str, ...] = (),
    ) -> None:
        """Wrap a decoded report.

        Args:
            report: Decoded container report.
            error_lines: ffprobe stderr lines captured during the run.
        """
        self._report = report
        self._error_lines = tuple(error_lines)

        video: list[VideoStream] = []
        audio: list[AudioStream] = []
        subtitle: list[SubtitleStream] = []
        for stream in report.streams:
            if stream.codec_type == CodecType.VIDEO.value:
                video.append(VideoStream.from_stream(stream))
            elif stream.codec_type == CodecType.AUDIO.value:
                audio.append(AudioStream.from_stream(stream))
            elif stream.codec_type == CodecType.SUBTITLE.value:
                subtitle.append(SubtitleStream.from_stream(stream))
        self._video_streams = tuple(video)
        self._audio_streams = tuple(audio)
        self._subtitle_streams = tuple(subtitle)
        self._duration = parse_duration(report.format.duration)

        logger.debug(
            "Analysed %d streams (%d video, %d audio, %d subtitle)",
            len(report.streams),
            len(video),
            len(audio),
            len(subtitle),
        )

    @property
    def report(self) -> ContainerReport:
        return self._report

    @property
    def format(self) -> Format:
        return self._report.format

    @property
    def streams(self) -> tuple[Stream, ...]:
        return self._report.streams

    @property
    def video_streams(self) -> tuple[VideoStream, ...]:
        return self._video_streams

    @property
    def audio_streams(self) -> tuple[AudioStream, ...]:
        return self._audio_streams

    @property
    def subtitle_streams(self) -> tuple[SubtitleStream, ...]:
        return self._subtitle_streams

    @property
    def primary_video_stream(self) -> VideoStream | None:
        return self._video_streams[0] if self._video_streams else None

    @property
    def primary_audio_stream(self) -> AudioStream | None:
        return self._audio_streams[0] if self._audio_streams else None

    @property
    def primary_subtitle_stream(self) -> SubtitleStream | None:
        return self._subtitle_streams[0] if self._subtitle_streams else None

    @property
    def duration(self) -> timedelta | None:
        """Container duration, or None if ffprobe could not determine it."""
        return self._duration

    @property
    def error_lines(self) -> tuple[str, ...]:
        return self._error_lines

    def __repr__(self) -> str:
        return (
            f"MediaAnalysis(format={self.format.format_name!r}, "
            f"streams={len(self.streams)})"
        )
