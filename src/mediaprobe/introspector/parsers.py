"""Pure parsing functions for ffprobe JSON output.

These functions turn the text ffprobe prints on stdout into typed reports.
All functions are pure (no I/O, no side effects) for easy testing.

JSON numbers with a fraction are read as Decimal, so values such as
"bit_rate": 1234567.891 keep their exact decimal text when stored in
string fields.
"""

import json
import logging
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import ValidationError

from mediaprobe.domain.enums import ReportKind
from mediaprobe.domain.reports import (
    ContainerReport,
    FrameReport,
    PacketReport,
    PixelFormatCatalogue,
)
from mediaprobe.domain.types import ProbeModel
from mediaprobe.introspector.interface import DecodeFailedError, FormatMissingError

logger = logging.getLogger(__name__)

ReportT = TypeVar("ReportT", bound=ProbeModel)

Report = ContainerReport | FrameReport | PacketReport | PixelFormatCatalogue


def load_document(text: str) -> dict[str, Any]:
    """Load an ffprobe JSON document.

    Args:
        text: Captured stdout of ffprobe.

    Returns:
        The top-level JSON object.

    Raises:
        DecodeFailedError: If the text is not JSON or not a JSON object.
    """
    try:
        document = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise DecodeFailedError(f"Invalid ffprobe output: {e}") from e
    if not isinstance(document, dict):
        raise DecodeFailedError(
            f"Invalid ffprobe output: expected a JSON object, "
            f"got {type(document).__name__}"
        )
    return document


def _validate(model: type[ReportT], document: dict[str, Any]) -> ReportT:
    try:
        return model.model_validate(document)
    except ValidationError as e:
        raise DecodeFailedError(
            f"Invalid {model.__name__} in ffprobe output: {e}"
        ) from e


def parse_container_report(text: str) -> ContainerReport:
    """Parse -show_format -show_streams output.

    Raises:
        FormatMissingError: If the document has no format object.
        DecodeFailedError: If the document does not match the schema.
    """
    document = load_document(text)
    if document.get("format") is None:
        raise FormatMissingError(
            "Missing 'format' in ffprobe output. "
            "File may be corrupted or not a valid media file."
        )
    report = _validate(ContainerReport, document)
    logger.debug(
        "Parsed container report: format=%s streams=%d",
        report.format.format_name,
        len(report.streams),
    )
    return report


def parse_frame_report(text: str) -> FrameReport:
    """Parse -show_frames output. A document without frames is empty."""
    return _validate(FrameReport, load_document(text))


def parse_packet_report(text: str) -> PacketReport:
    """Parse -show_packets output. A document without packets is empty."""
    return _validate(PacketReport, load_document(text))


def parse_pixel_formats(text: str) -> PixelFormatCatalogue:
    """Parse -show_pixel_formats output."""
    return _validate(PixelFormatCatalogue, load_document(text))


_PARSERS = {
    ReportKind.CONTAINER: parse_container_report,
    ReportKind.FRAMES: parse_frame_report,
    ReportKind.PACKETS: parse_packet_report,
    ReportKind.PIXEL_FORMATS: parse_pixel_formats,
}


def parse_report(text: str, kind: ReportKind) -> Report:
    """Parse ffprobe output into the report selected by kind.

    Args:
        text: Captured stdout of ffprobe.
        kind: Which report the invocation asked for.

    Returns:
        The decoded report.

    Raises:
        DecodeFailedError: If the output cannot be decoded.
    """
    return _PARSERS[kind](text)
