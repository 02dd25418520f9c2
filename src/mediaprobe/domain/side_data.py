"""Side data records attached to streams and frames.

ffprobe reports extension metadata as a list of differently-shaped objects
that share only a free-form ``side_data_type`` string. They are decoded as a
tagged union: the discriminator is looked up in SIDE_DATA_VARIANTS and the
matching model validates the whole record. Discriminators missing from the
registry decode to the plain SideData record, which keeps the discriminator
and drops the rest; a single unfamiliar record never fails a report.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Union

from pydantic import Field, PlainValidator

from mediaprobe.domain.types import DecimalString, ProbeModel

logger = logging.getLogger(__name__)


class SideData(ProbeModel):
    """Side data of a kind without a dedicated model."""

    side_data_type: str


class DoviConfigurationRecord(ProbeModel):
    """Dolby Vision decoder configuration record."""

    side_data_type: str
    dv_version_major: int | None = None
    dv_version_minor: int | None = None
    dv_profile: int | None = None
    dv_level: int | None = None
    rpu_present_flag: int | None = None
    el_present_flag: int | None = None
    bl_present_flag: int | None = None
    dv_bl_signal_compatibility_id: int | None = None


class MasteringDisplayMetadata(ProbeModel):
    """SMPTE ST 2086 mastering display colour volume.

    Coordinates and luminances are rationals such as "34000/50000".
    """

    side_data_type: str
    red_x: DecimalString | None = None
    red_y: DecimalString | None = None
    green_x: DecimalString | None = None
    green_y: DecimalString | None = None
    blue_x: DecimalString | None = None
    blue_y: DecimalString | None = None
    white_point_x: DecimalString | None = None
    white_point_y: DecimalString | None = None
    min_luminance: DecimalString | None = None
    max_luminance: DecimalString | None = None


class ContentLightLevelMetadata(ProbeModel):
    """MaxCLL / MaxFALL content light levels, in cd/m2."""

    side_data_type: str
    max_content: int | None = None
    max_average: int | None = None


class HdrDynamicMetadataSmpte2094(ProbeModel):
    """HDR10+ (SMPTE ST 2094-40) dynamic metadata."""

    side_data_type: str
    application_version: int | None = Field(
        default=None, alias="application version"
    )
    num_windows: int | None = None
    targeted_system_display_maximum_luminance: DecimalString | None = None
    maxscl: DecimalString | None = None
    average_maxrgb: DecimalString | None = None
    num_distribution_maxrgb_percentiles: int | None = None
    distribution_maxrgb_percentage: int | None = None
    distribution_maxrgb_percentile: DecimalString | None = None
    fraction_bright_pixels: DecimalString | None = None
    knee_point_x: DecimalString | None = None
    knee_point_y: DecimalString | None = None
    num_bezier_curve_anchors: int | None = None
    bezier_curve_anchors: DecimalString | None = None


AnySideData = Union[
    SideData,
    DoviConfigurationRecord,
    MasteringDisplayMetadata,
    ContentLightLevelMetadata,
    HdrDynamicMetadataSmpte2094,
]

SIDE_DATA_VARIANTS: Mapping[str, type[ProbeModel]] = MappingProxyType(
    {
        "DOVI configuration record": DoviConfigurationRecord,
        "Mastering display metadata": MasteringDisplayMetadata,
        "Content light level metadata": ContentLightLevelMetadata,
        "HDR Dynamic Metadata SMPTE2094-40 (HDR10+)": HdrDynamicMetadataSmpte2094,
    }
)

_DECODED_TYPES = (SideData, *SIDE_DATA_VARIANTS.values())


def decode_side_data(value: Any) -> AnySideData:
    """Decode one side data record into its variant.

    Args:
        value: Raw record (mapping) from ffprobe JSON, or an already
            decoded record.

    Returns:
        The variant registered for the record's side_data_type, or SideData
        for unregistered types.

    Raises:
        ValueError: If the record is not an object or its side_data_type is
            missing, null or blank. Inside a pydantic model this surfaces as
            a ValidationError.
    """
    if isinstance(value, _DECODED_TYPES):
        return value  # type: ignore[return-value]
    if not isinstance(value, Mapping):
        raise ValueError(
            f"Side data entry must be an object, got {type(value).__name__}"
        )
    if "side_data_type" not in value:
        raise ValueError('Missing "side_data_type" property in side data entry')

    side_data_type = value["side_data_type"]
    if not isinstance(side_data_type, str) or not side_data_type.strip():
        raise ValueError('"side_data_type" cannot be null or empty')

    variant = SIDE_DATA_VARIANTS.get(side_data_type)
    if variant is None:
        logger.debug("Unrecognized side data type %r, keeping base record", side_data_type)
        return SideData(side_data_type=side_data_type)
    return variant.model_validate(value)  # type: ignore[return-value]


SideDataEntry = Annotated[AnySideData, PlainValidator(decode_side_data)]
"""Field type for side data lists; validation goes through decode_side_data."""
