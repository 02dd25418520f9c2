"""Shared pydantic base model and field types for ffprobe reports.

ffprobe is inconsistent about how it prints numbers: some values are
quoted strings, some are JSON numbers, and the choice has changed between
releases. The annotated types here absorb that:

- DecimalString: kept as text. JSON numbers are converted from their
  literal decimal form, never through binary floating point.
- FlexInt: an integer that accepts "188" and 188 alike and is written back
  as a string in JSON mode.
- TagMapping, FlagMapping: read-only mappings, dumped as plain dicts.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    PlainSerializer,
    SerializerFunctionWrapHandler,
    WrapSerializer,
)


class ProbeModel(BaseModel):
    """Base for all decoded report entities.

    Instances are frozen, ignore keys they do not know, and accept both the
    Python attribute name and the ffprobe key for aliased fields.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )


def _to_decimal_string(value: Any) -> Any:
    """Convert a JSON number into its exact decimal text."""
    if isinstance(value, bool):
        return value  # Leave booleans for the str validator to reject
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    return value


def _to_tag_value(value: Any) -> Any:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


DecimalString = Annotated[str, BeforeValidator(_to_decimal_string)]
FlexInt = Annotated[int, PlainSerializer(str, return_type=str, when_used="json")]
TagValue = Annotated[str, BeforeValidator(_to_tag_value)]


def _freeze(value: dict) -> Mapping:
    return MappingProxyType(value)


def _as_dict(value: Mapping, handler: SerializerFunctionWrapHandler) -> Any:
    return handler(dict(value))


def empty_mapping() -> Mapping:
    return MappingProxyType({})


# Frozen models only block attribute assignment, not item assignment
TagMapping = Annotated[
    dict[str, TagValue], AfterValidator(_freeze), WrapSerializer(_as_dict)
]
FlagMapping = Annotated[
    dict[str, int], AfterValidator(_freeze), WrapSerializer(_as_dict)
]
