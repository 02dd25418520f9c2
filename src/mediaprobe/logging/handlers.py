"""JSON log output, one object per line."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from mediaprobe.logging.context import CONTEXT_FIELDS

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Render a record as a JSON object.

    Keys are timestamp (ISO-8601, UTC), level, message, logger (except for
    the root logger), context and exception. context holds the probe
    context fields and any extra= values; non-JSON values are written with
    str().
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
            and key not in CONTEXT_FIELDS
            and not key.startswith("_")
        }
        # Probe context wins over an extra= key of the same name
        for field in ("invocation_id", "input_locator"):
            value = getattr(record, field, None)
            if value:
                context[field] = value
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
