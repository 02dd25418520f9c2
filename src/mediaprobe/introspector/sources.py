"""Input sources accepted by the introspector.

InputSource is a tagged union of three frozen dataclasses:

- PathSource: a local file path
- UriSource: a URI; file:// URIs resolve to a local path, other schemes
  (http, https, rtmp, ...) are passed to ffprobe unchecked
- StreamSource: a readable byte source fed through a named pipe
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from mediaprobe.process.pipes import ByteSource


@dataclass(frozen=True)
class PathSource:
    path: Path

    @property
    def locator(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class UriSource:
    uri: str

    @property
    def locator(self) -> str:
        return self.uri

    @property
    def scheme(self) -> str:
        return urlparse(self.uri).scheme.lower()

    @property
    def local_path(self) -> Path | None:
        """Local path for file:// URIs, None for every other scheme."""
        parsed = urlparse(self.uri)
        if parsed.scheme.lower() != "file":
            return None
        if parsed.netloc and parsed.netloc != "localhost":
            # UNC style file://server/share/...
            return Path(f"//{parsed.netloc}{unquote(parsed.path)}")
        return Path(url2pathname(parsed.path))


@dataclass(frozen=True)
class StreamSource:
    """A byte source; its locator is assigned when the pipe is prepared."""

    stream: ByteSource


InputSource = Union[PathSource, UriSource, StreamSource]

_SOURCE_TYPES = (PathSource, UriSource, StreamSource)


def _looks_like_uri(value: str) -> bool:
    parsed = urlparse(value)
    # Single letters are Windows drive letters (C:\media), not schemes
    return len(parsed.scheme) > 1 and (
        bool(parsed.netloc) or parsed.scheme.lower() == "file"
    )


def as_source(value: object) -> InputSource:
    """Adapt a caller-supplied input to an InputSource.

    Args:
        value: An InputSource, a path string or URI string, an
            os.PathLike, an object with read(n), or an iterable of bytes.

    Returns:
        The matching InputSource variant.

    Raises:
        TypeError: If the value cannot be used as an input.
    """
    if isinstance(value, _SOURCE_TYPES):
        return value
    if isinstance(value, str):
        if _looks_like_uri(value):
            return UriSource(value)
        return PathSource(Path(value))
    if isinstance(value, os.PathLike):
        return PathSource(Path(value))
    if isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(
            "Raw bytes are not an input source; wrap them in io.BytesIO"
        )
    if hasattr(value, "read") or hasattr(value, "__iter__"):
        return StreamSource(value)  # type: ignore[arg-type]
    raise TypeError(f"Unsupported input source type: {type(value).__name__}")
