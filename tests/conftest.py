"""Shared test fixtures for mediaprobe."""

import json
import os
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "ffprobe"


def load_ffprobe_fixture(name: str) -> str:
    """Load an ffprobe JSON fixture as text.

    Args:
        name: Name of the fixture file (without .json extension).

    Returns:
        Raw fixture text, exactly as ffprobe would print it.
    """
    return (FIXTURES_DIR / f"{name}.json").read_text()


@pytest.fixture
def ffprobe_fixtures_dir() -> Path:
    """Return the path to the ffprobe fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def container_hdr_json() -> str:
    """MKV with HDR video, two audio tracks, a subtitle and an attachment."""
    return load_ffprobe_fixture("container_hdr")


@pytest.fixture
def container_numeric_json() -> str:
    """MP4 report with numeric values printed as JSON numbers."""
    return load_ffprobe_fixture("container_numeric")


@pytest.fixture
def container_missing_format_json() -> str:
    """Report with streams but no format object."""
    return load_ffprobe_fixture("container_missing_format")


@pytest.fixture
def frames_json() -> str:
    return load_ffprobe_fixture("frames")


@pytest.fixture
def packets_json() -> str:
    return load_ffprobe_fixture("packets")


@pytest.fixture
def pixel_formats_json() -> str:
    return load_ffprobe_fixture("pixel_formats")


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    """Create an (empty) local input file."""
    path = tmp_path / "movie.mkv"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return path


_FAKE_FFPROBE = textwrap.dedent(
    """\
    import json
    import os
    import sys
    import time

    workdir = {workdir!r}
    args = sys.argv[1:]
    with open(os.path.join(workdir, "argv.json"), "w") as f:
        json.dump(args, f)
    with open(os.path.join(workdir, "pid.tmp"), "w") as f:
        f.write(str(os.getpid()))
    os.replace(os.path.join(workdir, "pid.tmp"), os.path.join(workdir, "pid"))

    read_bytes = {read_bytes!r}
    if read_bytes is not None:
        with open(args[-1], "rb") as source:
            received = source.read(read_bytes)
        with open(os.path.join(workdir, "received"), "wb") as f:
            f.write(received)

    sys.stderr.write({stderr!r})
    sys.stderr.flush()
    sys.stdout.write({stdout!r})
    sys.stdout.flush()
    time.sleep({sleep!r})
    sys.exit({exit_code!r})
    """
)


class FakeFFprobe:
    """Handle on a generated fake ffprobe executable."""

    def __init__(self, path: Path, workdir: Path) -> None:
        self.path = path
        self.workdir = workdir

    @property
    def argv(self) -> list[str]:
        """Arguments of the last invocation."""
        return json.loads((self.workdir / "argv.json").read_text())

    @property
    def pid_file(self) -> Path:
        return self.workdir / "pid"

    @property
    def pid(self) -> int:
        return int(self.pid_file.read_text())

    @property
    def received(self) -> bytes:
        """Bytes read from the input by the last invocation."""
        return (self.workdir / "received").read_bytes()


@pytest.fixture
def fake_ffprobe(tmp_path: Path) -> Callable[..., FakeFFprobe]:
    """Factory creating a fake ffprobe executable in tmp_path.

    The executable is a shell wrapper exec'ing the current interpreter on a
    generated script, so the recorded pid is that of the spawned process.

    Keyword Args:
        stdout: Text written to stdout.
        stderr: Text written to stderr.
        exit_code: Exit status.
        sleep: Seconds to sleep after writing output.
        read_bytes: If set, read this many bytes from the input (last argument).
    """
    if os.name != "posix":
        pytest.skip("fake ffprobe requires a POSIX shell")

    def _create(
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        sleep: float = 0.0,
        read_bytes: int | None = None,
    ) -> FakeFFprobe:
        workdir = tmp_path / "fake-ffprobe"
        workdir.mkdir(exist_ok=True)
        script = workdir / "fake_ffprobe.py"
        script.write_text(
            _FAKE_FFPROBE.format(
                workdir=str(workdir),
                stdout=stdout,
                stderr=stderr,
                exit_code=exit_code,
                sleep=sleep,
                read_bytes=read_bytes,
            )
        )
        wrapper = workdir / "ffprobe"
        wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n')
        wrapper.chmod(0o755)
        return FakeFFprobe(wrapper, workdir)

    return _create

