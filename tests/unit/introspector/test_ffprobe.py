"""Unit tests for FFprobeIntrospector with a mocked process invoker."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediaprobe.config.models import ProbeOptions
from mediaprobe.domain.analysis import MediaAnalysis
from mediaprobe.domain.enums import ReportKind
from mediaprobe.domain.reports import FrameReport, PixelFormatCatalogue
from mediaprobe.introspector.ffprobe import FFprobeIntrospector, build_arguments
from mediaprobe.introspector.interface import (
    DecodeFailedError,
    FormatMissingError,
    InputNotFoundError,
    ProcessFailedError,
    ToolNotFoundError,
)
from mediaprobe.logging.context import get_probe_context
from mediaprobe.process.invoker import ProcessResult, RunStatus


@pytest.fixture
def ffprobe_binary(tmp_path: Path) -> Path:
    """An executable placeholder standing in for ffprobe."""
    binary = tmp_path / "bin" / "ffprobe"
    binary.parent.mkdir()
    binary.write_text("#!/bin/sh\nexit 0\n")
    binary.chmod(0o755)
    return binary


def make_factory(result: ProcessResult) -> MagicMock:
    """Build an invoker factory whose invokers return result."""
    invoker = MagicMock()
    invoker.run.return_value = result
    invoker.run_async = AsyncMock(return_value=result)
    return MagicMock(return_value=invoker)


def ok(stdout: str, stderr: str = "") -> ProcessResult:
    return ProcessResult(RunStatus.EXITED, 0, (stdout,), (stderr,) if stderr else ())


class TestBuildArguments:
    """Tests for build_arguments()."""

    def test_container_flags(self) -> None:
        assert build_arguments(ReportKind.CONTAINER, "/v/a.mkv") == [
            "-loglevel",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-sexagesimal",
            "-show_streams",
            "/v/a.mkv",
        ]

    def test_frames_flags(self) -> None:
        args = build_arguments(ReportKind.FRAMES, "a.mkv")
        assert args[4:] == ["-show_frames", "-v", "quiet", "-sexagesimal", "a.mkv"]

    def test_packets_flags(self) -> None:
        args = build_arguments(ReportKind.PACKETS, "a.mkv")
        assert args[4:] == ["-show_packets", "-v", "quiet", "-sexagesimal", "a.mkv"]

    def test_pixel_formats_take_no_input(self) -> None:
        args = build_arguments(ReportKind.PIXEL_FORMATS, "ignored.mkv")
        assert args[-1] == "-show_pixel_formats"
        assert "ignored.mkv" not in args

    def test_extra_arguments_precede_input(self) -> None:
        args = build_arguments(
            ReportKind.CONTAINER, "a.mkv", ("-analyzeduration", "100M")
        )
        assert args[-3:] == ["-analyzeduration", "100M", "a.mkv"]

    def test_missing_locator_raises(self) -> None:
        with pytest.raises(ValueError, match="container"):
            build_arguments(ReportKind.CONTAINER)


class TestPreflight:
    """Pre-flight failures never create a process."""

    def test_missing_input_raises_before_spawn(
        self, tmp_path: Path, ffprobe_binary: Path
    ) -> None:
        factory = make_factory(ok("{}"))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        with pytest.raises(InputNotFoundError):
            introspector.analyse(tmp_path / "missing.mkv")

        assert factory.call_count == 0

    def test_missing_input_checked_before_tool(self, tmp_path: Path) -> None:
        factory = make_factory(ok("{}"))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=tmp_path / "no-ffprobe"),
            invoker_factory=factory,
        )

        with pytest.raises(InputNotFoundError):
            introspector.analyse(tmp_path / "missing.mkv")

    def test_missing_tool_raises_before_spawn(
        self, tmp_path: Path, media_file: Path
    ) -> None:
        factory = make_factory(ok("{}"))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=tmp_path / "no-ffprobe"),
            invoker_factory=factory,
        )

        with pytest.raises(ToolNotFoundError):
            introspector.analyse(media_file)

        assert factory.call_count == 0

    def test_missing_source_raises_value_error(self, ffprobe_binary: Path) -> None:
        introspector = FFprobeIntrospector(ProbeOptions(ffprobe_path=ffprobe_binary))
        with pytest.raises(ValueError, match="requires an input"):
            introspector.probe(None, ReportKind.FRAMES)

    @pytest.mark.asyncio
    async def test_async_missing_input(self, tmp_path: Path) -> None:
        factory = make_factory(ok("{}"))
        introspector = FFprobeIntrospector(invoker_factory=factory)

        with pytest.raises(InputNotFoundError):
            await introspector.analyse_async(str(tmp_path / "missing.mkv"))

        assert factory.call_count == 0


class TestInvocation:
    """Tests for how the invoker is created and driven."""

    def test_invoker_receives_options(
        self,
        tmp_path: Path,
        ffprobe_binary: Path,
        media_file: Path,
        container_hdr_json: str,
    ) -> None:
        factory = make_factory(ok(container_hdr_json))
        options = ProbeOptions(
            ffprobe_path=ffprobe_binary,
            working_directory=tmp_path,
            encoding="latin-1",
            timeout=12.5,
            extra_arguments=("-probesize", "5M"),
        )

        FFprobeIntrospector(options, invoker_factory=factory).analyse(media_file)

        factory.assert_called_once()
        args, kwargs = factory.call_args
        assert args[0] == ffprobe_binary
        assert args[1][-3:] == ["-probesize", "5M", str(media_file)]
        assert kwargs == {
            "working_directory": tmp_path,
            "encoding": "latin-1",
            "timeout": 12.5,
        }

    def test_cancel_event_is_passed_through(
        self, ffprobe_binary: Path, media_file: Path, container_hdr_json: str
    ) -> None:
        factory = make_factory(ok(container_hdr_json))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )
        event = MagicMock()

        introspector.analyse(media_file, cancel_event=event)

        factory.return_value.run.assert_called_once_with(event)

    def test_analyse_returns_analysis_with_error_lines(
        self, ffprobe_binary: Path, media_file: Path, container_hdr_json: str
    ) -> None:
        factory = make_factory(ok(container_hdr_json, "late SEI\nmissing ref\n"))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        analysis = introspector.analyse(media_file)

        assert isinstance(analysis, MediaAnalysis)
        assert len(analysis.streams) == 5
        assert analysis.error_lines == ("late SEI", "missing ref")

    def test_get_frames_decodes_report(
        self, ffprobe_binary: Path, media_file: Path, frames_json: str
    ) -> None:
        factory = make_factory(ok(frames_json))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        report = introspector.get_frames(media_file)

        assert isinstance(report, FrameReport)
        assert "-show_frames" in factory.call_args.args[1]

    def test_pixel_formats_skip_input_check(
        self, ffprobe_binary: Path, pixel_formats_json: str
    ) -> None:
        factory = make_factory(ok(pixel_formats_json))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        catalogue = introspector.get_pixel_formats()

        assert isinstance(catalogue, PixelFormatCatalogue)
        assert factory.call_args.args[1][-1] == "-show_pixel_formats"

    def test_get_report_json_is_undecoded(
        self, ffprobe_binary: Path, media_file: Path
    ) -> None:
        factory = make_factory(ok('{"format": null}'))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        assert introspector.get_report_json(media_file) == '{"format": null}'

    def test_probe_context_set_during_run(
        self, ffprobe_binary: Path, media_file: Path, container_hdr_json: str
    ) -> None:
        seen: list[tuple[str | None, str | None]] = []

        def run(cancel_event: object) -> ProcessResult:
            seen.append(get_probe_context())
            return ok(container_hdr_json)

        factory = make_factory(ok(""))
        factory.return_value.run.side_effect = run
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        introspector.analyse(media_file)

        invocation_id, locator = seen[0]
        assert invocation_id is not None and len(invocation_id) == 8
        assert locator == str(media_file)
        assert get_probe_context() == (None, None)

    @pytest.mark.asyncio
    async def test_async_probe(
        self, ffprobe_binary: Path, media_file: Path, packets_json: str
    ) -> None:
        factory = make_factory(ok(packets_json))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        report = await introspector.get_packets_async(media_file)

        assert len(report.packets) == 2
        factory.return_value.run_async.assert_awaited_once_with(None)


class TestFailures:
    """Tests for post-flight failures."""

    def test_decode_error_carries_stderr(
        self, ffprobe_binary: Path, media_file: Path
    ) -> None:
        factory = make_factory(ok("not json", "something odd\n"))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        with pytest.raises(DecodeFailedError) as exc_info:
            introspector.analyse(media_file)

        assert exc_info.value.stderr == "something odd\n"

    def test_missing_format_raises(
        self, ffprobe_binary: Path, media_file: Path
    ) -> None:
        factory = make_factory(ok('{"streams": []}'))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        with pytest.raises(FormatMissingError):
            introspector.analyse(media_file)

    def test_non_zero_exit_raises(self, ffprobe_binary: Path, media_file: Path) -> None:
        result = ProcessResult(RunStatus.EXITED, 1, (), ("Invalid data\n",))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary),
            invoker_factory=make_factory(result),
        )

        with pytest.raises(ProcessFailedError) as exc_info:
            introspector.run(media_file)

        assert exc_info.value.exit_code == 1
        assert exc_info.value.stderr == "Invalid data\n"

    @pytest.mark.parametrize("error", [FileNotFoundError, PermissionError])
    def test_spawn_error_maps_to_tool_not_found(
        self, ffprobe_binary: Path, media_file: Path, error: type[OSError]
    ) -> None:
        factory = make_factory(ok(""))
        factory.return_value.run.side_effect = error("exec failed")
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        with pytest.raises(ToolNotFoundError) as exc_info:
            introspector.analyse(media_file)

        assert isinstance(exc_info.value.__cause__, error)

    @pytest.mark.asyncio
    async def test_async_spawn_error_maps_to_tool_not_found(
        self, ffprobe_binary: Path, media_file: Path
    ) -> None:
        factory = make_factory(ok(""))
        factory.return_value.run_async.side_effect = FileNotFoundError("gone")
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary), invoker_factory=factory
        )

        with pytest.raises(ToolNotFoundError):
            await introspector.analyse_async(media_file)

    def test_failure_logged_with_probe_context(
        self,
        ffprobe_binary: Path,
        media_file: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        result = ProcessResult(RunStatus.EXITED, 2, (), ("boom\n",))
        introspector = FFprobeIntrospector(
            ProbeOptions(ffprobe_path=ffprobe_binary),
            invoker_factory=make_factory(result),
        )

        with caplog.at_level(logging.WARNING, logger="mediaprobe"):
            with pytest.raises(ProcessFailedError):
                introspector.analyse(media_file)

        assert "exited with code 2" in caplog.text
