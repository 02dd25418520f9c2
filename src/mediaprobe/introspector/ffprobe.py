"""FFprobe-based implementation of the MediaIntrospector protocol."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import uuid
from collections.abc import Awaitable, Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from mediaprobe.config.models import ProbeOptions
from mediaprobe.domain.analysis import MediaAnalysis
from mediaprobe.domain.enums import ReportKind
from mediaprobe.domain.reports import (
    ContainerReport,
    FrameReport,
    PacketReport,
    PixelFormatCatalogue,
)
from mediaprobe.introspector.checks import check_input, check_result, require_ffprobe
from mediaprobe.introspector.interface import DecodeFailedError, ToolNotFoundError
from mediaprobe.introspector.parsers import Report, parse_report
from mediaprobe.introspector.sources import InputSource, StreamSource, as_source
from mediaprobe.logging.context import probe_context
from mediaprobe.process.invoker import ProcessInvoker, ProcessResult
from mediaprobe.process.pipes import InputPipe

logger = logging.getLogger(__name__)

InvokerFactory = Callable[..., ProcessInvoker]

_COMMON_FLAGS = ("-loglevel", "error", "-print_format", "json")

_KIND_FLAGS: dict[ReportKind, tuple[str, ...]] = {
    ReportKind.CONTAINER: ("-show_format", "-sexagesimal", "-show_streams"),
    ReportKind.FRAMES: ("-show_frames", "-v", "quiet", "-sexagesimal"),
    ReportKind.PACKETS: ("-show_packets", "-v", "quiet", "-sexagesimal"),
    ReportKind.PIXEL_FORMATS: ("-show_pixel_formats",),
}

# Seconds to wait for the pump thread once the child has ended
PUMP_JOIN_TIMEOUT = 5.0


def build_arguments(
    kind: ReportKind,
    locator: str | None = None,
    extra_arguments: Sequence[str] = (),
) -> list[str]:
    """Build the ffprobe argument list for one report kind.

    Args:
        kind: Report to request.
        locator: Input path, URI or pipe path. Ignored for pixel formats.
        extra_arguments: Caller arguments inserted before the input.

    Returns:
        Arguments to pass after the ffprobe executable.

    Raises:
        ValueError: If the kind needs an input and no locator is given.
    """
    arguments = [*_COMMON_FLAGS, *_KIND_FLAGS[kind]]
    if not kind.needs_input:
        return arguments
    if not locator:
        raise ValueError(f"{kind.value} report requires an input locator")
    arguments.extend(extra_arguments)
    arguments.append(locator)
    return arguments


def _new_invocation_id() -> str:
    return uuid.uuid4().hex[:8]


def _discard_outcome(pump: concurrent.futures.Future | asyncio.Future) -> None:
    if not pump.cancelled() and pump.exception() is not None:
        logger.debug("Abandoned input pipe pump failed: %s", pump.exception())


def _describe(source: InputSource | None) -> str | None:
    if source is None:
        return None
    if isinstance(source, StreamSource):
        return "<stream>"
    return source.locator


class FFprobeIntrospector:
    """ffprobe-based implementation of MediaIntrospector protocol.

    Every operation runs the same pipeline: pre-flight checks (input exists,
    ffprobe exists), the ffprobe process (fed through a named pipe for byte
    stream inputs), post-flight checks (cancelled, timed out, exit status)
    and decoding. Blocking and async entry points share all of it except
    the waiting.

    An introspector holds only immutable options and can be shared between
    threads and tasks; each call creates its own invoker and pipe.

    Example:
        introspector = FFprobeIntrospector(load_probe_options())
        analysis = introspector.analyse("/videos/movie.mkv")
        print(analysis.primary_video_stream.frame_rate)
    """

    def __init__(
        self,
        options: ProbeOptions | None = None,
        *,
        invoker_factory: InvokerFactory = ProcessInvoker,
    ) -> None:
        """Initialize the introspector.

        Args:
            options: Invocation options. Defaults to ProbeOptions().
            invoker_factory: Callable building the ProcessInvoker for a run;
                takes the same arguments as ProcessInvoker.
        """
        self._options = options or ProbeOptions()
        self._invoker_factory = invoker_factory

    @property
    def options(self) -> ProbeOptions:
        return self._options

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def run(
        self,
        source: object = None,
        kind: ReportKind = ReportKind.CONTAINER,
        cancel_event: threading.Event | None = None,
    ) -> ProcessResult:
        """Run ffprobe and return its successful result.

        Args:
            source: Input (path, URI, byte stream or InputSource). Not used
                for pixel formats.
            kind: Report to request.
            cancel_event: Setting it from another thread kills ffprobe.

        Returns:
            ProcessResult of a run that exited with status 0.

        Raises:
            InputNotFoundError: If a local input does not exist.
            ToolNotFoundError: If ffprobe cannot be found or started.
            ProcessFailedError: If ffprobe exits non-zero or times out.
            ProbeCancelledError: If cancel_event was set.
        """
        resolved = self._resolve_source(source, kind)
        with self._context(resolved):
            return self._execute(resolved, kind, cancel_event)

    async def run_async(
        self,
        source: object = None,
        kind: ReportKind = ReportKind.CONTAINER,
        cancel_event: asyncio.Event | None = None,
    ) -> ProcessResult:
        """Asynchronous counterpart of run().

        Cancelling the awaiting task kills ffprobe, tears down the input
        pipe, and re-raises asyncio.CancelledError.
        """
        resolved = self._resolve_source(source, kind)
        with self._context(resolved):
            return await self._execute_async(resolved, kind, cancel_event)

    def probe(
        self,
        source: object = None,
        kind: ReportKind = ReportKind.CONTAINER,
        cancel_event: threading.Event | None = None,
    ) -> Report:
        """Run ffprobe and decode its output into the report for kind.

        Raises:
            DecodeFailedError: If the output cannot be decoded, in addition
                to everything run() raises.
        """
        resolved = self._resolve_source(source, kind)
        with self._context(resolved):
            result = self._execute(resolved, kind, cancel_event)
            return self._decode(result, kind)

    async def probe_async(
        self,
        source: object = None,
        kind: ReportKind = ReportKind.CONTAINER,
        cancel_event: asyncio.Event | None = None,
    ) -> Report:
        """Asynchronous counterpart of probe()."""
        resolved = self._resolve_source(source, kind)
        with self._context(resolved):
            result = await self._execute_async(resolved, kind, cancel_event)
            return self._decode(result, kind)

    # ------------------------------------------------------------------
    # Adapters
    # ------------------------------------------------------------------

    def analyse(
        self, source: object, cancel_event: threading.Event | None = None
    ) -> MediaAnalysis:
        """Analyse the container and streams of an input."""
        resolved = self._resolve_source(source, ReportKind.CONTAINER)
        with self._context(resolved):
            result = self._execute(resolved, ReportKind.CONTAINER, cancel_event)
            return self._analysis(result)

    async def analyse_async(
        self, source: object, cancel_event: asyncio.Event | None = None
    ) -> MediaAnalysis:
        resolved = self._resolve_source(source, ReportKind.CONTAINER)
        with self._context(resolved):
            result = await self._execute_async(
                resolved, ReportKind.CONTAINER, cancel_event
            )
            return self._analysis(result)

    def get_frames(
        self, source: object, cancel_event: threading.Event | None = None
    ) -> FrameReport:
        return self.probe(source, ReportKind.FRAMES, cancel_event)  # type: ignore[return-value]

    async def get_frames_async(
        self, source: object, cancel_event: asyncio.Event | None = None
    ) -> FrameReport:
        return await self.probe_async(source, ReportKind.FRAMES, cancel_event)  # type: ignore[return-value]

    def get_packets(
        self, source: object, cancel_event: threading.Event | None = None
    ) -> PacketReport:
        return self.probe(source, ReportKind.PACKETS, cancel_event)  # type: ignore[return-value]

    async def get_packets_async(
        self, source: object, cancel_event: asyncio.Event | None = None
    ) -> PacketReport:
        return await self.probe_async(source, ReportKind.PACKETS, cancel_event)  # type: ignore[return-value]

    def get_pixel_formats(
        self, cancel_event: threading.Event | None = None
    ) -> PixelFormatCatalogue:
        """Return the pixel formats known to the ffprobe build."""
        return self.probe(None, ReportKind.PIXEL_FORMATS, cancel_event)  # type: ignore[return-value]

    async def get_pixel_formats_async(
        self, cancel_event: asyncio.Event | None = None
    ) -> PixelFormatCatalogue:
        return await self.probe_async(None, ReportKind.PIXEL_FORMATS, cancel_event)  # type: ignore[return-value]

    def get_report_json(
        self,
        source: object,
        kind: ReportKind = ReportKind.CONTAINER,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """Return ffprobe's raw JSON report without decoding it."""
        return self.run(source, kind, cancel_event).output_text

    async def get_report_json_async(
        self,
        source: object,
        kind: ReportKind = ReportKind.CONTAINER,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        result = await self.run_async(source, kind, cancel_event)
        return result.output_text

    # ------------------------------------------------------------------
    # Shared pipeline
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_source(source: object, kind: ReportKind) -> InputSource | None:
        if not kind.needs_input:
            return None
        if source is None:
            raise ValueError(f"{kind.value} report requires an input source")
        return as_source(source)

    @staticmethod
    @contextmanager
    def _context(source: InputSource | None) -> Iterator[None]:
        with probe_context(_new_invocation_id(), _describe(source)):
            yield

    def _preflight(self, source: InputSource | None) -> Path:
        """Run the pre-flight checks; input first, then the tool."""
        if source is not None:
            check_input(source)
        return require_ffprobe(self._options)

    def _create_invoker(
        self, binary: Path, kind: ReportKind, locator: str | None
    ) -> ProcessInvoker:
        arguments = build_arguments(kind, locator, self._options.extra_arguments)
        return self._invoker_factory(
            binary,
            arguments,
            working_directory=self._options.working_directory,
            encoding=self._options.encoding,
            timeout=self._options.timeout,
        )

    def _create_pipe(self, source: StreamSource) -> InputPipe:
        return InputPipe(source.stream, self._options.pipe_chunk_size)

    def _execute(
        self,
        source: InputSource | None,
        kind: ReportKind,
        cancel_event: threading.Event | None,
    ) -> ProcessResult:
        binary = self._preflight(source)

        if not isinstance(source, StreamSource):
            locator = source.locator if source is not None else None
            invoker = self._create_invoker(binary, kind, locator)
            result = self._spawn(binary, lambda: invoker.run(cancel_event))
            return check_result(result)

        with self._create_pipe(source) as pipe:
            invoker = self._create_invoker(binary, kind, str(pipe.path))
            pump = pipe.start()
            try:
                result = self._spawn(binary, lambda: invoker.run(cancel_event))
            finally:
                pipe.stop()
                concurrent.futures.wait([pump], timeout=PUMP_JOIN_TIMEOUT)
                self._report_pump(pump)
        return check_result(result)

    async def _execute_async(
        self,
        source: InputSource | None,
        kind: ReportKind,
        cancel_event: asyncio.Event | None,
    ) -> ProcessResult:
        binary = self._preflight(source)

        if not isinstance(source, StreamSource):
            locator = source.locator if source is not None else None
            invoker = self._create_invoker(binary, kind, locator)
            result = await self._spawn_async(binary, invoker.run_async(cancel_event))
            return check_result(result)

        with self._create_pipe(source) as pipe:
            invoker = self._create_invoker(binary, kind, str(pipe.path))
            pump = asyncio.wrap_future(pipe.start())
            try:
                result = await self._spawn_async(
                    binary, invoker.run_async(cancel_event)
                )
            finally:
                pipe.stop()
                await asyncio.wait({pump}, timeout=PUMP_JOIN_TIMEOUT)
                self._report_pump(pump)
        return check_result(result)

    @staticmethod
    def _spawn(binary: Path, run: Callable[[], ProcessResult]) -> ProcessResult:
        try:
            return run()
        except (FileNotFoundError, PermissionError) as e:
            raise ToolNotFoundError(f"Cannot execute ffprobe at {binary}: {e}") from e

    @staticmethod
    async def _spawn_async(
        binary: Path, run: Awaitable[ProcessResult]
    ) -> ProcessResult:
        try:
            return await run
        except (FileNotFoundError, PermissionError) as e:
            raise ToolNotFoundError(f"Cannot execute ffprobe at {binary}: {e}") from e

    @staticmethod
    def _report_pump(pump: concurrent.futures.Future | asyncio.Future) -> None:
        """Log the outcome of a joined pump; pump errors are never raised.

        The child's exit status decides the outcome of a run. A source that
        fails mid-read shows up as truncated input in ffprobe's own report.
        A pump still blocked in its source is left to its daemon thread.
        """
        if not pump.done():
            logger.warning(
                "Input pipe pump did not stop within %ss; abandoning it",
                PUMP_JOIN_TIMEOUT,
            )
            pump.add_done_callback(_discard_outcome)
            return
        if pump.cancelled():
            return
        error = pump.exception()
        if error is not None:
            logger.warning("Input pipe pump failed: %s", error, exc_info=error)
        else:
            logger.debug("Input pipe pump wrote %d bytes", pump.result())

    @staticmethod
    def _decode(result: ProcessResult, kind: ReportKind) -> Report:
        try:
            return parse_report(result.output_text, kind)
        except DecodeFailedError as e:
            e.stderr = result.error_text
            raise

    def _analysis(self, result: ProcessResult) -> MediaAnalysis:
        report = self._decode(result, ReportKind.CONTAINER)
        assert isinstance(report, ContainerReport)
        return MediaAnalysis(report, tuple(result.error_lines))
