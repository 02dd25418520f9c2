"""Child process execution with concurrent output capture.

ProcessInvoker starts one child process and captures its stdout and stderr
as independent, ordered sequences of decoded text chunks. Both channels are
drained continuously while the child runs (reader threads in blocking mode,
asyncio tasks in async mode), so a child writing a lot to either pipe can
never block on a full, unread pipe.
"""

from __future__ import annotations

import asyncio
import codecs
import io
import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    """How a child process run ended."""

    EXITED = "exited"  # Child exited on its own; exit_code is set
    CANCELLED = "cancelled"  # Caller asked for cancellation; child was killed
    TIMED_OUT = "timed_out"  # Timeout expired; child was killed


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of one child process run.

    The output and error sequences are write-once: they are filled while the
    child runs and frozen into tuples before the result is returned.
    """

    status: RunStatus
    exit_code: int | None
    """Exit status, or None when the child was killed (cancelled/timed out)."""

    output: tuple[str, ...] = ()
    """Decoded stdout chunks in arrival order."""

    errors: tuple[str, ...] = ()
    """Decoded stderr chunks in arrival order."""

    @property
    def output_text(self) -> str:
        """Full stdout text."""
        return "".join(self.output)

    @property
    def error_text(self) -> str:
        """Full stderr text."""
        return "".join(self.errors)

    @property
    def error_lines(self) -> list[str]:
        """Stderr text split into lines, without line endings."""
        return self.error_text.splitlines()

    @property
    def cancelled(self) -> bool:
        return self.status is RunStatus.CANCELLED

    @property
    def timed_out(self) -> bool:
        return self.status is RunStatus.TIMED_OUT

    @property
    def succeeded(self) -> bool:
        """Return True if the child exited on its own with status 0."""
        return self.status is RunStatus.EXITED and self.exit_code == 0


class ProcessInvoker:
    """Run a single child process and capture its output.

    An invoker instance describes one invocation and must not be shared
    between concurrent runs.

    Example:
        invoker = ProcessInvoker("/usr/bin/ffprobe", ["-version"])
        result = invoker.run()
        if result.succeeded:
            print(result.output_text)
    """

    READ_CHUNK_SIZE: int = 64 * 1024
    POLL_INTERVAL: float = 0.05  # Seconds between cancel/timeout checks
    DRAIN_TIMEOUT: float = 5.0  # Timeout for reader threads after process ends

    def __init__(
        self,
        binary: Path | str,
        arguments: Sequence[str],
        *,
        working_directory: Path | None = None,
        encoding: str = "utf-8",
        timeout: float | None = None,
    ) -> None:
        """Initialize the invoker.

        Args:
            binary: Executable to run.
            arguments: Arguments passed after the executable.
            working_directory: Working directory for the child, or None to
                inherit the caller's.
            encoding: Text encoding of stdout/stderr. Undecodable bytes are
                replaced rather than raising.
            timeout: Seconds before the child is killed. None = no limit.
        """
        codecs.lookup(encoding)  # Fail fast on unknown encodings
        self._command = [str(binary), *arguments]
        self._working_directory = working_directory
        self._encoding = encoding
        self._timeout = timeout

    @property
    def command(self) -> list[str]:
        """Full argv of the child process."""
        return list(self._command)

    # ------------------------------------------------------------------
    # Blocking mode
    # ------------------------------------------------------------------

    def run(self, cancel_event: threading.Event | None = None) -> ProcessResult:
        """Run the child process, blocking until it ends.

        Args:
            cancel_event: Optional event; setting it from another thread kills
                the child and yields a CANCELLED result.

        Returns:
            ProcessResult with captured output.

        Raises:
            FileNotFoundError: If the binary does not exist.
            PermissionError: If the binary is not executable.
        """
        logger.debug("Starting process: %s", " ".join(self._command))
        start_time = time.monotonic()

        process = subprocess.Popen(  # nosec B603 - binary is resolved by caller
            self._command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=self._working_directory,
        )

        output: list[str] = []
        errors: list[str] = []
        assert process.stdout is not None
        assert process.stderr is not None
        readers = [
            threading.Thread(
                target=self._drain_pipe,
                args=(process.stdout, output),
                name="mediaprobe-stdout",
                daemon=True,
            ),
            threading.Thread(
                target=self._drain_pipe,
                args=(process.stderr, errors),
                name="mediaprobe-stderr",
                daemon=True,
            ),
        ]
        for reader in readers:
            reader.start()

        try:
            status = self._wait(process, cancel_event, start_time)
        except BaseException:
            # KeyboardInterrupt and friends must not leave the child running
            self._kill(process)
            raise
        if status is not RunStatus.EXITED:
            self._kill(process)

        for reader in readers:
            reader.join(timeout=self.DRAIN_TIMEOUT)
            if reader.is_alive():
                logger.error(
                    "%s reader thread failed to terminate. "
                    "Thread will be abandoned (potential leak).",
                    reader.name,
                )
        process.stdout.close()
        process.stderr.close()

        exit_code = process.returncode if status is RunStatus.EXITED else None
        logger.debug(
            "Process finished: status=%s exit_code=%s elapsed=%.3fs",
            status.value,
            exit_code,
            time.monotonic() - start_time,
        )
        return ProcessResult(status, exit_code, tuple(output), tuple(errors))

    def _wait(
        self,
        process: subprocess.Popen,
        cancel_event: threading.Event | None,
        start_time: float,
    ) -> RunStatus:
        """Wait for the child, watching the cancel event and the timeout."""
        if cancel_event is None and self._timeout is None:
            process.wait()
            return RunStatus.EXITED

        while True:
            try:
                process.wait(timeout=self.POLL_INTERVAL)
                return RunStatus.EXITED
            except subprocess.TimeoutExpired:
                pass
            if cancel_event is not None and cancel_event.is_set():
                logger.debug("Process cancelled: %s", self._command[0])
                return RunStatus.CANCELLED
            if (
                self._timeout is not None
                and time.monotonic() - start_time >= self._timeout
            ):
                logger.warning(
                    "Process timed out after %s seconds: %s",
                    self._timeout,
                    self._command[0],
                )
                return RunStatus.TIMED_OUT

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        if process.poll() is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass  # Exited between poll() and kill()
        process.wait()

    def _drain_pipe(self, pipe: io.BufferedReader, sink: list[str]) -> None:
        """Read a pipe until EOF, appending decoded chunks to sink."""
        decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        try:
            while chunk := pipe.read1(self.READ_CHUNK_SIZE):
                text = decoder.decode(chunk)
                if text:
                    sink.append(text)
        except (ValueError, OSError) as e:
            # Pipe closed underneath us
            logger.debug("Pipe reader stopped: %s", e)
        tail = decoder.decode(b"", final=True)
        if tail:
            sink.append(tail)

    # ------------------------------------------------------------------
    # Async mode
    # ------------------------------------------------------------------

    async def run_async(
        self, cancel_event: asyncio.Event | None = None
    ) -> ProcessResult:
        """Run the child process without blocking the event loop.

        Args:
            cancel_event: Optional event; setting it kills the child and
                yields a CANCELLED result.

        Returns:
            ProcessResult with captured output.

        Raises:
            asyncio.CancelledError: If the awaiting task is cancelled. The
                child is killed and reaped before the error propagates.
            FileNotFoundError: If the binary does not exist.
            PermissionError: If the binary is not executable.
        """
        logger.debug("Starting process: %s", " ".join(self._command))
        start_time = time.monotonic()

        process = await asyncio.create_subprocess_exec(
            *self._command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=self._working_directory,
        )

        output: list[str] = []
        errors: list[str] = []
        completion = asyncio.ensure_future(
            self._communicate_async(process, output, errors)
        )
        watchers: set[asyncio.Future] = {completion}
        cancel_waiter: asyncio.Future | None = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            watchers.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                watchers,
                timeout=self._timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            logger.debug("Process task cancelled: %s", self._command[0])
            await self._kill_async(process)
            await asyncio.gather(completion, return_exceptions=True)
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if completion in done:
            exit_code = completion.result()
            status = RunStatus.EXITED
        else:
            if cancel_event is not None and cancel_event.is_set():
                logger.debug("Process cancelled: %s", self._command[0])
                status = RunStatus.CANCELLED
            else:
                logger.warning(
                    "Process timed out after %s seconds: %s",
                    self._timeout,
                    self._command[0],
                )
                status = RunStatus.TIMED_OUT
            await self._kill_async(process)
            await completion
            exit_code = None

        logger.debug(
            "Process finished: status=%s exit_code=%s elapsed=%.3fs",
            status.value,
            exit_code,
            time.monotonic() - start_time,
        )
        return ProcessResult(status, exit_code, tuple(output), tuple(errors))

    async def _communicate_async(
        self,
        process: asyncio.subprocess.Process,
        output: list[str],
        errors: list[str],
    ) -> int:
        """Drain both pipes concurrently, then reap the child."""
        assert process.stdout is not None
        assert process.stderr is not None
        await asyncio.gather(
            self._drain_stream(process.stdout, output),
            self._drain_stream(process.stderr, errors),
        )
        return await process.wait()

    async def _drain_stream(
        self, stream: asyncio.StreamReader, sink: list[str]
    ) -> None:
        decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")
        while chunk := await stream.read(self.READ_CHUNK_SIZE):
            text = decoder.decode(chunk)
            if text:
                sink.append(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            sink.append(tail)

    @staticmethod
    async def _kill_async(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass  # Exited before kill()
        await process.wait()
