"""Named-pipe input for feeding byte streams to a child process.

InputPipe exposes an arbitrary readable byte source (open file, socket
stream, generator of chunks) as a filesystem path that ffprobe can open
like any other input. The source does not need to be seekable or bounded.

Lifecycle:
    prepare()  - create the FIFO; must happen before the child starts
    pump()     - copy bytes into the FIFO while the child runs (worker thread)
    start()    - run pump() on a daemon thread, returning a Future
    stop()     - ask the pump to give up once the child is done
    finalize() - remove the FIFO and its directory; idempotent

A reader closing the pipe early (ffprobe often stops after it has seen
enough data) ends the pump normally and is never reported as an error.
"""

from __future__ import annotations

import concurrent.futures
import contextvars
import errno
import logging
import os
import shutil
import tempfile
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import IO, BinaryIO, Union

from mediaprobe.config.models import DEFAULT_PIPE_CHUNK_SIZE

logger = logging.getLogger(__name__)

ByteSource = Union[BinaryIO, IO[bytes], Iterable[bytes]]


class InputPipe:
    """Feed a byte source to a child process through a named pipe (FIFO).

    One instance serves one invocation; it is not reusable.

    Example:
        with InputPipe(stream) as pipe:
            pump = pipe.start()
            # run the child with str(pipe.path) as its input, then:
            pipe.stop()
    """

    OPEN_POLL_INTERVAL: float = 0.01  # Seconds between attempts to open the FIFO

    def __init__(
        self,
        source: ByteSource,
        chunk_size: int = DEFAULT_PIPE_CHUNK_SIZE,
    ) -> None:
        """Initialize the pipe.

        Args:
            source: Object with a read(n) method, or an iterable of bytes.
            chunk_size: Bytes read from the source per write.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._source = source
        self._chunk_size = chunk_size
        self._directory: Path | None = None
        self._path: Path | None = None
        self._stopped = threading.Event()
        self._finalize_lock = threading.Lock()
        self._finalized = False
        self.bytes_written = 0

    @property
    def path(self) -> Path:
        """Filesystem path of the FIFO.

        Raises:
            RuntimeError: If prepare() has not been called.
        """
        if self._path is None:
            raise RuntimeError("Input pipe has not been prepared")
        return self._path

    def prepare(self) -> Path:
        """Create the FIFO in a private temporary directory.

        Returns:
            Path to pass to the child process as its input.

        Raises:
            OSError: If named pipes are unsupported or cannot be created.
            RuntimeError: If called twice or after finalize().
        """
        if self._path is not None or self._finalized:
            raise RuntimeError("Input pipe can only be prepared once")
        if not hasattr(os, "mkfifo"):
            raise OSError(
                errno.ENOSYS, "Named pipes are not supported on this platform"
            )

        directory = Path(tempfile.mkdtemp(prefix="mediaprobe-"))
        path = directory / "input.pipe"
        try:
            os.mkfifo(path, 0o600)
        except OSError:
            shutil.rmtree(directory, ignore_errors=True)
            raise

        self._directory = directory
        self._path = path
        logger.debug("Created input pipe: %s", path)
        return path

    def pump(self) -> int:
        """Copy the source into the FIFO until it is exhausted or closed.

        Blocks until the reading side opens the FIFO, so it must run
        concurrently with the child process, typically in a worker thread.

        Returns:
            Number of bytes written.

        Raises:
            OSError: Errors other than the reader closing the pipe.
            Exception: Anything raised by the source while reading.
        """
        conduit = self._open_for_writing()
        if conduit is None:
            logger.debug("Input pipe stopped before a reader connected")
            return self.bytes_written

        try:
            with conduit:
                for chunk in self._chunks():
                    if self._stopped.is_set():
                        break
                    conduit.write(chunk)
                    # A live source may stall after this chunk
                    conduit.flush()
                    self.bytes_written += len(chunk)
        except (BrokenPipeError, ConnectionResetError):
            logger.debug(
                "Reader closed input pipe after %d bytes", self.bytes_written
            )
        return self.bytes_written

    def start(self) -> concurrent.futures.Future[int]:
        """Run pump() on a daemon thread in a copy of the caller's context.

        A pump blocked in a source read after the child is gone is
        abandoned; as a daemon it never holds up interpreter exit.

        Returns:
            Future resolved with pump()'s byte count or its exception.
        """
        future: concurrent.futures.Future[int] = concurrent.futures.Future()
        context = contextvars.copy_context()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(context.run(self.pump))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run, name="mediaprobe-pump", daemon=True).start()
        return future

    def stop(self) -> None:
        """Ask a pending or running pump to give up. Safe to call repeatedly."""
        self._stopped.set()

    def finalize(self) -> None:
        """Stop the pump and remove the FIFO. Runs its cleanup exactly once."""
        with self._finalize_lock:
            if self._finalized:
                return
            self._finalized = True

        self.stop()
        if self._directory is not None:
            shutil.rmtree(self._directory, ignore_errors=True)
            logger.debug("Removed input pipe: %s", self._path)

    def __enter__(self) -> InputPipe:
        self.prepare()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finalize()

    def _open_for_writing(self) -> BinaryIO | None:
        """Open the FIFO for writing once a reader is present.

        A plain blocking open would hang forever if the child never opens
        its input, so the FIFO is opened non-blocking (ENXIO until a reader
        appears) and switched to blocking once connected.

        Returns:
            Writable file object, or None if stop() was called first.
        """
        path = self.path
        while not self._stopped.is_set():
            try:
                fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
            except OSError as e:
                if e.errno != errno.ENXIO:
                    raise
                self._stopped.wait(self.OPEN_POLL_INTERVAL)
                continue
            os.set_blocking(fd, True)
            return os.fdopen(fd, "wb")
        return None

    def _chunks(self) -> Iterator[bytes]:
        read = getattr(self._source, "read", None)
        if read is not None:
            while chunk := read(self._chunk_size):
                yield chunk
        else:
            for chunk in self._source:  # type: ignore[union-attr]
                if chunk:
                    yield bytes(chunk)
