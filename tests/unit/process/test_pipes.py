"""Unit tests for InputPipe."""

import io
import os
import stat
import subprocess
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import patch

import pytest

import mediaprobe
from mediaprobe.process.invoker import ProcessInvoker, RunStatus
from mediaprobe.process.pipes import InputPipe

pytestmark = pytest.mark.skipif(
    not hasattr(os, "mkfifo"), reason="named pipes require POSIX"
)

TEN_MB = 10 * 1024 * 1024


def read_all(path: Path, sink: list[bytes]) -> None:
    with open(path, "rb") as f:
        sink.append(f.read())


class StallingSource:
    """Returns one chunk, then blocks until released."""

    def __init__(self, chunk: bytes) -> None:
        self.chunk = chunk
        self.released = threading.Event()
        self.calls = 0

    def read(self, size: int) -> bytes:
        self.calls += 1
        if self.calls == 1:
            return self.chunk
        self.released.wait(30)
        return b""


class TestInputPipeLifecycle:
    """Tests for prepare/finalize."""

    def test_prepare_creates_private_fifo(self) -> None:
        pipe = InputPipe(io.BytesIO(b"data"))
        path = pipe.prepare()
        try:
            mode = path.stat().st_mode
            assert stat.S_ISFIFO(mode)
            assert stat.S_IMODE(mode) & 0o077 == 0
            assert pipe.path == path
        finally:
            pipe.finalize()

    def test_finalize_removes_fifo_and_directory(self) -> None:
        pipe = InputPipe(io.BytesIO(b"data"))
        path = pipe.prepare()

        pipe.finalize()

        assert not path.exists()
        assert not path.parent.exists()

    def test_finalize_is_idempotent(self) -> None:
        pipe = InputPipe(io.BytesIO(b"data"))
        pipe.prepare()

        pipe.finalize()
        pipe.finalize()

    def test_finalize_without_prepare_is_safe(self) -> None:
        InputPipe(io.BytesIO(b"")).finalize()

    def test_path_before_prepare_raises(self) -> None:
        with pytest.raises(RuntimeError, match="not been prepared"):
            _ = InputPipe(io.BytesIO(b"")).path

    def test_prepare_twice_raises(self) -> None:
        with InputPipe(io.BytesIO(b"")) as pipe:
            with pytest.raises(RuntimeError, match="only be prepared once"):
                pipe.prepare()

    def test_context_manager_prepares_and_finalizes(self) -> None:
        with InputPipe(io.BytesIO(b"")) as pipe:
            path = pipe.path
            assert path.exists()
        assert not path.exists()

    def test_unsupported_platform_raises_oserror(self) -> None:
        pipe = InputPipe(io.BytesIO(b""))
        with patch("mediaprobe.process.pipes.os") as mock_os:
            del mock_os.mkfifo
            with pytest.raises(OSError, match="not supported"):
                pipe.prepare()

    def test_invalid_chunk_size_rejected(self) -> None:
        with pytest.raises(ValueError, match="chunk_size"):
            InputPipe(io.BytesIO(b""), chunk_size=0)


class TestInputPipePump:
    """Tests for copying bytes through the FIFO."""

    def test_pump_copies_readable_source(self) -> None:
        payload = os.urandom(300_000)
        received: list[bytes] = []

        with InputPipe(io.BytesIO(payload), chunk_size=4096) as pipe:
            reader = threading.Thread(target=read_all, args=(pipe.path, received))
            reader.start()
            written = pipe.pump()
            reader.join(timeout=10)

        assert written == len(payload)
        assert pipe.bytes_written == len(payload)
        assert received == [payload]

    def test_pump_copies_iterable_source(self) -> None:
        chunks = [b"abc", b"", bytearray(b"def"), b"ghi"]
        received: list[bytes] = []

        with InputPipe(iter(chunks)) as pipe:
            reader = threading.Thread(target=read_all, args=(pipe.path, received))
            reader.start()
            written = pipe.pump()
            reader.join(timeout=10)

        assert written == 9
        assert received == [b"abcdefghi"]

    def test_stop_before_reader_connects_ends_pump(self) -> None:
        with InputPipe(io.BytesIO(b"data")) as pipe:
            with ThreadPoolExecutor(max_workers=1) as executor:
                future = executor.submit(pipe.pump)
                pipe.stop()
                assert future.result(timeout=5) == 0

    def test_reader_closing_early_is_not_an_error(self) -> None:
        """A reader that stops after 1 KB of a 10 MB source ends the pump quietly."""

        def read_first_kilobyte(path: Path) -> bytes:
            with open(path, "rb", buffering=0) as f:
                return f.read(1024)

        with InputPipe(io.BytesIO(b"\0" * TEN_MB)) as pipe:
            with ThreadPoolExecutor(max_workers=1) as executor:
                head = executor.submit(read_first_kilobyte, pipe.path)
                written = pipe.pump()
                assert len(head.result(timeout=10)) == 1024

        assert written < TEN_MB

    def test_source_errors_propagate(self) -> None:
        class FailingSource:
            def read(self, size: int) -> bytes:
                raise OSError("network is down")

        received: list[bytes] = []
        with InputPipe(FailingSource()) as pipe:
            reader = threading.Thread(target=read_all, args=(pipe.path, received))
            reader.start()
            with pytest.raises(OSError, match="network is down"):
                pipe.pump()
            reader.join(timeout=10)


class TestInputPipeWithChildProcess:
    """The pipe feeding a real child process while it runs."""

    def test_ten_megabytes_to_child_reading_one_kilobyte(self) -> None:
        """Finalize completes and the child's exit status is reported."""
        code = (
            "import sys\n"
            "with open(sys.argv[1], 'rb') as f:\n"
            "    data = f.read(1024)\n"
            "print(len(data))\n"
            "sys.exit(7)\n"
        )
        pipe = InputPipe(io.BytesIO(b"\xab" * TEN_MB))
        pipe.prepare()
        try:
            invoker = ProcessInvoker(
                sys.executable, ["-c", code, str(pipe.path)], timeout=30
            )
            with ThreadPoolExecutor(max_workers=1) as executor:
                pump = executor.submit(pipe.pump)
                result = invoker.run()
                pipe.stop()
                written = pump.result(timeout=10)
        finally:
            pipe.finalize()

        assert result.status is RunStatus.EXITED
        assert result.exit_code == 7
        assert result.output_text.strip() == "1024"
        assert written < TEN_MB


class TestInputPipeStart:
    """Tests for running the pump on its own thread."""

    def test_future_resolves_with_byte_count(self) -> None:
        received: list[bytes] = []

        with InputPipe(io.BytesIO(b"payload")) as pipe:
            reader = threading.Thread(target=read_all, args=(pipe.path, received))
            reader.start()
            future = pipe.start()
            assert future.result(timeout=10) == 7
            reader.join(timeout=10)

        assert received == [b"payload"]

    def test_pump_thread_is_daemon(self) -> None:
        with InputPipe(io.BytesIO(b"")) as pipe:
            future = pipe.start()
            pumps = [t for t in threading.enumerate() if t.name == "mediaprobe-pump"]
            pipe.stop()
            assert future.result(timeout=5) == 0

        assert pumps
        assert all(t.daemon for t in pumps)

    def test_source_error_is_set_on_future(self) -> None:
        class FailingSource:
            def read(self, size: int) -> bytes:
                raise OSError("network is down")

        received: list[bytes] = []
        with InputPipe(FailingSource()) as pipe:
            reader = threading.Thread(target=read_all, args=(pipe.path, received))
            reader.start()
            future = pipe.start()
            error = future.exception(timeout=10)
            reader.join(timeout=10)

        assert isinstance(error, OSError)
        assert "network is down" in str(error)

    def test_chunk_reaches_reader_while_source_stalls(self) -> None:
        """Bytes already read from a live source are not held back."""
        source = StallingSource(b"x" * 16)
        head: list[bytes] = []

        def read_head(path: Path) -> None:
            with open(path, "rb") as f:
                head.append(f.read(16))

        with InputPipe(source) as pipe:
            reader = threading.Thread(target=read_head, args=(pipe.path,))
            reader.start()
            future = pipe.start()
            try:
                reader.join(timeout=5)
                assert not reader.is_alive()
                assert head == [b"x" * 16]
                assert not source.released.is_set()
            finally:
                pipe.stop()
                source.released.set()
            assert future.result(timeout=5) == 16

    def test_stalled_pump_does_not_block_interpreter_exit(self) -> None:
        code = (
            "import threading\n"
            "from mediaprobe.process.pipes import InputPipe\n"
            "class Stalled:\n"
            "    def read(self, size):\n"
            "        threading.Event().wait()\n"
            "pipe = InputPipe(Stalled())\n"
            "pipe.prepare()\n"
            "pipe.start()\n"
            "reader = open(pipe.path, 'rb')\n"
            "pipe.finalize()\n"
            "print('done')\n"
        )
        src_dir = str(Path(mediaprobe.__file__).parent.parent)
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (src_dir, env.get("PYTHONPATH")) if p
        )

        result = subprocess.run(
            [sys.executable, "-c", code],
            capture_output=True,
            text=True,
            env=env,
            timeout=30,
        )

        assert result.returncode == 0, result.stderr
        assert result.stdout.strip() == "done"
