"""Child process execution for mediaprobe.

- ProcessInvoker: runs one child with concurrent stdout/stderr capture,
  blocking or async, with cancellation and timeout
- ProcessResult/RunStatus: captured outcome of a run
- InputPipe: named pipe feeding a byte source to the child
"""

from mediaprobe.process.invoker import ProcessInvoker, ProcessResult, RunStatus
from mediaprobe.process.pipes import ByteSource, InputPipe

__all__ = [
    "ByteSource",
    "InputPipe",
    "ProcessInvoker",
    "ProcessResult",
    "RunStatus",
]
