#!/usr/bin/env python3
"""
External Process Driver
=======================
Runs an external program with stdin closed and stdout/stderr captured on
their own pipes. Both pipes are drained by separate threads while the child
runs: reading one stream to EOF before touching the other deadlocks as soon
as the child fills the pipe buffer of the stream nobody is reading.

Args are always passed as a list, never through a shell.
"""

import asyncio
import errno
import os
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

# status a forked child exits with when it cannot exec its program
EXEC_FAILURE_STATUS = 255
CHUNK_SIZE = 64 * 1024

_EXEC_ERRNOS = {errno.ENOENT, errno.EACCES, errno.ENOEXEC, errno.ENOTDIR, errno.ELOOP}


class InvocationError(str, Enum):
    NONE = "none"
    PIPE_CREATION_FAILED = "pipe_creation_failed"
    SPAWN_FAILED = "spawn_failed"


@dataclass(frozen=True)
class InvocationOutcome:
    stdout: bytes = b""
    stderr: bytes = b""
    exit_code: Optional[int] = None        # set only for a normal exit
    term_signal: Optional[int] = None      # set when killed by a signal
    invocation_error: InvocationError = InvocationError.NONE
    detail: str = ""

    @property
    def started(self) -> bool:
        return self.invocation_error is InvocationError.NONE

    @property
    def exited_normally(self) -> bool:
        return self.exit_code is not None

    @property
    def return_code(self) -> int:
        """Exit code, or -signal for abnormal termination, or -1 if never started."""
        if self.exit_code is not None:
            return self.exit_code
        if self.term_signal is not None:
            return -self.term_signal
        return -1


class _Drain(threading.Thread):
    def __init__(self, fd: int, name: str):
        super().__init__(name=f"drain-{name}", daemon=True)
        self.fd = fd
        self.data = bytearray()
        self.error: Optional[OSError] = None

    def run(self) -> None:
        try:
            with os.fdopen(self.fd, "rb", buffering=0) as stream:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    self.data.extend(chunk)
        except OSError as exc:
            self.error = exc


def _close_fds(*fds: int) -> None:
    for fd in fds:
        try:
            os.close(fd)
        except OSError:
            pass


def _is_exec_failure(exc: OSError) -> bool:
    return exc.errno in _EXEC_ERRNOS


def run_command(argv: Sequence[str]) -> InvocationOutcome:
    """
    Spawn `argv`, capture both output streams in full, wait for exit.

    Never raises for process-level failures; they come back as
    `invocation_error` on the outcome. An exec failure (unknown or
    non-executable program) is reported like a child that exited with
    EXEC_FAILURE_STATUS after printing a diagnostic on its stderr.
    """
    args: List[str] = [str(a) for a in argv]
    if not args:
        return InvocationOutcome(
            invocation_error=InvocationError.SPAWN_FAILED,
            detail="empty argument vector",
        )

    try:
        out_r, out_w = os.pipe()
    except OSError as exc:
        return InvocationOutcome(invocation_error=InvocationError.PIPE_CREATION_FAILED, detail=str(exc))
    try:
        err_r, err_w = os.pipe()
    except OSError as exc:
        _close_fds(out_r, out_w)
        return InvocationOutcome(invocation_error=InvocationError.PIPE_CREATION_FAILED, detail=str(exc))

    try:
        proc = subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=out_w,
            stderr=err_w,
            close_fds=True,
        )
    except OSError as exc:
        _close_fds(out_r, out_w, err_r, err_w)
        if _is_exec_failure(exc):
            diagnostic = f"{args[0]}\n failed to exec process: {exc.strerror}\n"
            return InvocationOutcome(
                stderr=diagnostic.encode("utf-8", "replace"),
                exit_code=EXEC_FAILURE_STATUS,
                detail=str(exc),
            )
        return InvocationOutcome(invocation_error=InvocationError.SPAWN_FAILED, detail=str(exc))
    except (ValueError, TypeError) as exc:
        # e.g. an embedded NUL byte in an argument
        _close_fds(out_r, out_w, err_r, err_w)
        return InvocationOutcome(invocation_error=InvocationError.SPAWN_FAILED, detail=str(exc))
    except BaseException:
        _close_fds(out_r, out_w, err_r, err_w)
        raise

    # the child holds its own copies; keeping ours open would block EOF
    _close_fds(out_w, err_w)

    drains = [_Drain(out_r, "stdout"), _Drain(err_r, "stderr")]
    for d in drains:
        d.start()

    returncode = proc.wait()
    for d in drains:
        d.join()

    read_errors = [f"{d.name}: {d.error}" for d in drains if d.error is not None]
    stdout_drain, stderr_drain = drains

    if returncode < 0:
        exit_code, term_signal = None, -returncode
    else:
        exit_code, term_signal = returncode, None

    return InvocationOutcome(
        stdout=bytes(stdout_drain.data),
        stderr=bytes(stderr_drain.data),
        exit_code=exit_code,
        term_signal=term_signal,
        detail="; ".join(read_errors),
    )


async def run_command_async(argv: Sequence[str]) -> InvocationOutcome:
    """`run_command` on a worker thread, for callers inside an event loop."""
    return await asyncio.to_thread(run_command, argv)
