"""
Temporary exchange store
========================
Stages DataBuffers into uniquely named transient files that an external
program reads, and removes them again. Every handle handed out is closed and
unlinked exactly once, whichever way the evaluation ends.
"""
from __future__ import annotations

import os
import sys
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from pressio_ext.contracts import DataBuffer
from pressio_ext.io_plugins.base import IOPlugin

DEFAULT_PREFIX = ".pressio"


class ExchangeError(RuntimeError):
    """The exchange files could not be prepared; no process was started."""


@dataclass
class TempFileHandle:
    path: Path
    fd: int
    released: bool = field(default=False, compare=False)


class ExchangeStore:
    def __init__(
        self,
        io_module: IOPlugin,
        directory: Optional[Union[str, Path]] = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        self.io_module = io_module
        self.directory = str(directory) if directory is not None else None
        self.prefix = prefix

    def stage(self, buffer: DataBuffer, role: str = "data") -> TempFileHandle:
        """Create a unique file, write `buffer` into it via the io module."""
        try:
            fd, name = tempfile.mkstemp(prefix=f"{self.prefix}{role}", dir=self.directory)
        except OSError as exc:
            print(f"[EXCHANGE] Cannot create exchange file for '{role}': {exc}", file=sys.stderr)
            raise ExchangeError(f"cannot create exchange file for '{role}': {exc}") from exc

        handle = TempFileHandle(path=Path(name), fd=fd)
        try:
            written = self.io_module.write(buffer, handle.path)
        except Exception as exc:
            self.release(handle)
            print(f"[EXCHANGE] {self.io_module.name} raised writing '{role}': {exc!r}", file=sys.stderr)
            raise ExchangeError(f"cannot write exchange file for '{role}': {exc!r}") from exc
        if not written:
            self.release(handle)
            msg = self.io_module.error_msg or f"{self.io_module.name} write failed"
            print(f"[EXCHANGE] Cannot write '{role}' to {handle.path}: {msg}", file=sys.stderr)
            raise ExchangeError(f"cannot write exchange file for '{role}': {msg}")
        return handle

    def release(self, handle: TempFileHandle) -> None:
        if handle.released:
            return
        handle.released = True
        try:
            os.close(handle.fd)
        except OSError:
            pass
        try:
            handle.path.unlink()
        except FileNotFoundError:
            # the external program may have removed it already
            pass

    @contextmanager
    def session(self) -> Iterator[Callable[[DataBuffer, str], TempFileHandle]]:
        """Yield a `stage` callable; everything it staged is released on exit."""
        handles: List[TempFileHandle] = []

        def _stage(buffer: DataBuffer, role: str = "data") -> TempFileHandle:
            handle = self.stage(buffer, role)
            handles.append(handle)
            return handle

        try:
            yield _stage
        finally:
            for handle in handles:
                self.release(handle)
