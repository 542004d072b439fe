"""Raw native-endian element dump, no header."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pressio_ext.contracts import DataBuffer
from pressio_ext.io_plugins.base import IOPlugin, buffer_from_raw


class PosixIO(IOPlugin):
    name = "posix"
    version = "1.0.0"

    def write_impl(self, buffer: DataBuffer, path: Path) -> None:
        with open(path, "wb") as f:
            f.write(buffer.data)

    def read_impl(self, path: Path, template: Optional[DataBuffer]) -> DataBuffer:
        return buffer_from_raw(path.read_bytes(), template, self.name)
