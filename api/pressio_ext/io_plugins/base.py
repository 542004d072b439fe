"""
IO plugin contract: persist a DataBuffer to a path and read it back.

Plugins report failures through `error_code` / `error_msg` (0 means no error)
and a falsy return from `write`, so callers can keep going without a try
block around every write.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from pressio_ext.contracts import DataBuffer, DType
from pressio_ext.options import Options

PathLike = Union[str, Path]


class IOPluginError(RuntimeError):
    ...


class IOPlugin:
    name = "base"
    version = "0.0.0"

    def __init__(self):
        self._error_code = 0
        self._error_msg = ""

    @property
    def error_code(self) -> int:
        return self._error_code

    @property
    def error_msg(self) -> str:
        return self._error_msg

    def set_error(self, code: int, msg: str) -> int:
        self._error_code = code
        self._error_msg = msg
        return code

    def write(self, buffer: DataBuffer, path: PathLike) -> bool:
        self.set_error(0, "")
        try:
            self.write_impl(buffer, Path(path))
        except OSError as exc:
            self.set_error(exc.errno or 1, f"{self.name}: cannot write {path}: {exc.strerror or exc}")
            return False
        except IOPluginError as exc:
            self.set_error(2, str(exc))
            return False
        return True

    def read(self, path: PathLike, template: Optional[DataBuffer] = None) -> DataBuffer:
        self.set_error(0, "")
        try:
            return self.read_impl(Path(path), template)
        except OSError as exc:
            self.set_error(exc.errno or 1, f"{self.name}: cannot read {path}: {exc.strerror or exc}")
            raise IOPluginError(self.error_msg) from exc
        except IOPluginError as exc:
            self.set_error(2, str(exc))
            raise

    def configure(self, options: Options) -> None:
        """Apply the options this plugin understands; others are ignored."""

    def get_options(self) -> Options:
        return Options()

    def clone(self) -> "IOPlugin":
        return type(self)()

    def write_impl(self, buffer: DataBuffer, path: Path) -> None:
        raise NotImplementedError

    def read_impl(self, path: Path, template: Optional[DataBuffer]) -> DataBuffer:
        raise NotImplementedError


def buffer_from_raw(raw: bytes, template: Optional[DataBuffer], plugin: str) -> DataBuffer:
    """Shape raw native bytes like `template`, or as a flat byte buffer."""
    if template is None:
        dims = (len(raw),) if raw else ()
        return DataBuffer(dtype=DType.BYTE, dimensions=dims, data=raw)
    if len(raw) != template.nbytes:
        raise IOPluginError(
            f"{plugin}: file holds {len(raw)} bytes, template "
            f"{template.dtype.value}{list(template.dimensions)} needs {template.nbytes}"
        )
    return DataBuffer(dtype=template.dtype, dimensions=template.dimensions, data=raw)
