"""
Zstd-framed exchange format: one zstd frame holding the raw element dump.
Useful when the external program and the data live on different hosts.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import zstandard as zstd

from pressio_ext.common_zstd import default_level, make_cctx, make_dctx
from pressio_ext.contracts import DataBuffer
from pressio_ext.io_plugins.base import IOPlugin, IOPluginError, buffer_from_raw
from pressio_ext.options import Options, OptionStatus, OptionType


class ZstdIO(IOPlugin):
    name = "zstd"
    version = "1.0.0"

    def __init__(self, level: Optional[int] = None):
        super().__init__()
        self.level = default_level() if level is None else int(level)

    def configure(self, options: Options) -> None:
        if options.key_status("zstd:level") == OptionStatus.KEY_SET:
            self.level = int(options.get("zstd:level"))

    def get_options(self) -> Options:
        opts = Options()
        opts.set("zstd:level", self.level, OptionType.INT32)
        return opts

    def clone(self) -> "ZstdIO":
        return ZstdIO(level=self.level)

    def write_impl(self, buffer: DataBuffer, path: Path) -> None:
        cctx = make_cctx(level=self.level, source_size=buffer.nbytes)
        with open(path, "wb") as f:
            f.write(cctx.compress(buffer.data))

    def read_impl(self, path: Path, template: Optional[DataBuffer]) -> DataBuffer:
        try:
            raw = make_dctx().decompress(path.read_bytes())
        except zstd.ZstdError as exc:
            raise IOPluginError(f"{self.name}: {path} is not a zstd frame: {exc}") from exc
        return buffer_from_raw(raw, template, self.name)
