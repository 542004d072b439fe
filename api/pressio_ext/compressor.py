#!/usr/bin/env python3
"""
Zstd compressor harness
=======================
Lossless compressor that drives a metrics plugin through the
begin/end compress and begin/end decompress hooks, so metrics can be
evaluated on a real compress/decompress cycle.
"""
from __future__ import annotations

import time
from typing import Optional

import zstandard as zstd

from pressio_ext.common_zstd import default_level, make_cctx, make_dctx
from pressio_ext.contracts import DataBuffer, DType
from pressio_ext.metrics.base import MetricsPlugin


class CompressorError(RuntimeError):
    ...


class ZstdCompressor:
    name = "zstd"

    def __init__(self, level: Optional[int] = None, metrics: Optional[MetricsPlugin] = None):
        self.level = default_level() if level is None else int(level)
        self.metrics = metrics if metrics is not None else MetricsPlugin()
        self.last_compress_ms = 0.0
        self.last_decompress_ms = 0.0

    def compress(self, buffer: DataBuffer) -> DataBuffer:
        self.metrics.begin_compress(buffer, None)
        t0 = time.time()
        frame = make_cctx(level=self.level, source_size=buffer.nbytes).compress(buffer.data)
        self.last_compress_ms = (time.time() - t0) * 1000
        compressed = DataBuffer(dtype=DType.BYTE, dimensions=(len(frame),), data=frame)
        self.metrics.end_compress(buffer, compressed, 0)
        return compressed

    def decompress(self, compressed: DataBuffer, template: DataBuffer) -> DataBuffer:
        """Decompress into a buffer shaped like `template`."""
        self.metrics.begin_decompress(compressed, template)
        t0 = time.time()
        try:
            raw = make_dctx().decompress(compressed.data)
        except zstd.ZstdError as exc:
            raise CompressorError(f"not a zstd frame: {exc}") from exc
        self.last_decompress_ms = (time.time() - t0) * 1000
        if len(raw) != template.nbytes:
            raise CompressorError(
                f"decompressed {len(raw)} bytes, expected {template.nbytes} "
                f"for {template.dtype.value}{list(template.dimensions)}"
            )
        output = DataBuffer(dtype=template.dtype, dimensions=template.dimensions, data=raw)
        self.metrics.end_decompress(compressed, output, 0)
        return output

    def roundtrip(self, buffer: DataBuffer) -> DataBuffer:
        return self.decompress(self.compress(buffer), buffer)

    @staticmethod
    def ratio(original: DataBuffer, compressed: DataBuffer) -> float:
        return round(original.nbytes / max(1, compressed.nbytes), 2)
