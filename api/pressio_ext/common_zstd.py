#!/usr/bin/env python3
"""
Shared zstd compressor factory for the compressor harness and the zstd io
plugin, so both produce frames with the same settings.
"""

from __future__ import annotations

import math
import os
from typing import Optional

import zstandard as zstd

DEFAULT_LEVEL = 3


def default_level() -> int:
    raw = os.getenv("PRESSIO_ZSTD_LEVEL", "").strip()
    if not raw:
        return DEFAULT_LEVEL
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_LEVEL


def _adaptive_window_log(source_size: Optional[int]) -> int:
    """Choose a conservative adaptive window log (20..28)."""
    if not source_size or source_size <= 0:
        return 25
    wl = int(math.ceil(math.log2(max(1, int(source_size)))))
    return max(20, min(28, wl))


def make_cctx(
    *,
    level: Optional[int] = None,
    threads: Optional[int] = 0,
    write_content_size: bool = True,
    write_checksum: bool = True,
    source_size: Optional[int] = None,
):
    """
    Build a zstd compressor with consistent defaults.

    Numeric buffers are not text-like, so long-distance matching stays off;
    a window log is only pinned when the source size is known.
    """
    lvl = default_level() if level is None else int(level)
    eff_threads = 0 if threads is None else int(threads)

    if source_size is not None:
        try:
            params = zstd.ZstdCompressionParameters.from_level(
                lvl,
                source_size=int(source_size),
                window_log=_adaptive_window_log(source_size),
                threads=eff_threads,
                write_content_size=int(write_content_size),
                write_checksum=int(write_checksum),
            )
            return zstd.ZstdCompressor(compression_params=params)
        except (zstd.ZstdError, ValueError, TypeError):
            # Tuning is best-effort; fall through to a plain compressor.
            pass

    return zstd.ZstdCompressor(
        level=lvl,
        threads=eff_threads,
        write_content_size=write_content_size,
        write_checksum=write_checksum,
    )


def make_dctx():
    return zstd.ZstdDecompressor()
