"""
Command builder for the external metric protocol.

    <template> --api <version> --input <path> --decompressed <path>
               --type <token> [--dim <n>]*

The template is only split on whitespace; the result is an argument vector
handed to the child directly, never to a shell.
"""
from __future__ import annotations

import shlex
from pathlib import Path
from typing import List, Mapping, Union

from pressio_ext.contracts import DataBuffer, DType

PROTOCOL_VERSION = 1

DTYPE_TOKENS: Mapping[DType, str] = {
    DType.FLOAT: "float",
    DType.DOUBLE: "double",
    DType.INT8: "int8",
    DType.INT16: "int16",
    DType.INT32: "int32",
    DType.INT64: "int64",
    DType.UINT8: "uint8",
    DType.UINT16: "uint16",
    DType.UINT32: "uint32",
    DType.UINT64: "uint64",
    DType.BYTE: "byte",
}

_TOKEN_DTYPES = {token: dtype for dtype, token in DTYPE_TOKENS.items()}


class CommandError(ValueError):
    ...


_unmapped = [d.value for d in DType if d not in DTYPE_TOKENS]
if _unmapped:
    raise CommandError(f"no --type token for element types: {', '.join(_unmapped)}")


def dtype_token(dtype: DType) -> str:
    try:
        return DTYPE_TOKENS[dtype]
    except KeyError:
        raise CommandError(f"no --type token for element type {dtype!r}") from None


def dtype_from_token(token: str) -> DType:
    try:
        return _TOKEN_DTYPES[token]
    except KeyError:
        raise CommandError(f"unknown --type token '{token}'") from None


def build_command(
    template: str,
    protocol_version: int,
    input_path: Union[str, Path],
    output_path: Union[str, Path],
    buffer: DataBuffer,
) -> List[str]:
    argv = template.split()
    if not argv:
        raise CommandError("external command is empty")

    argv += ["--api", str(protocol_version)]
    argv += ["--input", str(input_path)]
    argv += ["--decompressed", str(output_path)]
    argv += ["--type", dtype_token(buffer.dtype)]
    for dim in buffer.dimensions:
        argv += ["--dim", str(dim)]
    return argv


def render_command(argv: List[str]) -> str:
    """Printable form of an argument vector, for trace output only."""
    return shlex.join(argv)
