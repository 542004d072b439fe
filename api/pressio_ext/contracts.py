"""
Shared data contracts: element types, the DataBuffer exchanged between
compressor, metrics and IO plugins, and the external metric configuration.
"""
from __future__ import annotations

import os
import struct
from enum import Enum
from math import prod
from typing import Iterable, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DType(str, Enum):
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT = "float"
    DOUBLE = "double"
    BYTE = "byte"

    @property
    def struct_code(self) -> str:
        return _STRUCT_CODES[self]

    @property
    def itemsize(self) -> int:
        return struct.calcsize("=" + _STRUCT_CODES[self])


_STRUCT_CODES = {
    DType.INT8: "b",
    DType.INT16: "h",
    DType.INT32: "i",
    DType.INT64: "q",
    DType.UINT8: "B",
    DType.UINT16: "H",
    DType.UINT32: "I",
    DType.UINT64: "Q",
    DType.FLOAT: "f",
    DType.DOUBLE: "d",
    DType.BYTE: "B",
}


class DataBuffer(BaseModel):
    """
    Typed, multi-dimensional array description.

    `data` holds the elements in native byte order, outermost dimension first.
    Buffers are frozen; plugins read them and build new ones.
    """
    model_config = ConfigDict(frozen=True)

    dtype: DType
    dimensions: Tuple[int, ...] = Field(default_factory=tuple)
    data: bytes = b""

    @field_validator("dimensions")
    @classmethod
    def _positive_dims(cls, dims: Tuple[int, ...]) -> Tuple[int, ...]:
        for d in dims:
            if d <= 0:
                raise ValueError(f"dimensions must be positive, got {list(dims)}")
        return dims

    @model_validator(mode="after")
    def _size_matches(self):
        if len(self.data) != self.nbytes:
            raise ValueError(
                f"data holds {len(self.data)} bytes, expected {self.nbytes} "
                f"for {self.dtype.value}{list(self.dimensions)}"
            )
        return self

    @property
    def num_elements(self) -> int:
        if not self.dimensions:
            return 0
        return prod(self.dimensions)

    @property
    def nbytes(self) -> int:
        return self.num_elements * self.dtype.itemsize

    @classmethod
    def empty(cls, dtype: DType = DType.BYTE, dimensions: Sequence[int] = ()) -> "DataBuffer":
        dims = tuple(dimensions)
        n = prod(dims) if dims else 0
        return cls(dtype=dtype, dimensions=dims, data=bytes(n * dtype.itemsize))

    @classmethod
    def from_values(cls, dtype: DType, dimensions: Sequence[int], values: Iterable) -> "DataBuffer":
        vals = list(values)
        fmt = f"={len(vals)}{dtype.struct_code}"
        return cls(dtype=dtype, dimensions=tuple(dimensions), data=struct.pack(fmt, *vals))

    def to_values(self) -> List:
        fmt = f"={self.num_elements}{self.dtype.struct_code}"
        return list(struct.unpack(fmt, self.data))


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip() == "1"


class ExternalMetricsConfig(BaseModel):
    """Validated settings of the external metric plugin."""
    model_config = ConfigDict(validate_assignment=True)

    command: str = ""
    io_format: str = "posix"
    strict: bool = Field(default_factory=lambda: _env_flag("PRESSIO_EXTERNAL_STRICT"))

    @field_validator("io_format")
    @classmethod
    def _format_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("io_format must name an io plugin")
        return value
