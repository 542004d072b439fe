"""
Options container
=================
String-keyed, typed mapping used to configure plugins and to publish their
results. A key can be absent, present but unset (its type is known), or set.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple


class OptionType(str, Enum):
    INT32 = "int32"
    UINT32 = "uint32"
    DOUBLE = "double"
    BOOL = "bool"
    CHARPTR = "charptr"


class OptionStatus(str, Enum):
    KEY_SET = "set"
    KEY_EXISTS = "exists"
    KEY_DOES_NOT_EXIST = "does_not_exist"


_INT32_RANGE = (-(2**31), 2**31 - 1)
_UINT32_RANGE = (0, 2**32 - 1)


def _infer_type(value: Any) -> OptionType:
    if isinstance(value, bool):
        return OptionType.BOOL
    if isinstance(value, int):
        return OptionType.INT32
    if isinstance(value, float):
        return OptionType.DOUBLE
    if isinstance(value, str):
        return OptionType.CHARPTR
    raise TypeError(f"no option type for value of type {type(value).__name__}")


def _coerce(name: str, value: Any, otype: OptionType) -> Any:
    if otype is OptionType.BOOL:
        if not isinstance(value, bool):
            raise TypeError(f"option '{name}' expects bool, got {type(value).__name__}")
        return value
    if otype in (OptionType.INT32, OptionType.UINT32):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"option '{name}' expects {otype.value}, got {type(value).__name__}")
        lo, hi = _INT32_RANGE if otype is OptionType.INT32 else _UINT32_RANGE
        if not lo <= value <= hi:
            raise ValueError(f"option '{name}' value {value} out of range for {otype.value}")
        return value
    if otype is OptionType.DOUBLE:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"option '{name}' expects double, got {type(value).__name__}")
        return float(value)
    if not isinstance(value, str):
        raise TypeError(f"option '{name}' expects charptr, got {type(value).__name__}")
    return value


class Options:
    _UNSET = object()

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._entries: Dict[str, Tuple[OptionType, Any]] = {}
        for name, value in (values or {}).items():
            self.set(name, value)

    def set(self, name: str, value: Any, otype: Optional[OptionType] = None) -> None:
        if otype is None:
            current = self._entries.get(name)
            otype = current[0] if current is not None else _infer_type(value)
        self._entries[name] = (otype, _coerce(name, value, otype))

    def set_type(self, name: str, otype: OptionType) -> None:
        """Declare `name` with a type but no value."""
        self._entries[name] = (otype, self._UNSET)

    def key_status(self, name: str) -> OptionStatus:
        entry = self._entries.get(name)
        if entry is None:
            return OptionStatus.KEY_DOES_NOT_EXIST
        if entry[1] is self._UNSET:
            return OptionStatus.KEY_EXISTS
        return OptionStatus.KEY_SET

    def get(self, name: str, default: Any = None) -> Any:
        entry = self._entries.get(name)
        if entry is None or entry[1] is self._UNSET:
            return default
        return entry[1]

    def get_type(self, name: str) -> Optional[OptionType]:
        entry = self._entries.get(name)
        return entry[0] if entry is not None else None

    def clear(self) -> None:
        self._entries.clear()

    def update(self, other: "Options") -> None:
        self._entries.update(other._entries)

    def copy(self) -> "Options":
        clone = Options()
        clone._entries = dict(self._entries)
        return clone

    def keys(self):
        return self._entries.keys()

    def as_dict(self) -> Dict[str, Any]:
        """Set values only; declared-but-unset keys are left out."""
        return {k: v for k, (_, v) in self._entries.items() if v is not self._UNSET}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Options):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        shown = {
            k: ("<unset>" if v is self._UNSET else v) for k, (_, v) in self._entries.items()
        }
        return f"Options({shown!r})"
