"""
External metric report protocol
===============================
The external program prints a versioned key/value report on stdout:

    external:api=1
    psnr=45.2
    mse=0.001

The first line selects the body format. Only version 1 is known; any other
version is rejected rather than parsed on a best-effort basis.

Parsing returns an explicit success/failure value and never raises.
`build_results` turns that value into the published results `Options`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Union

from pressio_ext.drivers.process_driver import InvocationError, InvocationOutcome
from pressio_ext.options import Options, OptionType

VERSION_PREFIX = "external:api="
RESULTS_PREFIX = "external:results:"

# decimal or exponent notation, optional sign, or inf/infinity/nan
_NUMBER = re.compile(r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)", re.IGNORECASE)

ERROR_CODE_KEY = "external:error_code"
RETURN_CODE_KEY = "external:return_code"
STDERR_KEY = "external:stderr"


class ExternalErrorCode(IntEnum):
    SUCCESS = 0
    PIPE_ERROR = 1
    FORK_ERROR = 2
    EXEC_ERROR = 3
    FORMAT_ERROR = 4
    IO_ERROR = 5


@dataclass(frozen=True)
class ParseSuccess:
    version: int
    metrics: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[ParseSuccess, ParseFailure]


def _parse_version(line: str) -> int:
    if not line.startswith(VERSION_PREFIX):
        raise ValueError(f"first line is not a version line: {line[:80]!r}")
    raw = line[len(VERSION_PREFIX):]
    if not re.fullmatch(r"[0-9]+", raw):
        raise ValueError(f"version is not a positive integer: {raw[:20]!r}")
    version = int(raw)
    if version <= 0:
        raise ValueError("version must be positive")
    return version


def _parse_v1(lines: List[str]) -> Dict[str, float]:
    metrics: Dict[str, float] = {}
    for lineno, line in enumerate(lines, start=2):
        name, sep, value = line.partition("=")
        if not sep:
            raise ValueError(f"line {lineno}: missing '='")
        if not name:
            raise ValueError(f"line {lineno}: empty metric name")
        if not _NUMBER.fullmatch(value):
            raise ValueError(f"line {lineno}: {value[:40]!r} is not a number")
        metrics[name] = float(value)
    return metrics


_BODY_PARSERS = {
    1: _parse_v1,
}


def _split_lines(text: str) -> List[str]:
    """Split on LF only, dropping one trailing CR per line and the final empty line."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_report(stdout: bytes) -> ParseResult:
    try:
        text = stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        return ParseFailure(f"stdout is not utf-8: {exc}")

    lines = _split_lines(text)
    if not lines:
        return ParseFailure("stdout is empty")

    try:
        version = _parse_version(lines[0])
        body_parser = _BODY_PARSERS.get(version)
        if body_parser is None:
            return ParseFailure(f"unsupported protocol version {version}")
        return ParseSuccess(version=version, metrics=body_parser(lines[1:]))
    except ValueError as exc:
        return ParseFailure(str(exc))


def declare_result_types(results: Options) -> Options:
    results.set_type(ERROR_CODE_KEY, OptionType.INT32)
    results.set_type(RETURN_CODE_KEY, OptionType.INT32)
    results.set_type(STDERR_KEY, OptionType.CHARPTR)
    return results


def _error_results(code: ExternalErrorCode, return_code: int, stderr: str) -> Options:
    results = declare_result_types(Options())
    results.set(ERROR_CODE_KEY, int(code))
    results.set(RETURN_CODE_KEY, return_code)
    results.set(STDERR_KEY, stderr)
    return results


def sentinel_results() -> Options:
    """Fixed results published when the report cannot be parsed."""
    return _error_results(ExternalErrorCode.FORMAT_ERROR, 0, "")


def invocation_failure_results(outcome: InvocationOutcome) -> Options:
    if outcome.invocation_error is InvocationError.PIPE_CREATION_FAILED:
        code = ExternalErrorCode.PIPE_ERROR
    else:
        code = ExternalErrorCode.FORK_ERROR
    return _error_results(code, -1, outcome.detail)


def preparation_failure_results(message: str) -> Options:
    return _error_results(ExternalErrorCode.IO_ERROR, -1, message)


def decode_stderr(outcome: InvocationOutcome) -> str:
    return outcome.stderr.decode("utf-8", "replace")


def build_results(result: ParseResult, outcome: InvocationOutcome, strict: bool = False) -> Options:
    """
    Map a parse result to published results.

    A failure yields the fixed sentinel (return code 0, empty stderr). In
    strict mode the real return code and stderr are kept instead.
    """
    if isinstance(result, ParseFailure):
        if strict:
            return _error_results(ExternalErrorCode.FORMAT_ERROR, outcome.return_code, decode_stderr(outcome))
        return sentinel_results()

    results = declare_result_types(Options())
    for name, value in result.metrics.items():
        results.set(RESULTS_PREFIX + name, value, OptionType.DOUBLE)
    results.set(STDERR_KEY, decode_stderr(outcome))
    results.set(RETURN_CODE_KEY, outcome.return_code)
    results.set(ERROR_CODE_KEY, int(ExternalErrorCode.SUCCESS))
    return results


def metric_values(results: Options) -> Dict[str, float]:
    """The reported metrics of a results mapping, without the key prefix."""
    out: Dict[str, float] = {}
    for key, value in results.as_dict().items():
        if key.startswith(RESULTS_PREFIX):
            out[key[len(RESULTS_PREFIX):]] = value
    return out


def command_failure_results(message: str) -> Options:
    return _error_results(ExternalErrorCode.EXEC_ERROR, -1, message)
