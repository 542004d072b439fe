#!/usr/bin/env python3
"""
External Metric Plugin
======================
Delegates metric computation to an external program.

Per compress/decompress cycle:
  1. begin_compress   keep the uncompressed buffer
  2. end_decompress   stage both buffers into exchange files
                      build the protocol command line
                      run the program, capture stdout/stderr
                      parse the report into results
                      release both exchange files

Results always hold external:error_code, external:return_code and
external:stderr; a successful report adds one external:results:<name>
double per metric. A failed cycle never publishes partial metrics.
"""
from __future__ import annotations

import os
import sys
from enum import Enum
from typing import Optional

from pressio_ext.command import PROTOCOL_VERSION, CommandError, build_command, render_command
from pressio_ext.contracts import DataBuffer, ExternalMetricsConfig
from pressio_ext.drivers.process_driver import run_command
from pressio_ext.exchange import ExchangeError, ExchangeStore
from pressio_ext.metrics.base import MetricsPlugin
from pressio_ext.options import Options, OptionStatus, OptionType
from pressio_ext.protocol import (
    ERROR_CODE_KEY,
    ParseFailure,
    build_results,
    command_failure_results,
    declare_result_types,
    invocation_failure_results,
    parse_report,
    preparation_failure_results,
)

COMMAND_KEY = "external:command"
IO_FORMAT_KEY = "external:io_format"
STRICT_KEY = "external:strict"


class CycleState(str, Enum):
    IDLE = "idle"
    STAGED = "staged"
    INVOKED = "invoked"
    PARSED = "parsed"


def _trace_enabled() -> bool:
    return os.getenv("PRESSIO_EXTERNAL_TRACE", "").strip() == "1"


class ExternalMetricsPlugin(MetricsPlugin):
    prefix = "external"

    def __init__(self, library=None, config: Optional[ExternalMetricsConfig] = None):
        if library is None:
            from pressio_ext.registry import default_library
            library = default_library()
        self.library = library
        self.config = config if config is not None else ExternalMetricsConfig()
        self.io_module = library.get_io(self.config.io_format)
        self.input_data: DataBuffer = DataBuffer.empty()
        self.state = CycleState.IDLE
        self.results = declare_result_types(Options())

    # ── metrics hooks ────────────────────────────────────────────────

    def begin_compress(self, input: DataBuffer, output: Optional[DataBuffer]) -> None:
        self.input_data = input

    def end_decompress(self, input: Optional[DataBuffer], output: DataBuffer, rc: int) -> None:
        self.run_external(self.input_data, output)

    # ── configuration ────────────────────────────────────────────────

    def get_metrics_options(self) -> Options:
        opts = Options()
        opts.set(COMMAND_KEY, self.config.command, OptionType.CHARPTR)
        opts.set(IO_FORMAT_KEY, self.config.io_format, OptionType.CHARPTR)
        opts.set(STRICT_KEY, self.config.strict, OptionType.BOOL)
        opts.update(self.io_module.get_options())
        return opts

    def set_metrics_options(self, options: Options) -> None:
        if options.key_status(COMMAND_KEY) == OptionStatus.KEY_SET:
            self.config.command = options.get(COMMAND_KEY)
        if options.key_status(IO_FORMAT_KEY) == OptionStatus.KEY_SET:
            io_format = options.get(IO_FORMAT_KEY)
            self.io_module = self.library.get_io(io_format)
            self.config.io_format = io_format
        if options.key_status(STRICT_KEY) == OptionStatus.KEY_SET:
            self.config.strict = options.get(STRICT_KEY)
        self.io_module.configure(options)

    def get_metrics_results(self) -> Options:
        return self.results.copy()

    def clone(self) -> "ExternalMetricsPlugin":
        cloned = ExternalMetricsPlugin(library=self.library, config=self.config.model_copy())
        cloned.io_module = self.io_module.clone()
        cloned.input_data = self.input_data
        cloned.results = self.results.copy()
        return cloned

    # ── evaluation ───────────────────────────────────────────────────

    def evaluate(self, uncompressed: DataBuffer, decompressed: DataBuffer) -> Options:
        """Run one full cycle outside a compressor and return its results."""
        self.begin_compress(uncompressed, None)
        self.end_decompress(None, decompressed, 0)
        return self.get_metrics_results()

    def run_external(self, input_data: DataBuffer, decompressed: DataBuffer) -> None:
        store = ExchangeStore(self.io_module)
        try:
            with store.session() as stage:
                input_file = stage(input_data, "in")
                output_file = stage(decompressed, "out")
                self.state = CycleState.STAGED

                argv = build_command(
                    self.config.command,
                    PROTOCOL_VERSION,
                    input_file.path,
                    output_file.path,
                    input_data,
                )
                if _trace_enabled():
                    print(f"[EXTERNAL] exec {render_command(argv)}", file=sys.stderr)

                outcome = run_command(argv)
                self.state = CycleState.INVOKED

                if not outcome.started:
                    print(f"[EXTERNAL] {outcome.invocation_error.value}: {outcome.detail}", file=sys.stderr)
                    self.results = invocation_failure_results(outcome)
                else:
                    parsed = parse_report(outcome.stdout)
                    if isinstance(parsed, ParseFailure):
                        print(
                            f"[EXTERNAL] Unusable report from '{argv[0]}' "
                            f"(exit {outcome.return_code}): {parsed.reason}",
                            file=sys.stderr,
                        )
                    self.results = build_results(parsed, outcome, strict=self.config.strict)
                self.state = CycleState.PARSED
        except CommandError as exc:
            print(f"[EXTERNAL] Cannot build command: {exc}", file=sys.stderr)
            self.results = command_failure_results(str(exc))
        except ExchangeError as exc:
            self.results = preparation_failure_results(str(exc))
        finally:
            self.state = CycleState.IDLE

        if _trace_enabled():
            print(f"[EXTERNAL] error_code={self.results.get(ERROR_CODE_KEY)}", file=sys.stderr)
