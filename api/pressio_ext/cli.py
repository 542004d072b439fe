#!/usr/bin/env python3
"""
pressio-external CLI
====================
  run        evaluate an external metric on two raw files
  roundtrip  zstd-compress a raw file, decompress it, evaluate the pair
  plugins    list the available io and metrics plugins
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

API_DIR = Path(__file__).resolve().parent.parent
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

from pressio_ext.command import DTYPE_TOKENS, dtype_from_token
from pressio_ext.compressor import ZstdCompressor
from pressio_ext.contracts import DataBuffer
from pressio_ext.io_plugins.base import IOPluginError
from pressio_ext.options import Options
from pressio_ext.protocol import ERROR_CODE_KEY, ExternalErrorCode, RESULTS_PREFIX
from pressio_ext.registry import Library, UnknownPluginError

CLI_SCHEMA_VERSION = "pressio.external.cli.v1"


def _emit(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2))
        return
    result = payload.get("result", {})
    if payload["command"] == "plugins":
        print(f"io:      {', '.join(result.get('io', []))}")
        print(f"metrics: {', '.join(result.get('metrics', []))}")
        return
    if "error" in payload:
        print(f"[pressio-external] {payload['error']}", file=sys.stderr)
        return
    for key, value in sorted(result.get("results", {}).items()):
        print(f"{key}={value}")


def _template(dtype_token: str, dims: List[int]) -> DataBuffer:
    return DataBuffer.empty(dtype_from_token(dtype_token), dims)


def _metric_options(args: argparse.Namespace) -> Options:
    opts = Options()
    opts.set("external:command", args.command)
    opts.set("external:io_format", args.io_format)
    if args.strict:
        opts.set("external:strict", True)
    return opts


def _results_payload(results: Options) -> Dict[str, Any]:
    values = results.as_dict()
    return {
        "error_code": values.get(ERROR_CODE_KEY),
        "metrics": {k[len(RESULTS_PREFIX):]: v for k, v in values.items() if k.startswith(RESULTS_PREFIX)},
        "results": values,
    }


def cmd_run(args: argparse.Namespace, library: Library) -> Dict[str, Any]:
    reader = library.get_io("posix")
    template = _template(args.type, args.dim)
    uncompressed = reader.read(args.input, template)
    decompressed = reader.read(args.decompressed, template)

    metric = library.get_metric("external")
    metric.set_metrics_options(_metric_options(args))
    results = metric.evaluate(uncompressed, decompressed)
    return _results_payload(results)


def cmd_roundtrip(args: argparse.Namespace, library: Library) -> Dict[str, Any]:
    reader = library.get_io("posix")
    original = reader.read(args.input, _template(args.type, args.dim))

    metric = library.get_metric("external")
    metric.set_metrics_options(_metric_options(args))
    compressor = ZstdCompressor(level=args.level, metrics=metric)
    compressed = compressor.compress(original)
    compressor.decompress(compressed, original)

    payload = _results_payload(metric.get_metrics_results())
    payload["compression"] = {
        "original_bytes": original.nbytes,
        "compressed_bytes": compressed.nbytes,
        "ratio": ZstdCompressor.ratio(original, compressed),
        "compress_ms": round(compressor.last_compress_ms, 2),
        "decompress_ms": round(compressor.last_decompress_ms, 2),
    }
    return payload


def _add_metric_args(p: argparse.ArgumentParser, *, decompressed: bool) -> None:
    p.add_argument("--command", required=True, help="external program and its leading arguments")
    p.add_argument("--input", required=True, help="raw uncompressed data file")
    if decompressed:
        p.add_argument("--decompressed", required=True, help="raw decompressed data file")
    p.add_argument("--type", required=True, choices=sorted(DTYPE_TOKENS.values()))
    p.add_argument("--dim", type=int, action="append", required=True, help="dimension, outermost first")
    p.add_argument("--io-format", default="posix", help="exchange file format")
    p.add_argument("--strict", action="store_true", help="keep exit code and stderr on format errors")
    p.add_argument("--json", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="pressio-external", description="External metric evaluation")
    sub = ap.add_subparsers(dest="subcommand", required=True)

    _add_metric_args(sub.add_parser("run"), decompressed=True)

    rt = sub.add_parser("roundtrip")
    _add_metric_args(rt, decompressed=False)
    rt.add_argument("--level", type=int, default=None, help="zstd level")

    pl = sub.add_parser("plugins")
    pl.add_argument("--json", action="store_true")
    return ap


def run_cli(argv: Optional[List[str]] = None, library: Optional[Library] = None) -> int:
    args = build_parser().parse_args(argv)
    library = library if library is not None else Library()
    payload: Dict[str, Any] = {
        "schema_version": CLI_SCHEMA_VERSION,
        "tool": "pressio-external",
        "command": args.subcommand,
    }

    if args.subcommand == "plugins":
        payload.update(ok=True, result={"io": library.io_names(), "metrics": library.metric_names()})
        _emit(payload, args.json)
        return 0

    handlers = {"run": cmd_run, "roundtrip": cmd_roundtrip}
    try:
        result = handlers[args.subcommand](args, library)
    except (IOPluginError, UnknownPluginError, ValueError) as exc:
        payload.update(ok=False, error=str(exc))
        _emit(payload, args.json)
        return 2

    ok = result.get("error_code") == int(ExternalErrorCode.SUCCESS)
    payload.update(ok=ok, result=result)
    _emit(payload, args.json)
    return 0 if ok else 1


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
