"""Metrics plugin contract: observe a compress/decompress cycle, publish results."""
from __future__ import annotations

from typing import Optional

from pressio_ext.contracts import DataBuffer
from pressio_ext.options import Options


class MetricsPlugin:
    prefix = "metrics"

    def begin_compress(self, input: DataBuffer, output: Optional[DataBuffer]) -> None:
        pass

    def end_compress(self, input: DataBuffer, output: DataBuffer, rc: int) -> None:
        pass

    def begin_decompress(self, input: DataBuffer, output: Optional[DataBuffer]) -> None:
        pass

    def end_decompress(self, input: DataBuffer, output: DataBuffer, rc: int) -> None:
        pass

    def get_metrics_options(self) -> Options:
        return Options()

    def set_metrics_options(self, options: Options) -> None:
        pass

    def get_metrics_results(self) -> Options:
        return Options()

    def clone(self) -> "MetricsPlugin":
        raise NotImplementedError
