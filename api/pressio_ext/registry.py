"""
Plugin factory maps.

The maps are plain module constants built once at import time; nothing
registers itself as a side effect. Code that needs to look plugins up
receives a `Library`, which can be built with extra or overriding factories
for tests and embedding applications.
"""
from __future__ import annotations

import sys
from typing import Callable, Dict, List, Mapping, Optional

from pressio_ext.io_plugins.base import IOPlugin
from pressio_ext.io_plugins.posix_io import PosixIO
from pressio_ext.io_plugins.zstd_io import ZstdIO
from pressio_ext.metrics.base import MetricsPlugin
from pressio_ext.metrics.external import ExternalMetricsPlugin

IOFactory = Callable[[], IOPlugin]
MetricsFactory = Callable[["Library"], MetricsPlugin]

IO_PLUGINS: Mapping[str, IOFactory] = {
    "posix": PosixIO,
    "zstd": ZstdIO,
}

METRICS_PLUGINS: Mapping[str, MetricsFactory] = {
    "external": lambda library: ExternalMetricsPlugin(library=library),
}


class UnknownPluginError(KeyError):
    ...


class Library:
    def __init__(
        self,
        io_plugins: Optional[Mapping[str, IOFactory]] = None,
        metrics_plugins: Optional[Mapping[str, MetricsFactory]] = None,
    ):
        self._io: Dict[str, IOFactory] = dict(IO_PLUGINS)
        self._metrics: Dict[str, MetricsFactory] = dict(METRICS_PLUGINS)
        if io_plugins:
            self._io.update(io_plugins)
        if metrics_plugins:
            self._metrics.update(metrics_plugins)

    def get_io(self, name: str) -> IOPlugin:
        factory = self._io.get(name)
        if factory is None:
            print(f"[REGISTRY] Unknown io plugin '{name}' (have: {', '.join(self.io_names())})", file=sys.stderr)
            raise UnknownPluginError(f"unknown io plugin '{name}'")
        return factory()

    def get_metric(self, name: str) -> MetricsPlugin:
        factory = self._metrics.get(name)
        if factory is None:
            print(f"[REGISTRY] Unknown metrics plugin '{name}' (have: {', '.join(self.metric_names())})", file=sys.stderr)
            raise UnknownPluginError(f"unknown metrics plugin '{name}'")
        return factory(self)

    def io_names(self) -> List[str]:
        return sorted(self._io)

    def metric_names(self) -> List[str]:
        return sorted(self._metrics)


def default_library() -> Library:
    return Library()
