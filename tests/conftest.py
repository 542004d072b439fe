"""tests/conftest.py — Shared fixtures for the pressio-external test suite."""
import sys
import pytest
from pathlib import Path

# Add api/ to sys.path so pressio_ext imports without installation
API_DIR = str(Path(__file__).resolve().parent.parent / "api")
if API_DIR not in sys.path:
    sys.path.insert(0, API_DIR)

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"
FAKE_METRIC = FIXTURES_DIR / "fake_metric.py"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def fake_command():
    """Build an external:command template running the fake metric in `mode`."""
    def _make(mode):
        return f"{sys.executable} {FAKE_METRIC} {mode}"
    return _make


@pytest.fixture
def float_pair():
    from pressio_ext.contracts import DataBuffer, DType
    original = DataBuffer.from_values(DType.FLOAT, [2, 3], [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    decompressed = DataBuffer.from_values(DType.FLOAT, [2, 3], [1.0, 2.0, 3.0, 4.0, 5.0, 8.0])
    return original, decompressed


@pytest.fixture
def library():
    from pressio_ext.registry import Library
    return Library()


@pytest.fixture
def external_metric(library, fake_command):
    """External metric plugin wired to the fake program in `mode`."""
    from pressio_ext.options import Options

    def _make(mode, **extra):
        metric = library.get_metric("external")
        opts = Options()
        opts.set("external:command", fake_command(mode))
        for key, value in extra.items():
            opts.set(key, value)
        metric.set_metrics_options(opts)
        return metric
    return _make
