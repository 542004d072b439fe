"""tests/test_contracts.py — DataBuffer and config schema validation."""
import pytest
from pressio_ext.contracts import DataBuffer, DType, ExternalMetricsConfig


class TestDataBuffer:
    def test_from_values_roundtrip(self):
        buf = DataBuffer.from_values(DType.INT16, [2, 2], [1, -2, 3, -4])
        assert buf.num_elements == 4
        assert buf.nbytes == 8
        assert buf.to_values() == [1, -2, 3, -4]

    def test_dimension_order_preserved(self):
        buf = DataBuffer.empty(DType.DOUBLE, [5, 1, 3])
        assert buf.dimensions == (5, 1, 3)
        assert buf.nbytes == 5 * 3 * 8

    def test_no_dimensions_means_no_elements(self):
        buf = DataBuffer.empty()
        assert buf.num_elements == 0
        assert buf.data == b""

    def test_size_mismatch_rejected(self):
        with pytest.raises(Exception):
            DataBuffer(dtype=DType.INT32, dimensions=(4,), data=b"\x00" * 3)

    def test_non_positive_dimension_rejected(self):
        with pytest.raises(Exception):
            DataBuffer(dtype=DType.BYTE, dimensions=(0,), data=b"")

    def test_frozen(self):
        buf = DataBuffer.empty(DType.BYTE, [4])
        with pytest.raises(Exception):
            buf.dtype = DType.INT8

    @pytest.mark.parametrize("dtype,size", [
        (DType.INT8, 1), (DType.UINT16, 2), (DType.FLOAT, 4),
        (DType.INT64, 8), (DType.DOUBLE, 8), (DType.BYTE, 1),
    ])
    def test_itemsize(self, dtype, size):
        assert dtype.itemsize == size


class TestExternalMetricsConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PRESSIO_EXTERNAL_STRICT", raising=False)
        cfg = ExternalMetricsConfig()
        assert cfg.command == ""
        assert cfg.io_format == "posix"
        assert cfg.strict is False

    def test_strict_from_env(self, monkeypatch):
        monkeypatch.setenv("PRESSIO_EXTERNAL_STRICT", "1")
        assert ExternalMetricsConfig().strict is True

    def test_blank_io_format_rejected(self):
        with pytest.raises(Exception):
            ExternalMetricsConfig(io_format="  ")

    def test_assignment_validated(self):
        cfg = ExternalMetricsConfig()
        with pytest.raises(Exception):
            cfg.io_format = ""
