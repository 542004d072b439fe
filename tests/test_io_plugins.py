"""tests/test_io_plugins.py — posix and zstd exchange formats."""
import pytest
from pressio_ext.contracts import DataBuffer, DType
from pressio_ext.io_plugins.base import IOPluginError
from pressio_ext.io_plugins.posix_io import PosixIO
from pressio_ext.io_plugins.zstd_io import ZstdIO
from pressio_ext.options import Options


@pytest.fixture
def doubles():
    return DataBuffer.from_values(DType.DOUBLE, [2, 2], [0.5, 1.5, -2.0, 1e300])


class TestPosix:
    def test_raw_bytes_on_disk(self, tmp_path, doubles):
        path = tmp_path / "a.bin"
        assert PosixIO().write(doubles, path)
        assert path.read_bytes() == doubles.data

    def test_read_with_template(self, tmp_path, doubles):
        path = tmp_path / "a.bin"
        io = PosixIO()
        io.write(doubles, path)
        back = io.read(path, DataBuffer.empty(DType.DOUBLE, [2, 2]))
        assert back == doubles

    def test_read_without_template_is_bytes(self, tmp_path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"\x01\x02\x03")
        back = PosixIO().read(path)
        assert back.dtype is DType.BYTE
        assert back.dimensions == (3,)

    def test_template_size_mismatch(self, tmp_path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"\x00" * 5)
        io = PosixIO()
        with pytest.raises(IOPluginError):
            io.read(path, DataBuffer.empty(DType.INT32, [2]))
        assert io.error_code != 0

    def test_write_failure_sets_error(self, tmp_path, doubles):
        io = PosixIO()
        assert io.write(doubles, tmp_path / "missing" / "a.bin") is False
        assert io.error_code != 0
        assert "cannot write" in io.error_msg


class TestZstd:
    def test_roundtrip_and_compression(self, tmp_path):
        buf = DataBuffer.from_values(DType.INT32, [1000], [7] * 1000)
        path = tmp_path / "a.zst"
        io = ZstdIO()
        assert io.write(buf, path)
        assert path.read_bytes()[:4] == b"\x28\xb5\x2f\xfd"
        assert path.stat().st_size < buf.nbytes
        assert io.read(path, DataBuffer.empty(DType.INT32, [1000])) == buf

    def test_level_option(self):
        io = ZstdIO()
        opts = Options()
        opts.set("zstd:level", 9)
        io.configure(opts)
        assert io.level == 9
        assert io.get_options().get("zstd:level") == 9
        assert io.clone().level == 9

    def test_not_a_frame(self, tmp_path):
        path = tmp_path / "a.zst"
        path.write_bytes(b"plain bytes")
        with pytest.raises(IOPluginError):
            ZstdIO().read(path)
