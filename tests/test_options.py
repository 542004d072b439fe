"""tests/test_options.py — Typed option container semantics."""
import pytest
from pressio_ext.options import Options, OptionStatus, OptionType


class TestKeyStatus:
    def test_absent_key(self):
        opts = Options()
        assert opts.key_status("a:b") == OptionStatus.KEY_DOES_NOT_EXIST
        assert opts.get("a:b") is None

    def test_declared_but_unset(self):
        opts = Options()
        opts.set_type("a:b", OptionType.INT32)
        assert opts.key_status("a:b") == OptionStatus.KEY_EXISTS
        assert opts.get("a:b", "dflt") == "dflt"
        assert opts.get_type("a:b") == OptionType.INT32
        assert "a:b" in opts

    def test_set_value(self):
        opts = Options()
        opts.set("a:b", 3)
        assert opts.key_status("a:b") == OptionStatus.KEY_SET
        assert opts.get("a:b") == 3


class TestTyping:
    def test_inferred_types(self):
        opts = Options({"i": 1, "d": 1.5, "s": "x", "b": True})
        assert opts.get_type("i") == OptionType.INT32
        assert opts.get_type("d") == OptionType.DOUBLE
        assert opts.get_type("s") == OptionType.CHARPTR
        assert opts.get_type("b") == OptionType.BOOL

    def test_declared_type_is_kept(self):
        opts = Options()
        opts.set_type("x", OptionType.DOUBLE)
        opts.set("x", 2)
        assert opts.get("x") == 2.0
        assert isinstance(opts.get("x"), float)

    def test_mismatched_type_rejected(self):
        opts = Options()
        with pytest.raises(TypeError):
            opts.set("x", "text", OptionType.INT32)

    def test_int32_range(self):
        opts = Options()
        with pytest.raises(ValueError):
            opts.set("x", 2**31, OptionType.INT32)
        opts.set("y", 2**31, OptionType.UINT32)
        assert opts.get("y") == 2**31

    def test_unsupported_value(self):
        with pytest.raises(TypeError):
            Options({"x": [1, 2]})


class TestContainer:
    def test_as_dict_skips_unset(self):
        opts = Options()
        opts.set_type("unset", OptionType.CHARPTR)
        opts.set("set", "v")
        assert opts.as_dict() == {"set": "v"}

    def test_copy_is_independent(self):
        opts = Options({"a": 1})
        clone = opts.copy()
        clone.set("a", 2)
        assert opts.get("a") == 1
        assert clone != opts

    def test_update_and_clear(self):
        a = Options({"x": 1})
        a.update(Options({"y": 2.0}))
        assert sorted(a) == ["x", "y"]
        a.clear()
        assert len(a) == 0
