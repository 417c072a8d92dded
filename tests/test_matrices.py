"""Tests for the loading boundary (satpr.matrices)."""

import numpy as np
import pytest

from satpr.matrices import (
    AttributeMatrix,
    ClassSet,
    LoadError,
    LoadErrorKind,
    load_class,
)


# ── Fixtures ────────────────────────────────────────────────────

def _buffer(width, height, fill=0):
    return bytes([fill]) * (width * height)


@pytest.fixture
def two_classes():
    a = load_class(_buffer(4, 3, 10), width=4, height=3, name="a")
    b = load_class(_buffer(4, 3, 200), width=4, height=3, name="b")
    return a, b


# ═══════════════════════════════════════════════════════════════════
# load_class / AttributeMatrix
# ═══════════════════════════════════════════════════════════════════

class TestLoadClass:

    def test_shape_is_width_by_height(self):
        m = load_class(bytes(range(12)), width=4, height=3)
        assert m.n_attributes == 4
        assert m.n_realizations == 3
        assert m.shape == (4, 3)

    def test_row_major_by_realization(self):
        m = load_class(bytes(range(12)), width=4, height=3)
        assert m.data[1].tolist() == [4, 5, 6, 7]
        assert m.data[:, 0].tolist() == [0, 4, 8]

    def test_accepts_int_sequences(self):
        m = load_class([1, 2, 3, 4], width=2, height=2)
        assert m.data.dtype == np.uint8
        assert m.to_bytes() == bytes([1, 2, 3, 4])

    def test_rejects_out_of_range_values(self):
        with pytest.raises(ValueError, match="0..255"):
            load_class([1, 2, 3, 300], width=2, height=2)

    def test_bad_buffer_length(self):
        with pytest.raises(LoadError) as info:
            load_class(bytes(5), width=2, height=2)
        assert info.value.kind is LoadErrorKind.BAD_BUFFER
        assert info.value.expected == 4
        assert info.value.actual == 5

    def test_rejects_float_values(self):
        with pytest.raises(LoadError) as info:
            load_class(np.array([1.0, 2.0, 3.7, 4.0]), width=2, height=2)
        assert info.value.kind is LoadErrorKind.BAD_BUFFER
        assert info.value.actual == "float64"
        assert "dtype float64" in str(info.value)

    def test_data_is_read_only(self):
        m = load_class(bytes(4), width=2, height=2)
        with pytest.raises(ValueError):
            m.data[0, 0] = 1

    def test_rejects_non_2d(self):
        with pytest.raises(ValueError, match="2-D"):
            AttributeMatrix(np.zeros(4))


# ═══════════════════════════════════════════════════════════════════
# ClassSet
# ═══════════════════════════════════════════════════════════════════

class TestClassSet:

    def test_add_returns_new_set(self, two_classes):
        a, b = two_classes
        empty = ClassSet()
        one = empty.add(a)
        two = one.add(b)
        assert len(empty) == 0
        assert len(one) == 1
        assert len(two) == 2
        assert two[1] is b
        assert two.shape == (4, 3)

    def test_empty_shape_is_none(self):
        assert ClassSet().shape is None

    def test_duplicate_rejected(self, two_classes):
        a, b = two_classes
        same_as_b = load_class(_buffer(4, 3, 200), width=4, height=3)
        with pytest.raises(LoadError) as info:
            ClassSet([a, b]).add(same_as_b)
        assert info.value.kind is LoadErrorKind.DUPLICATE
        assert info.value.duplicate_of == 1
        assert "already been loaded" in str(info.value)

    def test_size_mismatch_rejected(self, two_classes):
        a, _ = two_classes
        wider = load_class(_buffer(5, 3, 10), width=5, height=3)
        with pytest.raises(LoadError) as info:
            ClassSet([a]).add(wider)
        err = info.value
        assert err.kind is LoadErrorKind.SIZE_MISMATCH
        assert err.expected == (4, 3)
        assert err.actual == (5, 3)

    def test_load_error_is_value_error(self, two_classes):
        a, _ = two_classes
        with pytest.raises(ValueError):
            ClassSet([a, a])

    def test_remove(self, two_classes):
        a, b = two_classes
        s = ClassSet([a, b]).remove(0)
        assert len(s) == 1
        assert s[0] is b

    def test_remove_out_of_range(self, two_classes):
        with pytest.raises(IndexError):
            ClassSet(list(two_classes)).remove(5)

    def test_iteration_order(self, two_classes):
        a, b = two_classes
        assert [c.name for c in ClassSet([a, b])] == ["a", "b"]
