"""Tests for binarisation and reference vectors (satpr.binary)."""

import numpy as np
import pytest

from satpr.binary import (
    OFF,
    ON,
    BinaryMatrix,
    ReferenceVector,
    binarize,
    binarize_all,
    build_reference_vector,
)
from satpr.corridor import Corridor, build_corridor
from satpr.matrices import AttributeMatrix
from satpr.synthetic import make_class


def _matrix(rows):
    return AttributeMatrix(np.array(rows, dtype=np.uint8))


def _binary(bits):
    return BinaryMatrix(np.where(np.array(bits, dtype=bool), ON, OFF))


# ═══════════════════════════════════════════════════════════════════
# binarize
# ═══════════════════════════════════════════════════════════════════

class TestBinarize:

    def test_inclusive_band(self):
        corridor = Corridor.from_expectation([100.0, 100.0, 100.0], 5)
        raw = _matrix([[95, 105, 106], [94, 100, 110]])
        b = binarize(raw, corridor)
        assert b.data.tolist() == [[255, 255, 0], [0, 255, 0]]

    def test_values_only_on_or_off(self):
        raw = make_class([30, 90, 150, 210], 16, spread=40, seed=3)
        b = binarize(raw, build_corridor(raw, 20))
        assert set(np.unique(b.data).tolist()) <= {0, 255}

    def test_bits_view(self):
        b = _binary([[True, False]])
        assert b.bits.tolist() == [[True, False]]

    def test_deterministic(self):
        raw = make_class([50] * 6, 10, spread=30, seed=1)
        corridor = build_corridor(raw, 12)
        assert binarize(raw, corridor) == binarize(raw, corridor)

    def test_idempotent_on_binary_input(self):
        # A corridor covering both 0 and 255 maps every binary value to on;
        # one centred on 255 with delta 0 reproduces the matrix exactly.
        b = _binary([[True, False, True], [False, False, True]])
        keep_on = Corridor.from_expectation([255.0] * 3, 0)
        again = binarize(b.as_attribute_matrix(), keep_on)
        assert again == b
        covering = Corridor.from_expectation([128.0] * 3, 255)
        assert binarize(b.as_attribute_matrix(), covering).bits.all()

    def test_keeps_name(self):
        raw = AttributeMatrix(np.zeros((2, 2), dtype=np.uint8), name="x")
        assert binarize(raw, build_corridor(raw, 0)).name == "x"

    def test_attribute_count_mismatch(self):
        with pytest.raises(ValueError, match="attributes"):
            binarize(_matrix([[1, 2, 3]]),
                     Corridor.from_expectation([1.0, 2.0], 0))

    def test_binarize_all_uses_one_corridor(self):
        a = _matrix([[10, 10], [10, 10]])
        b = _matrix([[200, 200], [200, 200]])
        out = binarize_all([a, b], build_corridor(a, 5))
        assert out[0].bits.all()
        assert not out[1].bits.any()


# ═══════════════════════════════════════════════════════════════════
# build_reference_vector
# ═══════════════════════════════════════════════════════════════════

class TestReferenceVector:

    def test_strict_majority(self):
        b = _binary([
            [1, 1, 0, 0],
            [1, 1, 0, 1],
            [1, 0, 0, 0],
        ])
        rv = build_reference_vector(b)
        assert rv.bits.tolist() == [True, True, False, False]

    def test_exact_half_is_off(self):
        b = _binary([[1, 0], [0, 1], [1, 0], [0, 1]])
        assert not build_reference_vector(b).bits.any()

    def test_zero_realizations_all_off(self):
        b = BinaryMatrix(np.zeros((0, 5), dtype=np.uint8))
        rv = build_reference_vector(b)
        assert len(rv) == 5
        assert not rv.bits.any()

    def test_minority_flip_is_stable(self):
        bits = np.ones((7, 3), dtype=bool)
        base = build_reference_vector(_binary(bits))
        bits[:3, 1] = False  # 3 of 7 flipped
        assert build_reference_vector(_binary(bits)) == base

    def test_equals_realization_for_uniform_class(self):
        row = [True, False, True, True]
        b = _binary([row] * 5)
        assert build_reference_vector(b).bits.tolist() == row

    def test_values_are_0_or_255(self):
        rv = build_reference_vector(_binary([[1, 0]]))
        assert rv.data.tolist() == [255, 0]

    def test_rejects_2d(self):
        with pytest.raises(ValueError, match="1-D"):
            ReferenceVector(np.zeros((2, 2)))
