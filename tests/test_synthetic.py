"""Tests for the synthetic class generators."""

import numpy as np

from satpr.synthetic import make_class, make_dataset


class TestMakeClass:

    def test_shape(self):
        m = make_class([1, 2, 3, 4], n_realizations=8)
        assert m.shape == (4, 8)

    def test_zero_spread_repeats_means(self):
        m = make_class([10, 20], n_realizations=3)
        assert m.data.tolist() == [[10, 20]] * 3

    def test_seeded(self):
        a = make_class([100] * 5, 6, spread=40, seed=9)
        b = make_class([100] * 5, 6, spread=40, seed=9)
        assert a.same_data(b)

    def test_clipped_to_bytes(self):
        m = make_class([0, 255], 50, spread=30, seed=1)
        assert m.data.min() >= 0
        assert m.data.max() <= 255
        assert m.data.dtype == np.uint8

    def test_spread_bounds(self):
        m = make_class([100], 200, spread=5, seed=2)
        assert 95 <= m.data.min() and m.data.max() <= 105


class TestMakeDataset:

    def test_distinct_seeds(self):
        classes = make_dataset([[100] * 4, [100] * 4], 8, spread=20)
        assert not classes[0].same_data(classes[1])
        assert [c.name for c in classes] == ["class-0", "class-1"]
