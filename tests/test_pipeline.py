"""End-to-end tests of the recompute chain (satpr.pipeline)."""

import numpy as np
import pytest

from satpr.exam import Found, Unknown, exam
from satpr.hamming import hamming
from satpr.matrices import AttributeMatrix
from satpr.pipeline import ClassificationState, run_pipeline
from satpr.synthetic import make_class, make_dataset


# ── Fixtures ────────────────────────────────────────────────────

@pytest.fixture
def disjoint_pair():
    """Two classes, four attributes, zero intra-class variance."""
    a = make_class([10, 10, 10, 10], n_realizations=8, name="a")
    b = make_class([200, 200, 200, 200], n_realizations=8, name="b")
    return [a, b]


@pytest.fixture
def disjoint_state(disjoint_pair):
    return run_pipeline(disjoint_pair, delta=5)


@pytest.fixture
def noisy_classes():
    return make_dataset(
        [[40, 60, 80, 100, 120, 140],
         [90, 110, 130, 150, 170, 190],
         [200, 180, 160, 140, 120, 100]],
        n_realizations=12, spread=25, seed=3,
    )


# ═══════════════════════════════════════════════════════════════════
# Two disjoint classes
# ═══════════════════════════════════════════════════════════════════

class TestDisjointClasses:

    def test_binary_matrices_disjoint_and_uniform(self, disjoint_state):
        a, b = disjoint_state.binaries
        assert a.bits.all()
        assert not b.bits.any()

    def test_reference_vectors_equal_realizations(self, disjoint_state):
        for binary, rv in zip(disjoint_state.binaries,
                              disjoint_state.reference_vectors):
            for row in binary.data:
                assert hamming(row, rv) == 0

    def test_centre_distance_is_attribute_count(self, disjoint_state):
        assert disjoint_state.distances.centers[0, 1] == 4

    def test_closest_classes(self, disjoint_state):
        assert [c.closest for c in disjoint_state.classes] == [1, 0]

    def test_radii_positive(self, disjoint_state):
        assert disjoint_state.radii == (1, 1)

    def test_exam_reference_vector_found(self, disjoint_state):
        sample = disjoint_state.reference_vectors[0].data
        (res,) = disjoint_state.classify(sample)
        assert isinstance(res, Found)
        assert res.class_index == 0

    def test_exam_boolean_rows_found(self, disjoint_state):
        rows = disjoint_state.binaries[0].bits[:1]
        (res,) = exam(rows, disjoint_state.reference_vectors,
                      disjoint_state.radii)
        assert isinstance(res, Found)
        assert res.class_index == 0
        assert res.evidence.distances == (0, 4)

    def test_exam_halfway_unknown(self, disjoint_state):
        sample = disjoint_state.reference_vectors[0].data.copy()
        sample[:2] = 0
        (res,) = disjoint_state.classify(sample)
        assert isinstance(res, Unknown)

    def test_working_space_and_scores(self, disjoint_state):
        assert disjoint_state.all_in_working_space()
        assert disjoint_state.average_max_shannon() == pytest.approx(1.0)
        # Kullback is infinite everywhere for perfectly separated classes.
        assert disjoint_state.average_max_kullback() == 0.0

    def test_exam_classes(self, disjoint_pair):
        exam_a = make_class([12, 9, 11, 10], n_realizations=5, name="exam-a")
        state = run_pipeline(disjoint_pair, 5, exam_classes=[exam_a])
        assert len(state.exam_binaries) == 1
        (res,) = state.exam_results
        assert isinstance(res, Found) and res.class_index == 0

    def test_summary_mentions_every_class(self, disjoint_state):
        text = disjoint_state.summary()
        assert "class   0" in text and "class   1" in text


# ═══════════════════════════════════════════════════════════════════
# Degenerate inputs
# ═══════════════════════════════════════════════════════════════════

class TestSingleClass:

    def test_one_realization(self):
        only = AttributeMatrix(np.array([[10, 20, 30, 40]], dtype=np.uint8))
        state = run_pipeline([only], delta=3)
        (analysis,) = state.classes
        assert analysis.closest is None
        assert analysis.criteria.working_space == ()
        assert state.radii == (0,)
        (res,) = state.classify([0, 255, 0, 255])
        assert isinstance(res, Unknown)

    def test_needs_a_class(self):
        with pytest.raises(ValueError):
            run_pipeline([], 0)

    def test_base_index_out_of_range(self, disjoint_pair):
        with pytest.raises(IndexError):
            run_pipeline(disjoint_pair, 5, base_class_index=2)

    def test_shape_mismatch(self, disjoint_pair):
        other = make_class([1, 2, 3], 8)
        with pytest.raises(ValueError, match="shape"):
            run_pipeline(disjoint_pair + [other], 5)
        with pytest.raises(ValueError, match="exam class"):
            run_pipeline(disjoint_pair, 5, exam_classes=[other])


# ═══════════════════════════════════════════════════════════════════
# Snapshot semantics
# ═══════════════════════════════════════════════════════════════════

class TestSnapshot:

    def test_deterministic(self, noisy_classes):
        s1 = run_pipeline(noisy_classes, 30)
        s2 = run_pipeline(noisy_classes, 30)
        assert s1.radii == s2.radii
        assert all(a == b for a, b in zip(s1.binaries, s2.binaries))
        np.testing.assert_array_equal(s1.distances.centers,
                                      s2.distances.centers)

    def test_recompute_returns_new_state(self, noisy_classes):
        s1 = run_pipeline(noisy_classes, 30)
        s2 = run_pipeline(noisy_classes, 31)
        assert s1 is not s2
        assert s1.delta == 30 and s2.delta == 31

    def test_frozen(self, noisy_classes):
        state = run_pipeline(noisy_classes, 30)
        with pytest.raises(AttributeError):
            state.delta = 1

    def test_base_class_changes_corridor(self, noisy_classes):
        s0 = run_pipeline(noisy_classes, 20, base_class_index=0)
        s2 = run_pipeline(noisy_classes, 20, base_class_index=2)
        assert s0.corridor != s2.corridor
        assert s2.base_class_index == 2

    def test_radius_is_min_kullback_or_fallback(self, noisy_classes):
        state = run_pipeline(noisy_classes, 30)
        for c in state.classes:
            assert c.radius == c.criteria.min_radius()
            if c.radius:
                assert c.criteria.in_working_space(c.radius)

    def test_projection_per_class(self, noisy_classes):
        state = run_pipeline(noisy_classes, 30)
        for c in state.classes:
            assert c.projection.class_index == c.index
            assert c.projection.closest == c.closest
            assert c.projection.radius == c.radius

    def test_legacy_divisor(self, noisy_classes):
        state = run_pipeline(noisy_classes, 30, divisor="attributes")
        assert isinstance(state, ClassificationState)
