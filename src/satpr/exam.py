"""Exam: classify unknown binary vectors against the class decision balls.

Class *i*'s decision ball is centred on its reference vector with the
radius chosen by the criteria engine.  For an unknown vector at distance
``d`` the containment score is ``1 - d / r``; it is positive exactly when
``d < r``.  A class with ``r = 0`` never contains anything (its score is
``nan``).

The decision is deliberately conservative: a vector is assigned to a
class only when that class alone claims it.  No claims, or several, give
``Unknown``.  Either way the evidence (distances, scores, claims) is kept
so the front end can show *why*.

Usage
-----
>>> results = exam(exam_binary, state.reference_vectors, state.radii)
>>> [str(r) for r in results]
['0', '0', 'Unknown', '1']
>>> exam_matrix(exam_binary, state.reference_vectors, state.radii)
Found(class_index=0, ...)
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .binary import BinaryMatrix, ReferenceVector, build_reference_vector
from .hamming import hamming, hamming_to_each

__all__ = [
    "ExamEvidence",
    "ExamResult",
    "Found",
    "Unknown",
    "containment",
    "exam",
    "exam_matrix",
    "ExamReport",
]


def containment(distance: int, radius: int) -> float:
    """``1 - distance / radius``; ``nan`` for a zero radius."""
    if radius <= 0:
        return math.nan
    return 1.0 - distance / radius


# ═══════════════════════════════════════════════════════════════════
# Results
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ExamEvidence:
    """Why an exam decision came out the way it did.

    Attributes
    ----------
    distances : tuple of int
        Distance to each class's reference vector.
    containment : tuple of float
        ``1 - d/r`` per class (``nan`` where the radius is 0).
    claims : tuple of int
        Classes whose containment test fired.
    tally : tuple of int
        Per class, how many realizations it claimed (1 or 0 for a
        single vector).
    ambiguous : int
        Realizations claimed by more than one class.
    """

    distances: Tuple[int, ...]
    containment: Tuple[float, ...]
    claims: Tuple[int, ...]
    tally: Tuple[int, ...]
    ambiguous: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distances": list(self.distances),
            "containment": [c if math.isfinite(c) else None
                            for c in self.containment],
            "claims": list(self.claims),
            "tally": list(self.tally),
            "ambiguous": self.ambiguous,
        }


class ExamResult:
    """Common interface of :class:`Found` and :class:`Unknown`.

    Both carry ``evidence`` and ``class_index`` (``None`` for Unknown).
    """

    evidence: ExamEvidence
    class_index: Optional[int]

    @property
    def is_found(self) -> bool:
        return isinstance(self, Found)


@dataclass(frozen=True)
class Found(ExamResult):
    class_index: int
    evidence: ExamEvidence

    def __str__(self) -> str:
        return str(self.class_index)


@dataclass(frozen=True)
class Unknown(ExamResult):
    evidence: ExamEvidence

    @property
    def class_index(self) -> None:
        return None

    def __str__(self) -> str:
        return "Unknown"


def _check_inputs(
    n_attributes: int,
    reference_vectors: Sequence[ReferenceVector],
    radii: Sequence[int],
) -> None:
    if len(reference_vectors) != len(radii):
        raise ValueError(
            f"{len(reference_vectors)} reference vectors but "
            f"{len(radii)} radii")
    for i, rv in enumerate(reference_vectors):
        if len(rv) != n_attributes:
            raise ValueError(
                f"Reference vector {i} has {len(rv)} attributes, "
                f"the exam rows have {n_attributes}")


def _as_rows(unknown_rows) -> np.ndarray:
    if isinstance(unknown_rows, BinaryMatrix):
        return unknown_rows.bits
    if isinstance(unknown_rows, ReferenceVector):
        return unknown_rows.bits[np.newaxis, :]
    # {0, 255} bytes and boolean masks both reduce to on/off.
    rows = np.asarray(unknown_rows) != 0
    if rows.ndim == 1:
        rows = rows[np.newaxis, :]
    return rows


def _distance_grid(
    rows: np.ndarray, reference_vectors: Sequence[ReferenceVector],
) -> np.ndarray:
    """``grid[r, i]`` = distance from row *r* to reference vector *i*."""
    if not reference_vectors or rows.shape[1] == 0:
        return np.zeros((rows.shape[0], len(reference_vectors)),
                        dtype=np.int64)
    return np.column_stack([hamming_to_each(rows, rv)
                            for rv in reference_vectors])


def _decide(evidence: ExamEvidence) -> ExamResult:
    if len(evidence.claims) == 1:
        return Found(class_index=evidence.claims[0], evidence=evidence)
    return Unknown(evidence=evidence)


# ═══════════════════════════════════════════════════════════════════
# exam / exam_matrix
# ═══════════════════════════════════════════════════════════════════

def exam(
    unknown_rows,
    reference_vectors: Sequence[ReferenceVector],
    radii: Sequence[int],
) -> List[ExamResult]:
    """Classify every row of *unknown_rows* independently.

    Parameters
    ----------
    unknown_rows : BinaryMatrix or array-like
        Binarised realizations, one per row (a 1-D vector is one row).
    reference_vectors : sequence of ReferenceVector
    radii : sequence of int
        Containment radius per class.

    Returns
    -------
    list of ExamResult
        One result per row, in row order.
    """
    rows = _as_rows(unknown_rows)
    _check_inputs(rows.shape[1], reference_vectors, radii)
    grid = _distance_grid(rows, reference_vectors)

    results: List[ExamResult] = []
    for distances in grid:
        scores = tuple(containment(int(d), int(r))
                       for d, r in zip(distances, radii))
        claims = tuple(i for i, s in enumerate(scores) if s > 0)
        evidence = ExamEvidence(
            distances=tuple(int(d) for d in distances),
            containment=scores,
            claims=claims,
            tally=tuple(1 if i in claims else 0 for i in range(len(radii))),
            ambiguous=1 if len(claims) > 1 else 0,
        )
        results.append(_decide(evidence))
    return results


def exam_matrix(
    binary: BinaryMatrix,
    reference_vectors: Sequence[ReferenceVector],
    radii: Sequence[int],
) -> ExamResult:
    """Classify a whole exam class.

    Every realization is examined on its own; class *i* claims the exam
    class when it contains more than half of the realizations.  The
    result is ``Found`` only if exactly one class claims it.  The
    evidence's ``distances``/``containment`` describe the exam class's
    own reference vector.
    """
    per_row = exam(binary, reference_vectors, radii)
    n = binary.n_realizations
    k = len(reference_vectors)

    tally = [0] * k
    ambiguous = 0
    for res in per_row:
        for i in res.evidence.claims:
            tally[i] += 1
        if len(res.evidence.claims) > 1:
            ambiguous += 1

    center = build_reference_vector(binary)
    distances = tuple(hamming(center, rv) for rv in reference_vectors)
    evidence = ExamEvidence(
        distances=distances,
        containment=tuple(containment(d, int(r))
                          for d, r in zip(distances, radii)),
        claims=tuple(i for i, t in enumerate(tally) if t > n / 2),
        tally=tuple(tally),
        ambiguous=ambiguous,
    )
    return _decide(evidence)


# ═══════════════════════════════════════════════════════════════════
# ExamReport: accuracy against known labels
# ═══════════════════════════════════════════════════════════════════

@dataclass
class ExamReport:
    """Scores a batch of exam results against expected class indices."""

    results: List[ExamResult]
    expected: List[int]
    n_classes: int

    def __post_init__(self):
        if len(self.results) != len(self.expected):
            raise ValueError(
                f"{len(self.results)} results but "
                f"{len(self.expected)} expected labels")

    @property
    def n_total(self) -> int:
        return len(self.results)

    @property
    def n_correct(self) -> int:
        return sum(1 for r, e in zip(self.results, self.expected)
                   if r.class_index == e)

    @property
    def accuracy(self) -> float:
        return self.n_correct / self.n_total if self.n_total else 0.0

    @property
    def unknown_rate(self) -> float:
        if not self.n_total:
            return 0.0
        return sum(1 for r in self.results if not r.is_found) / self.n_total

    def confusion_matrix(self) -> np.ndarray:
        """``(k, k + 1)`` counts; the last column is ``Unknown``."""
        mat = np.zeros((self.n_classes, self.n_classes + 1), dtype=int)
        for res, exp in zip(self.results, self.expected):
            col = res.class_index if res.is_found else self.n_classes
            mat[exp, col] += 1
        return mat

    def per_class(self) -> Dict[int, Dict[str, Any]]:
        totals = Counter(self.expected)
        hits = Counter(e for r, e in zip(self.results, self.expected)
                       if r.class_index == e)
        return {
            c: {
                "total": totals[c],
                "correct": hits[c],
                "recall": hits[c] / totals[c] if totals[c] else 0.0,
            }
            for c in range(self.n_classes)
        }

    def summary(self) -> str:
        lines = [
            f"Exam: {self.n_correct}/{self.n_total} correct "
            f"({100 * self.accuracy:.1f}%), "
            f"unknown {100 * self.unknown_rate:.1f}%",
        ]
        for c, stats in self.per_class().items():
            lines.append(
                f"  class {c:3d}: {stats['correct']}/{stats['total']} "
                f"recall={stats['recall']:.2f}")
        return "\n".join(lines)
