"""The full recompute chain as one pure function.

::

    classes ─┬─► build_corridor(base, delta)
             ├─► binarize ─► build_reference_vector
             ├─► build_distance_table
             ├─► compute_criteria (per class) ─► radius
             └─► exam (exam classes, if any)

:func:`run_pipeline` returns a frozen :class:`ClassificationState`.  Any
change of delta, base class or class set means calling it again; nothing
is mutated, so a renderer can keep reading the previous snapshot while a
new one is computed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .binary import BinaryMatrix, ReferenceVector, binarize_all, build_reference_vector
from .corridor import Corridor, build_corridor
from .criteria import Criteria, compute_criteria
from .exam import ExamResult, exam, exam_matrix
from .geometry import Projection, build_projection
from .hamming import DistanceTable, build_distance_table
from .matrices import AttributeMatrix
from .thresholds import DEFAULT_THRESHOLDS, ThresholdRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "ClassAnalysis",
    "ClassificationState",
    "run_pipeline",
]


@dataclass(frozen=True, eq=False)
class ClassAnalysis:
    """Everything computed for one training class.

    Attributes
    ----------
    index : int
    closest : int or None
        Class with the nearest reference vector.
    self_distances : np.ndarray
        Own realizations to own centre.
    closest_distances : np.ndarray
        Own realizations to the closest class's centre.
    others_distances : np.ndarray
        All other classes' realizations to own centre (pooled).
    criteria : Criteria
    radius : int
        Selected containment radius (``criteria.min_radius()``).
    projection : Projection
    """

    index: int
    closest: Optional[int]
    self_distances: np.ndarray
    closest_distances: np.ndarray
    others_distances: np.ndarray
    criteria: Criteria
    radius: int
    projection: Projection


@dataclass(frozen=True, eq=False)
class ClassificationState:
    """Immutable snapshot of one pipeline run."""

    delta: int
    base_class_index: int
    corridor: Corridor
    binaries: Tuple[BinaryMatrix, ...]
    reference_vectors: Tuple[ReferenceVector, ...]
    distances: DistanceTable
    classes: Tuple[ClassAnalysis, ...]
    exam_binaries: Tuple[BinaryMatrix, ...] = ()
    exam_results: Tuple[ExamResult, ...] = ()

    @property
    def n_classes(self) -> int:
        return len(self.classes)

    @property
    def radii(self) -> Tuple[int, ...]:
        return tuple(c.radius for c in self.classes)

    @property
    def criteria(self) -> Tuple[Criteria, ...]:
        return tuple(c.criteria for c in self.classes)

    def average_max_shannon(self) -> float:
        """Mean over classes of the best Shannon value (0 if none)."""
        return _average_best([c.criteria.max_shannon() for c in self.classes])

    def average_max_kullback(self) -> float:
        return _average_best([c.criteria.max_kullback() for c in self.classes])

    def all_in_working_space(self) -> bool:
        """True iff every class's Shannon optimum is a working-space radius."""
        if not self.classes:
            return False
        for c in self.classes:
            best = c.criteria.max_shannon()
            if best is None or not c.criteria.in_working_space(best[0]):
                return False
        return True

    def classify(self, rows) -> List[ExamResult]:
        """Exam arbitrary binarised rows against this snapshot."""
        return exam(rows, self.reference_vectors, self.radii)

    def summary(self) -> str:
        lines = [
            f"delta={self.delta}  base class={self.base_class_index}  "
            f"classes={self.n_classes}",
        ]
        for c in self.classes:
            best_k = c.criteria.max_kullback()
            best_s = c.criteria.max_shannon()
            lines.append(
                f"  class {c.index:3d}: closest={c.closest}  "
                f"radius={c.radius}  "
                f"working space={len(c.criteria.working_space)}  "
                f"kullback={_fmt(best_k)}  shannon={_fmt(best_s)}"
            )
        for i, res in enumerate(self.exam_results):
            lines.append(f"  exam {i}: {res}")
        return "\n".join(lines)


def _average_best(best: Sequence[Optional[Tuple[int, float]]]) -> float:
    if not best:
        return 0.0
    return sum(b[1] if b is not None else 0.0 for b in best) / len(best)


def _fmt(best: Optional[Tuple[int, float]]) -> str:
    return "-" if best is None else f"{best[1]:.4f}@{best[0]}"


def _check_shapes(
    classes: Sequence[AttributeMatrix],
    exam_classes: Sequence[AttributeMatrix],
) -> None:
    expected = classes[0].shape
    for label, group in (("class", classes), ("exam class", exam_classes)):
        for i, c in enumerate(group):
            if c.shape != expected:
                raise ValueError(
                    f"{label} {i} has shape {c.shape}, expected {expected}")


def run_pipeline(
    classes: Sequence[AttributeMatrix],
    delta: int,
    base_class_index: int = 0,
    *,
    exam_classes: Sequence[AttributeMatrix] = (),
    divisor: str = "realizations",
    thresholds: ThresholdRegistry = DEFAULT_THRESHOLDS,
) -> ClassificationState:
    """Run the whole chain for one ``(classes, delta, base class)``.

    Parameters
    ----------
    classes : sequence of AttributeMatrix
        Training classes; all must share one shape (the loading
        boundary, :class:`~satpr.matrices.ClassSet`, guarantees this).
    delta : int
        Corridor tolerance, 0..255.
    base_class_index : int
        Class whose mean defines the corridor.
    exam_classes : sequence of AttributeMatrix
        Optional unknown classes, binarised with the same corridor and
        examined as whole matrices.
    divisor : {"realizations", "attributes"}
        See :func:`~satpr.corridor.build_corridor`.
    thresholds : ThresholdRegistry

    Returns
    -------
    ClassificationState
    """
    if not classes:
        raise ValueError("run_pipeline needs at least one training class")
    if not 0 <= base_class_index < len(classes):
        raise IndexError(
            f"Base class index {base_class_index} out of range "
            f"(have {len(classes)} classes)")
    _check_shapes(classes, exam_classes)

    corridor = build_corridor(classes[base_class_index], delta,
                              divisor=divisor)
    binaries = tuple(binarize_all(classes, corridor))
    reference_vectors = tuple(build_reference_vector(b) for b in binaries)
    table = build_distance_table(binaries, reference_vectors)

    criteria: List[Criteria] = []
    for i, b in enumerate(binaries):
        crit = compute_criteria(
            table.self_distances(i),
            table.others_distances(i),
            b.n_realizations,
            max_radius=table.max_radius(i),
            thresholds=thresholds,
        )
        if not crit.working_space:
            logger.debug(f"delta={delta}: class {i} has an empty working space")
        criteria.append(crit)
    radii = [c.min_radius() for c in criteria]

    analyses = []
    for i in range(len(binaries)):
        closest = table.closest(i)
        analyses.append(ClassAnalysis(
            index=i,
            closest=closest,
            self_distances=table.self_distances(i),
            closest_distances=(table.to_realizations[closest][i]
                               if closest is not None
                               else np.zeros(0, dtype=np.int64)),
            others_distances=table.others_distances(i),
            criteria=criteria[i],
            radius=radii[i],
            projection=build_projection(
                table, i, radii[i],
                radii[closest] if closest is not None else 0),
        ))

    exam_binaries = tuple(binarize_all(exam_classes, corridor))
    exam_results = tuple(exam_matrix(b, reference_vectors, radii)
                         for b in exam_binaries)

    logger.debug(
        f"Pipeline delta={delta} base={base_class_index}: radii={radii}")
    return ClassificationState(
        delta=corridor.delta,
        base_class_index=base_class_index,
        corridor=corridor,
        binaries=binaries,
        reference_vectors=reference_vectors,
        distances=table,
        classes=tuple(analyses),
        exam_binaries=exam_binaries,
        exam_results=exam_results,
    )
