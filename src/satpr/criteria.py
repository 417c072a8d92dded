"""Information criteria over growing Hamming radii.

For one class and a candidate radius ρ the class's decision ball is the
set of binary vectors within ρ of its reference vector.  Counting how
many of the class's own realizations fall inside (true positives) and
how many realizations of the other classes fall inside (false positives)
gives four containment rates:

====== ======================================================
d1     own realizations inside the ball (true-positive rate)
alpha  ``1 - d1`` (false-negative rate)
beta   other classes' realizations inside (false-positive rate)
d2     ``1 - beta`` (true-negative rate)
====== ======================================================

Two information measures rank the radii:

* **Kullback**: ``log2((2 - (α+β)) / (α+β)) * (1 - (α+β))``.  It is
  undefined at ``α+β ∈ {0, 2}``; those points stay in the curve as
  non-finite values and are never picked as an optimum.
* **Shannon**: ``1 + ½ Σ (x/y)·log2(x/y)`` over the four
  ``(α, α+d2), (d1, d1+β), (β, d1+β), (d2, α+d2)`` pairs.  A term that
  is not a normal finite number contributes 0.

Only radii in the *working space* (both d1 and d2 inside the bounds in
:data:`~satpr.thresholds.DEFAULT_THRESHOLDS`, ρ ≥ 1) are candidates.

Usage
-----
>>> crit = compute_criteria(self_d, others_d, realization_count=50)
>>> crit.working_space
(3, 4, 5, 6)
>>> crit.kullback_radii, crit.min_radius()
((5,), 5)
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .thresholds import DEFAULT_THRESHOLDS, ThresholdRegistry

__all__ = [
    "Characteristics",
    "Criteria",
    "compute_criteria",
    "kullback_criterion",
    "shannon_criterion",
    "count_within",
]


# ═══════════════════════════════════════════════════════════════════
# Characteristics
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Characteristics:
    """Containment rates of one class's ball at one radius."""

    d1: float
    alpha: float
    beta: float
    d2: float

    @classmethod
    def from_counts(
        cls,
        self_inside: int,
        self_total: int,
        others_inside: int,
        others_total: int,
    ) -> "Characteristics":
        d1 = self_inside / self_total if self_total else 0.0
        beta = others_inside / others_total if others_total else 0.0
        return cls(d1=d1, alpha=1.0 - d1, beta=beta, d2=1.0 - beta)

    def to_dict(self) -> Dict[str, float]:
        return {"d1": self.d1, "alpha": self.alpha,
                "beta": self.beta, "d2": self.d2}


def count_within(
    distances: Sequence[int], max_radius: int, *, strict: bool = False,
) -> np.ndarray:
    """``counts[ρ]`` = number of distances ``<= ρ`` (``< ρ`` if *strict*).

    ρ runs over ``0 .. max_radius - 1``.
    """
    d = np.asarray(distances, dtype=np.int64)
    radii = np.arange(max(int(max_radius), 0))
    if strict:
        return (d[np.newaxis, :] < radii[:, np.newaxis]).sum(axis=1)
    return (d[np.newaxis, :] <= radii[:, np.newaxis]).sum(axis=1)


# ═══════════════════════════════════════════════════════════════════
# Criterion formulas
# ═══════════════════════════════════════════════════════════════════

def kullback_criterion(c: Characteristics) -> float:
    """Kullback measure; may be ``inf`` or ``nan`` at the boundaries."""
    s = c.alpha + c.beta
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.divide(np.float64(2.0) - s, np.float64(s))
        return float(np.log2(ratio) * (1.0 - s))


def _is_normal(x: float) -> bool:
    return math.isfinite(x) and abs(x) >= sys.float_info.min


def _entropy_term(x: float, y: float) -> float:
    with np.errstate(divide="ignore", invalid="ignore"):
        r = np.divide(np.float64(x), np.float64(y))
        value = float(r * np.log2(r))
    return value if _is_normal(value) else 0.0


def shannon_criterion(c: Characteristics) -> float:
    """Shannon measure; offending terms are dropped, never propagated."""
    terms = (
        _entropy_term(c.alpha, c.alpha + c.d2),
        _entropy_term(c.d1, c.d1 + c.beta),
        _entropy_term(c.beta, c.d1 + c.beta),
        _entropy_term(c.d2, c.alpha + c.d2),
    )
    return 1.0 + 0.5 * sum(terms)


def _optimal_radii(
    values: Sequence[float], working_space: Sequence[int],
) -> Tuple[int, ...]:
    finite = [(r, values[r]) for r in working_space
              if math.isfinite(values[r])]
    if not finite:
        return ()
    best = max(v for _, v in finite)
    return tuple(r for r, v in finite if v == best)


# ═══════════════════════════════════════════════════════════════════
# Criteria
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Criteria:
    """Criterion curves and optimal radii for one class.

    Attributes
    ----------
    characteristics : tuple of Characteristics
        Indexed by radius ``0 .. max_radius - 1``.
    kullback, shannon : tuple of float
        Criterion value per radius.
    working_space : tuple of int
        Candidate radii.
    kullback_radii, shannon_radii : tuple of int
        Working-space radii reaching each criterion's maximum.
    """

    characteristics: Tuple[Characteristics, ...]
    kullback: Tuple[float, ...]
    shannon: Tuple[float, ...]
    working_space: Tuple[int, ...]
    kullback_radii: Tuple[int, ...]
    shannon_radii: Tuple[int, ...]

    @property
    def max_radius(self) -> int:
        return len(self.characteristics)

    def max_kullback(self) -> Optional[Tuple[int, float]]:
        """``(radius, value)`` of the first Kullback optimum, or ``None``."""
        if not self.kullback_radii:
            return None
        r = self.kullback_radii[0]
        return r, self.kullback[r]

    def max_shannon(self) -> Optional[Tuple[int, float]]:
        if not self.shannon_radii:
            return None
        r = self.shannon_radii[0]
        return r, self.shannon[r]

    def min_radius(self) -> int:
        """Containment radius handed to the exam.

        The smallest Kullback-optimal radius.  When every Kullback value
        in the working space is non-finite (perfectly separated classes
        give ``α + β = 0`` everywhere) the smallest Shannon-optimal
        radius is used instead; 0 when the working space is empty.
        """
        if self.kullback_radii:
            return min(self.kullback_radii)
        if self.shannon_radii:
            return min(self.shannon_radii)
        return 0

    def in_working_space(self, radius: int) -> bool:
        return radius in self.working_space

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe dict; non-finite criterion values become ``None``."""
        def _clean(values):
            return [v if math.isfinite(v) else None for v in values]

        return {
            "characteristics": [c.to_dict() for c in self.characteristics],
            "kullback": _clean(self.kullback),
            "shannon": _clean(self.shannon),
            "working_space": list(self.working_space),
            "kullback_radii": list(self.kullback_radii),
            "shannon_radii": list(self.shannon_radii),
            "min_radius": self.min_radius(),
        }


def compute_criteria(
    self_distances: Sequence[int],
    other_distances: Sequence[int],
    realization_count: int,
    *,
    max_radius: Optional[int] = None,
    thresholds: ThresholdRegistry = DEFAULT_THRESHOLDS,
) -> Criteria:
    """Evaluate every radius for one class.

    Parameters
    ----------
    self_distances : sequence of int
        Distances from the class's own realizations to its centre.
    other_distances : sequence of int
        Pooled distances from all other classes' realizations to the
        same centre.
    realization_count : int
        Normaliser for ``d1`` (the class's realization count).
    max_radius : int, optional
        Exclusive upper radius.  Defaults to the largest distance seen
        in either input.
    thresholds : ThresholdRegistry
        Supplies the ``working_space.*`` bounds.

    Returns
    -------
    Criteria
    """
    self_d = np.asarray(self_distances, dtype=np.int64)
    other_d = np.asarray(other_distances, dtype=np.int64)
    if max_radius is None:
        observed = np.concatenate([self_d, other_d])
        max_radius = int(observed.max()) if observed.size else 0

    # Own realizations count at d <= ρ, other classes only at d < ρ.
    self_counts = count_within(self_d, max_radius)
    other_counts = count_within(other_d, max_radius, strict=True)

    characteristics: List[Characteristics] = [
        Characteristics.from_counts(
            int(s), realization_count, int(o), int(other_d.size))
        for s, o in zip(self_counts, other_counts)
    ]
    kullback = tuple(kullback_criterion(c) for c in characteristics)
    shannon = tuple(shannon_criterion(c) for c in characteristics)

    d1_lo = thresholds["working_space.d1_min"]
    d1_hi = thresholds["working_space.d1_max"]
    d2_lo = thresholds["working_space.d2_min"]
    d2_hi = thresholds["working_space.d2_max"]
    working_space = tuple(
        r for r, c in enumerate(characteristics)
        if r > 0 and d1_lo <= c.d1 <= d1_hi and d2_lo <= c.d2 <= d2_hi
    )

    return Criteria(
        characteristics=tuple(characteristics),
        kullback=kullback,
        shannon=shannon,
        working_space=working_space,
        kullback_radii=_optimal_radii(kullback, working_space),
        shannon_radii=_optimal_radii(shannon, working_space),
    )
