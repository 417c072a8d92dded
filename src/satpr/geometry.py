"""2-D projection of realizations around a pair of class centres.

Each realization has three known Hamming distances: to its own centre
(``rs``), to the closest class's centre (``rc``), and the centre-to-centre
distance ``D``.  Placing the own centre at ``(0, 0)`` and the closest
centre at ``(D, 0)`` fixes the realization by trilateration::

    x = (D² - rc² + rs²) / (2D)
    y = sqrt(rs² - x²)

Hamming distances are not Euclidean, so ``rs² - x²`` can be negative;
such points have no planar position and are dropped.  The projection is
for display only and never feeds a decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .hamming import DistanceTable

__all__ = [
    "Projection",
    "project",
    "build_projection",
]


def project(
    distances_to_center: Sequence[int],
    distances_to_closest: Sequence[int],
    center_distance: int,
) -> np.ndarray:
    """Trilaterate each realization; returns an ``(n, 2)`` float array."""
    rs = np.asarray(distances_to_center, dtype=np.float64)
    rc = np.asarray(distances_to_closest, dtype=np.float64)
    if rs.shape != rc.shape:
        raise ValueError(
            f"Distance vectors differ in length: {rs.size} vs {rc.size}")
    if center_distance == 0:
        return np.zeros((0, 2))
    d = float(center_distance)
    with np.errstate(invalid="ignore"):
        x = (d ** 2 - rc ** 2 + rs ** 2) / (2.0 * d)
        y = np.sqrt(rs ** 2 - x ** 2)
    keep = np.isfinite(x) & np.isfinite(y)
    return np.column_stack([x[keep], y[keep]])


@dataclass(frozen=True, eq=False)
class Projection:
    """Planar picture of one class against its closest neighbour.

    Attributes
    ----------
    class_index, closest : int
        The projected class and its nearest class (``closest`` is
        ``None`` when there is only one class).
    center_distance : int
        Distance between the two centres (the x coordinate of the
        closest centre).
    own : np.ndarray
        Coordinates of the class's own realizations.
    neighbour : np.ndarray
        Coordinates of the closest class's realizations, in the same frame.
    radius, closest_radius : int
        Selected containment radii of the two classes.
    """

    class_index: int
    closest: Optional[int]
    center_distance: int
    own: np.ndarray
    neighbour: np.ndarray
    radius: int = 0
    closest_radius: int = 0

    @property
    def is_empty(self) -> bool:
        return self.center_distance == 0


def build_projection(
    table: DistanceTable,
    i: int,
    radius: int = 0,
    closest_radius: int = 0,
) -> Projection:
    closest = table.closest(i)
    if closest is None:
        empty = np.zeros((0, 2))
        return Projection(i, None, 0, empty, empty, radius, closest_radius)
    distance = int(table.centers[i, closest])
    own = project(table.to_realizations[i][i],
                  table.to_realizations[closest][i], distance)
    neighbour = project(table.to_realizations[i][closest],
                        table.to_realizations[closest][closest], distance)
    return Projection(
        class_index=i,
        closest=closest,
        center_distance=distance,
        own=own,
        neighbour=neighbour,
        radius=radius,
        closest_radius=closest_radius,
    )
