"""Hamming geometry between binary vectors and classes.

Two levels:

* :func:`hamming` / :func:`hamming_to_each`: raw distances between
  vectors, and between one centre and every realization of a matrix.
* :class:`DistanceTable`: everything the criteria engine and the 2-D
  projection need for a set of classes: centre-to-centre distances, and
  for every pair ``(i, j)`` the distances from class *j*'s realizations
  to class *i*'s reference vector.

Vectorised distances go through :func:`scipy.spatial.distance.cdist`
(normalised Hamming, scaled back to counts).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.distance import cdist, pdist, squareform

from .binary import BinaryMatrix, ReferenceVector

__all__ = [
    "hamming",
    "hamming_to_each",
    "DistanceTable",
    "build_distance_table",
]


def _as_vector(v) -> np.ndarray:
    """Boolean on/off mask; any nonzero value counts as on."""
    if isinstance(v, (ReferenceVector, BinaryMatrix)):
        return v.bits
    if isinstance(v, (bytes, bytearray)):
        return np.frombuffer(bytes(v), dtype=np.uint8) != 0
    return np.asarray(v) != 0


def hamming(u, v) -> int:
    """Number of positions where *u* and *v* differ.

    Raises
    ------
    ValueError
        If the vectors have different lengths.  Every caller inside the
        package works on co-dimensioned arrays, so this is a bug.
    """
    a = _as_vector(u).ravel()
    b = _as_vector(v).ravel()
    if a.shape != b.shape:
        raise ValueError(
            f"Hamming distance needs equal lengths: {a.size} vs {b.size}")
    return int(np.count_nonzero(a != b))


def hamming_to_each(realizations, center) -> np.ndarray:
    """Distance from every realization to *center*, in realization order.

    Parameters
    ----------
    realizations : BinaryMatrix, 2-D array, or flat buffer
        A flat buffer is split into chunks of ``len(center)``.
    center : ReferenceVector or 1-D array

    Returns
    -------
    np.ndarray
        ``int64`` array with one distance per realization.
    """
    c = _as_vector(center).ravel()
    if c.size == 0:
        raise ValueError("Cannot measure distances to an empty centre")
    rows = _as_vector(realizations)
    if rows.ndim == 1:
        if rows.size % c.size:
            raise ValueError(
                f"Buffer of {rows.size} values does not split into "
                f"realizations of length {c.size}")
        rows = rows.reshape(-1, c.size)
    if rows.shape[1] != c.size:
        raise ValueError(
            f"Hamming distance needs equal lengths: "
            f"{rows.shape[1]} vs {c.size}")
    if rows.shape[0] == 0:
        return np.zeros(0, dtype=np.int64)
    fractions = cdist(rows, c[np.newaxis, :], metric="hamming")[:, 0]
    return np.rint(fractions * c.size).astype(np.int64)


# ═══════════════════════════════════════════════════════════════════
# DistanceTable: per-class-pair distances
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class DistanceTable:
    """Distances among a set of classes.

    Attributes
    ----------
    centers : np.ndarray
        ``(k, k)`` int matrix; ``centers[i, j]`` is the distance between
        reference vectors *i* and *j*.
    to_realizations : tuple of tuple of np.ndarray
        ``to_realizations[i][j]`` holds the distance from each
        realization of class *j* to reference vector *i*.
    """

    centers: np.ndarray
    to_realizations: Tuple[Tuple[np.ndarray, ...], ...]

    @property
    def n_classes(self) -> int:
        return int(self.centers.shape[0])

    def closest(self, i: int) -> Optional[int]:
        """Class whose centre is nearest to centre *i* (first on ties).

        ``None`` when *i* is the only class.
        """
        others = [j for j in range(self.n_classes) if j != i]
        if not others:
            return None
        return min(others, key=lambda j: self.centers[i, j])

    def self_distances(self, i: int) -> np.ndarray:
        return self.to_realizations[i][i]

    def others_distances(self, i: int) -> np.ndarray:
        """Pooled distances from every other class's realizations to *i*."""
        parts = [self.to_realizations[i][j]
                 for j in range(self.n_classes) if j != i]
        if not parts:
            return np.zeros(0, dtype=np.int64)
        return np.concatenate(parts)

    def max_radius(self, i: int) -> int:
        """Largest distance observed around centre *i* and its closest.

        Covers own and pooled-other realizations measured from *i*, plus
        both classes' realizations measured from the closest centre.
        """
        parts = [self.self_distances(i), self.others_distances(i)]
        closest = self.closest(i)
        if closest is not None:
            parts.append(self.to_realizations[closest][i])
            parts.append(self.to_realizations[closest][closest])
        pooled = np.concatenate(parts)
        return int(pooled.max()) if pooled.size else 0


def build_distance_table(
    binaries: Sequence[BinaryMatrix],
    reference_vectors: Sequence[ReferenceVector],
) -> DistanceTable:
    """Compute every centre-to-centre and centre-to-realization distance."""
    if len(binaries) != len(reference_vectors):
        raise ValueError(
            f"{len(binaries)} binary matrices but "
            f"{len(reference_vectors)} reference vectors")
    k = len(reference_vectors)
    if k == 0:
        return DistanceTable(np.zeros((0, 0), dtype=np.int64), ())

    stacked = np.stack([rv.bits for rv in reference_vectors])
    n_attr = stacked.shape[1]
    if k > 1 and n_attr:
        centers = np.rint(
            squareform(pdist(stacked, metric="hamming")) * n_attr,
        ).astype(np.int64)
    else:
        centers = np.zeros((k, k), dtype=np.int64)
    centers.setflags(write=False)

    rows = []
    for i in range(k):
        row = []
        for j in range(k):
            if n_attr:
                d = hamming_to_each(binaries[j], reference_vectors[i])
            else:
                d = np.zeros(binaries[j].n_realizations, dtype=np.int64)
            d.setflags(write=False)
            row.append(d)
        rows.append(tuple(row))
    return DistanceTable(centers=centers, to_realizations=tuple(rows))
