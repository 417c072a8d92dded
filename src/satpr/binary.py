"""Binary matrices and reference vectors.

Binarisation maps each raw attribute value to ``255`` (inside the
corridor) or ``0`` (outside).  The {0, 255} encoding is kept so the
matrices can be handed to an image widget as-is; :attr:`bits` gives the
boolean view.  The distance engine treats any nonzero value as on, so
either form can be passed to it.

A class's reference vector is its binary centroid: attribute *a* is on
iff a strict majority of the class's realizations have it on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .corridor import Corridor
from .matrices import AttributeMatrix

__all__ = [
    "ON",
    "OFF",
    "BinaryMatrix",
    "ReferenceVector",
    "binarize",
    "binarize_all",
    "build_reference_vector",
]

ON = np.uint8(255)
OFF = np.uint8(0)


def _frozen_u8(values) -> np.ndarray:
    arr = np.array(values, dtype=np.uint8, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class BinaryMatrix:
    """A class's realizations after binarisation.

    Attributes
    ----------
    data : np.ndarray
        Read-only ``uint8`` array, values in {0, 255}, shape
        ``(realizations, attributes)``.
    name : str
    """

    data: np.ndarray
    name: str = ""

    def __post_init__(self):
        arr = _frozen_u8(self.data)
        if arr.ndim != 2:
            raise ValueError(
                f"BinaryMatrix needs a 2-D array, got shape {arr.shape}")
        object.__setattr__(self, "data", arr)

    @property
    def bits(self) -> np.ndarray:
        return self.data == ON

    @property
    def n_realizations(self) -> int:
        return int(self.data.shape[0])

    @property
    def n_attributes(self) -> int:
        return int(self.data.shape[1])

    def as_attribute_matrix(self) -> AttributeMatrix:
        """View the binary values as raw bytes (re-binarisation input)."""
        return AttributeMatrix(self.data, name=self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BinaryMatrix):
            return NotImplemented
        return np.array_equal(self.data, other.data)

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True, eq=False)
class ReferenceVector:
    """Binary centroid of one class, values in {0, 255}."""

    data: np.ndarray

    def __post_init__(self):
        arr = _frozen_u8(self.data)
        if arr.ndim != 1:
            raise ValueError(
                f"ReferenceVector needs a 1-D array, got shape {arr.shape}")
        object.__setattr__(self, "data", arr)

    @property
    def bits(self) -> np.ndarray:
        return self.data == ON

    def __len__(self) -> int:
        return int(self.data.shape[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReferenceVector):
            return NotImplemented
        return np.array_equal(self.data, other.data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ReferenceVector({int(self.bits.sum())}/{len(self)} on)"


def binarize(raw_class: AttributeMatrix, corridor: Corridor) -> BinaryMatrix:
    """Mark each value inside ``[lower[a], upper[a]]`` (inclusive)."""
    if raw_class.n_attributes != corridor.n_attributes:
        raise ValueError(
            f"Class has {raw_class.n_attributes} attributes but the "
            f"corridor covers {corridor.n_attributes}")
    inside = ((raw_class.data >= corridor.lower)
              & (raw_class.data <= corridor.upper))
    return BinaryMatrix(np.where(inside, ON, OFF), name=raw_class.name)


def binarize_all(
    classes: Sequence[AttributeMatrix], corridor: Corridor,
) -> List[BinaryMatrix]:
    return [binarize(c, corridor) for c in classes]


def build_reference_vector(binary: BinaryMatrix) -> ReferenceVector:
    """Strict per-attribute majority vote; a tie counts as off.

    A class with no realizations gives an all-off vector.
    """
    counts = binary.bits.sum(axis=0)
    # Integer half; with R = 0 every count is 0 and nothing passes.
    majority = counts > binary.n_realizations // 2
    return ReferenceVector(np.where(majority, ON, OFF))
