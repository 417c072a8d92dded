"""Attribute matrices and the class-loading boundary.

An :class:`AttributeMatrix` is one class's raw measurements: a grayscale
image whose columns are attributes and whose rows are realizations.  The
external loader decodes the image; this module only wraps the bytes and
enforces the two rules a set of classes must obey before the core sees
them:

* every class has the same ``(attributes, realizations)`` shape, and
* no class is loaded twice (bit-identical bytes).

Violations raise :class:`LoadError`, a structured exception the front end
can turn into a message without parsing strings.

Usage
-----
>>> from satpr.matrices import ClassSet, load_class
>>> a = load_class(bytes_a, width=50, height=50, name="forest")
>>> b = load_class(bytes_b, width=50, height=50, name="field")
>>> training = ClassSet().add(a).add(b)
>>> training.shape
(50, 50)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

__all__ = [
    "AttributeMatrix",
    "ClassSet",
    "LoadError",
    "LoadErrorKind",
    "load_class",
]


# ═══════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════

class LoadErrorKind(enum.Enum):
    """Why a class was refused at the loading boundary."""

    DUPLICATE = "duplicate"
    SIZE_MISMATCH = "size_mismatch"
    BAD_BUFFER = "bad_buffer"


class LoadError(ValueError):
    """A class could not be admitted to a :class:`ClassSet`.

    Attributes
    ----------
    kind : LoadErrorKind
    expected : tuple, int or str, optional
        Shape, byte count or dtype kind the boundary required.
    actual : tuple, int or str, optional
        Shape, byte count or dtype that was supplied.
    duplicate_of : int, optional
        Index of the already-loaded identical class.
    """

    def __init__(
        self,
        kind: LoadErrorKind,
        *,
        expected: Union[Tuple[int, int], int, str, None] = None,
        actual: Union[Tuple[int, int], int, str, None] = None,
        duplicate_of: Optional[int] = None,
    ):
        self.kind = kind
        self.expected = expected
        self.actual = actual
        self.duplicate_of = duplicate_of
        super().__init__(self._message())

    def _message(self) -> str:
        if self.kind is LoadErrorKind.DUPLICATE:
            return (f"This class has already been loaded "
                    f"(identical to class {self.duplicate_of})")
        if self.kind is LoadErrorKind.SIZE_MISMATCH:
            return (f"Classes should have the same number of attributes "
                    f"and realizations: expected {self.expected}, "
                    f"got {self.actual}")
        if isinstance(self.actual, str):
            return (f"Buffer has dtype {self.actual}, "
                    f"expected {self.expected} values")
        return (f"Buffer holds {self.actual} bytes, "
                f"expected width*height = {self.expected}")


# ═══════════════════════════════════════════════════════════════════
# AttributeMatrix
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class AttributeMatrix:
    """Raw byte measurements of one class.

    Attributes
    ----------
    data : np.ndarray
        Read-only ``uint8`` array of shape ``(realizations, attributes)``.
    name : str
        Free-form label (typically the source file name).
    """

    data: np.ndarray
    name: str = ""

    def __post_init__(self):
        arr = np.array(self.data, dtype=np.uint8, copy=True)
        if arr.ndim != 2:
            raise ValueError(
                f"AttributeMatrix needs a 2-D array, got shape {arr.shape}")
        arr.setflags(write=False)
        object.__setattr__(self, "data", arr)

    @property
    def n_realizations(self) -> int:
        return int(self.data.shape[0])

    @property
    def n_attributes(self) -> int:
        return int(self.data.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        """``(attributes, realizations)``, i.e. image ``(width, height)``."""
        return (self.n_attributes, self.n_realizations)

    def to_bytes(self) -> bytes:
        return self.data.tobytes()

    def same_data(self, other: "AttributeMatrix") -> bool:
        return (self.data.shape == other.data.shape
                and bool(np.array_equal(self.data, other.data)))

    def __repr__(self) -> str:
        return (f"AttributeMatrix({self.name!r}, "
                f"{self.n_attributes} attributes × "
                f"{self.n_realizations} realizations)")


def load_class(
    raw_bytes: Union[bytes, bytearray, Sequence[int], np.ndarray],
    width: int,
    height: int,
    name: str = "",
) -> AttributeMatrix:
    """Wrap a decoded grayscale buffer as an :class:`AttributeMatrix`.

    Parameters
    ----------
    raw_bytes : bytes-like or sequence of int
        Pixel values, row-major (one row per realization).
    width : int
        Number of attributes (image width).
    height : int
        Number of realizations (image height).
    name : str
        Label for the class.

    Raises
    ------
    LoadError
        ``BAD_BUFFER`` if the buffer length is not ``width * height``.
    """
    if isinstance(raw_bytes, (bytes, bytearray, memoryview)):
        flat = np.frombuffer(bytes(raw_bytes), dtype=np.uint8)
    else:
        flat = np.asarray(raw_bytes)
        if flat.size and not np.issubdtype(flat.dtype, np.integer):
            raise LoadError(
                LoadErrorKind.BAD_BUFFER,
                expected="integer",
                actual=str(flat.dtype),
            )
        if flat.size and (flat.min() < 0 or flat.max() > 255):
            raise ValueError("Attribute values must lie in 0..255")
        flat = flat.astype(np.uint8).ravel()
    if flat.size != width * height:
        raise LoadError(
            LoadErrorKind.BAD_BUFFER,
            expected=width * height,
            actual=int(flat.size),
        )
    return AttributeMatrix(flat.reshape(height, width), name=name)


# ═══════════════════════════════════════════════════════════════════
# ClassSet: the loading boundary
# ═══════════════════════════════════════════════════════════════════

class ClassSet:
    """Immutable ordered collection of same-shaped, distinct classes.

    ``add`` and ``remove`` return new sets, so a snapshot handed to the
    pipeline can never change underneath it.
    """

    def __init__(self, classes: Sequence[AttributeMatrix] = ()):
        self._classes: Tuple[AttributeMatrix, ...] = ()
        for matrix in classes:
            self._classes = self._admit(matrix)

    def _admit(self, matrix: AttributeMatrix) -> Tuple[AttributeMatrix, ...]:
        if self._classes:
            expected = self._classes[0].shape
            if matrix.shape != expected:
                raise LoadError(
                    LoadErrorKind.SIZE_MISMATCH,
                    expected=expected,
                    actual=matrix.shape,
                )
        for i, existing in enumerate(self._classes):
            if existing.same_data(matrix):
                raise LoadError(LoadErrorKind.DUPLICATE, duplicate_of=i)
        return self._classes + (matrix,)

    def add(self, matrix: AttributeMatrix) -> "ClassSet":
        """Return a new set with *matrix* appended.

        Raises
        ------
        LoadError
            ``SIZE_MISMATCH`` or ``DUPLICATE``.
        """
        new = ClassSet()
        new._classes = self._admit(matrix)
        logger.debug(f"Loaded class {matrix.name!r} as #{len(new) - 1}")
        return new

    def remove(self, index: int) -> "ClassSet":
        if not 0 <= index < len(self._classes):
            raise IndexError(
                f"Class index {index} out of range "
                f"(have {len(self._classes)})")
        new = ClassSet()
        new._classes = self._classes[:index] + self._classes[index + 1:]
        return new

    @property
    def shape(self) -> Optional[Tuple[int, int]]:
        """Common ``(attributes, realizations)`` or ``None`` when empty."""
        return self._classes[0].shape if self._classes else None

    def __len__(self) -> int:
        return len(self._classes)

    def __getitem__(self, index: int) -> AttributeMatrix:
        return self._classes[index]

    def __iter__(self) -> Iterator[AttributeMatrix]:
        return iter(self._classes)

    def __repr__(self) -> str:
        return f"ClassSet({len(self._classes)} classes, shape={self.shape})"
