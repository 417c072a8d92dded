"""Tolerance corridor around a base class's per-attribute mean.

The corridor is the only place raw byte values are interpreted: every
class (training and exam) is binarised against the *same* corridor, so
a realization's attribute is "on" when it falls inside the base class's
typical band.

The mean is an unsigned integer mean with truncating division.  One
historical build divided the column sum by the attribute count instead
of the realization count; ``divisor="attributes"`` reproduces it for
bit-level comparisons, ``"realizations"`` (the default) is the true mean.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .matrices import AttributeMatrix

__all__ = [
    "Corridor",
    "build_corridor",
    "DIVISORS",
]

DIVISORS = ("realizations", "attributes")


def _check_delta(delta: int) -> int:
    if not 0 <= int(delta) <= 255:
        raise ValueError(f"delta must lie in 0..255, got {delta}")
    return int(delta)


@dataclass(frozen=True, eq=False)
class Corridor:
    """Per-attribute expectation with a saturating ``± delta`` band.

    Attributes
    ----------
    expectation : np.ndarray
        Float array of length A (integral values).
    lower, upper : np.ndarray
        ``uint8`` arrays, ``expectation ∓ delta`` clamped to 0..255.
    delta : int
    """

    expectation: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    delta: int

    @classmethod
    def from_expectation(cls, expectation, delta: int) -> "Corridor":
        delta = _check_delta(delta)
        exp = np.asarray(expectation, dtype=np.float64).copy()
        lower = np.clip(exp - delta, 0, 255).astype(np.uint8)
        upper = np.clip(exp + delta, 0, 255).astype(np.uint8)
        for arr in (exp, lower, upper):
            arr.setflags(write=False)
        return cls(expectation=exp, lower=lower, upper=upper, delta=delta)

    def with_delta(self, delta: int) -> "Corridor":
        """Same expectation, new tolerance."""
        return Corridor.from_expectation(self.expectation, delta)

    @property
    def n_attributes(self) -> int:
        return int(self.expectation.shape[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Corridor):
            return NotImplemented
        return (self.delta == other.delta
                and np.array_equal(self.expectation, other.expectation)
                and np.array_equal(self.lower, other.lower)
                and np.array_equal(self.upper, other.upper))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Corridor(delta={self.delta}, attributes={self.n_attributes})"


def build_corridor(
    base_class: AttributeMatrix,
    delta: int,
    *,
    divisor: str = "realizations",
) -> Corridor:
    """Build the corridor of *base_class* with tolerance *delta*.

    Parameters
    ----------
    base_class : AttributeMatrix
        The designated base class.
    delta : int
        Half-width of the band, 0..255.
    divisor : {"realizations", "attributes"}
        Denominator of the column mean (see module docstring).

    Returns
    -------
    Corridor
    """
    if divisor not in DIVISORS:
        raise ValueError(f"divisor must be one of {DIVISORS}, got {divisor!r}")
    sums = base_class.data.sum(axis=0, dtype=np.uint64)
    denom = (base_class.n_realizations if divisor == "realizations"
             else base_class.n_attributes)
    if denom == 0:
        expectation = np.zeros(base_class.n_attributes)
    else:
        # The legacy divisor can overshoot a byte; that build stored the
        # quotient in a u8 with a wrapping cast.
        expectation = ((sums // denom) % 256).astype(np.float64)
    return Corridor.from_expectation(expectation, delta)
