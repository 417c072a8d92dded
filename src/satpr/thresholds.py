"""ThresholdRegistry: the classifier's tunable numbers.

The decision procedure has only a handful of knobs, but they are read
from several places (criteria engine, optimiser, pipeline).  Keeping
them in one immutable registry means a sweep or an experiment can
derive a variant without touching module globals:

>>> from satpr.thresholds import DEFAULT_THRESHOLDS
>>> DEFAULT_THRESHOLDS["working_space.d1_min"]
0.5
>>> strict = DEFAULT_THRESHOLDS.replace({"working_space.d1_min": 0.75})
>>> strict.diff(DEFAULT_THRESHOLDS)
{'working_space.d1_min': (0.75, 0.5)}

Keys
----
``working_space.*``
    Bounds on the true-positive (``d1``) and true-negative (``d2``)
    containment rates a radius must satisfy to be a candidate.
``delta.*``
    Inclusive range of binarisation tolerances swept by the optimiser.
"""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Tuple

__all__ = [
    "ThresholdRegistry",
    "DEFAULT_THRESHOLDS",
]

_BOUNDED_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("working_space.d1_min", "working_space.d1_max"),
    ("working_space.d2_min", "working_space.d2_max"),
    ("delta.min", "delta.max"),
)


# ═══════════════════════════════════════════════════════════════════
# ThresholdRegistry
# ═══════════════════════════════════════════════════════════════════

class ThresholdRegistry:
    """Read-only mapping of ``"section.name"`` keys to numbers.

    Parameters
    ----------
    data : mapping of str to float
        The threshold values.  Copied on construction.
    name : str
        Label used in ``repr`` and log messages.

    Raises
    ------
    ValueError
        If a ``*_min``/``*_max`` pair is inverted or the delta range
        leaves the byte range.
    """

    def __init__(self, data: Mapping[str, float], *, name: str = "custom"):
        self._data: Dict[str, float] = dict(data)
        self._name = name
        _validate(self._data)

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, key: str) -> float:
        return self._data[key]

    def __setitem__(self, key: str, value: float):
        raise TypeError(
            f"ThresholdRegistry {self._name!r} is immutable; "
            f"derive a new one with .replace()")

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThresholdRegistry):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"ThresholdRegistry({self._name!r}, {len(self._data)} keys)"

    def get(self, key: str, default: float = 0.0) -> float:
        return self._data.get(key, default)

    def items(self):
        return self._data.items()

    def to_dict(self) -> Dict[str, float]:
        """Mutable copy of the underlying values."""
        return dict(self._data)

    def replace(
        self,
        overrides: Mapping[str, float],
        *,
        name: Optional[str] = None,
    ) -> "ThresholdRegistry":
        """Return a copy with *overrides* applied.

        Only existing keys may be overridden (``KeyError`` otherwise),
        so a typo cannot silently introduce a dead setting.
        """
        unknown = sorted(k for k in overrides if k not in self._data)
        if unknown:
            raise KeyError(
                f"Unknown threshold key(s) {unknown}; "
                f"known keys: {sorted(self._data)}")
        merged = {**self._data, **overrides}
        return ThresholdRegistry(merged, name=name or f"{self._name}+")

    def diff(
        self, other: "ThresholdRegistry",
    ) -> Dict[str, Tuple[Optional[float], Optional[float]]]:
        """``{key: (mine, theirs)}`` for every key whose value differs."""
        keys = sorted(set(self._data) | set(other._data))
        return {
            k: (self._data.get(k), other._data.get(k))
            for k in keys
            if self._data.get(k) != other._data.get(k)
        }

    def section(self, prefix: str) -> Dict[str, float]:
        """All entries under ``prefix.``."""
        head = prefix + "."
        return {k: v for k, v in self._data.items() if k.startswith(head)}

    @property
    def sections(self) -> Tuple[str, ...]:
        return tuple(sorted({k.split(".", 1)[0] for k in self._data
                             if "." in k}))


def _validate(data: Mapping[str, float]) -> None:
    for low_key, high_key in _BOUNDED_PAIRS:
        if low_key in data and high_key in data:
            if data[low_key] > data[high_key]:
                raise ValueError(
                    f"{low_key}={data[low_key]} exceeds "
                    f"{high_key}={data[high_key]}")
    for key in ("delta.min", "delta.max"):
        if key in data and not 0 <= data[key] <= 255:
            raise ValueError(f"{key}={data[key]} is outside 0..255")


# ═══════════════════════════════════════════════════════════════════
# DEFAULT_THRESHOLDS
# ═══════════════════════════════════════════════════════════════════

_DEFAULT_DATA: Dict[str, float] = {
    # A radius is usable only when both containment rates beat a coin flip.
    "working_space.d1_min": 0.5,
    "working_space.d1_max": 1.0,
    "working_space.d2_min": 0.5,
    "working_space.d2_max": 1.0,

    # Full u8 tolerance range, both ends inclusive.
    "delta.min": 0,
    "delta.max": 255,
}


DEFAULT_THRESHOLDS: ThresholdRegistry = ThresholdRegistry(
    _DEFAULT_DATA, name="default",
)
"""Registry used when no ``thresholds=`` argument is passed."""
