"""Deterministic synthetic classes for tests, demos and sweeps.

A synthetic class is drawn around per-attribute means with uniform
integer noise of half-width ``spread``, clipped to the byte range.  The
generator is seeded, so the same arguments always give the same bytes.

>>> from satpr.synthetic import make_class, make_dataset
>>> a = make_class([10, 10, 10, 10], n_realizations=8)
>>> classes = make_dataset([[40] * 6, [120] * 6, [200] * 6],
...                        n_realizations=12, spread=30, seed=7)
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .matrices import AttributeMatrix

__all__ = [
    "make_class",
    "make_dataset",
]


def make_class(
    means: Sequence[int],
    n_realizations: int,
    spread: int = 0,
    seed: int = 0,
    name: str = "",
) -> AttributeMatrix:
    """One class of ``n_realizations`` rows around *means*.

    Parameters
    ----------
    means : sequence of int
        Per-attribute centre values.
    n_realizations : int
    spread : int
        Noise half-width; 0 gives identical realizations.
    seed : int
    name : str
    """
    rng = np.random.default_rng(seed)
    centre = np.asarray(means, dtype=np.int64)
    noise = rng.integers(-spread, spread + 1,
                         size=(n_realizations, centre.size))
    data = np.clip(centre[np.newaxis, :] + noise, 0, 255).astype(np.uint8)
    return AttributeMatrix(data, name=name or f"synthetic-{seed}")


def make_dataset(
    class_means: Sequence[Sequence[int]],
    n_realizations: int,
    spread: int = 0,
    seed: int = 0,
) -> List[AttributeMatrix]:
    """Several classes with consecutive seeds ``seed, seed + 1, …``."""
    return [
        make_class(means, n_realizations, spread=spread, seed=seed + k,
                   name=f"class-{k}")
        for k, means in enumerate(class_means)
    ]
