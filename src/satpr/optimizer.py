"""Exhaustive search over the binarisation tolerance.

For every ``delta`` in ``delta.min .. delta.max`` (0..255 by default)
the whole pipeline is re-run and scored by

* the per-class best Shannon value, averaged over classes,
* the per-class best Kullback value, averaged over classes,
* whether every class's optimum lies in its working space.

The best delta maximises the chosen average among the deltas where all
classes are in their working space.  The criterion surface is neither
smooth nor unimodal, hence the full sweep rather than a local search.

Each point is independent, so ``max_workers > 1`` spreads the sweep over
a thread pool (numpy releases the GIL in the heavy loops).  A running
sweep can be abandoned through a :class:`threading.Event`;
:class:`DeltaSweeper` wires that into a last-request-wins front end.

Usage
-----
>>> result = optimize_delta(training_classes, "shannon", max_workers=4)
>>> result.best_delta
37
>>> print(result.summary())
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .matrices import AttributeMatrix
from .pipeline import run_pipeline
from .thresholds import DEFAULT_THRESHOLDS, ThresholdRegistry

logger = logging.getLogger(__name__)

__all__ = [
    "CRITERIA",
    "DeltaScore",
    "OptimizationResult",
    "SweepCancelled",
    "optimize_delta",
    "evaluate_delta",
    "DeltaSweeper",
]

CRITERIA = ("shannon", "kullback")


class SweepCancelled(RuntimeError):
    """A delta sweep was abandoned before it finished."""


@dataclass(frozen=True)
class DeltaScore:
    """Scores of one sweep point."""

    delta: int
    shannon: float
    kullback: float
    in_working_space: bool

    def value(self, criterion: str) -> float:
        return self.shannon if criterion == "shannon" else self.kullback


@dataclass(frozen=True)
class OptimizationResult:
    """Outcome of a sweep: the chosen delta and every point's scores."""

    best_delta: int
    criterion: str
    scores: Tuple[DeltaScore, ...]
    elapsed_s: float = 0.0

    @property
    def best_score(self) -> Optional[DeltaScore]:
        for s in self.scores:
            if s.delta == self.best_delta:
                return s
        return None

    @property
    def n_qualifying(self) -> int:
        return sum(1 for s in self.scores if s.in_working_space)

    def shannon_curve(self) -> List[float]:
        return [s.shannon for s in self.scores]

    def kullback_curve(self) -> List[float]:
        return [s.kullback for s in self.scores]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "best_delta": self.best_delta,
            "criterion": self.criterion,
            "scores": [
                {"delta": s.delta, "shannon": s.shannon,
                 "kullback": s.kullback,
                 "in_working_space": s.in_working_space}
                for s in self.scores
            ],
        }

    def summary(self) -> str:
        best = self.best_score
        tail = (f"shannon={best.shannon:.4f} kullback={best.kullback:.4f}"
                if best is not None else "no score")
        return (
            f"Delta sweep ({self.criterion}): best delta={self.best_delta} "
            f"({tail}); {self.n_qualifying}/{len(self.scores)} deltas "
            f"inside the working space; {self.elapsed_s:.2f}s"
        )


def evaluate_delta(
    classes: Sequence[AttributeMatrix],
    delta: int,
    base_class_index: int = 0,
    *,
    divisor: str = "realizations",
    thresholds: ThresholdRegistry = DEFAULT_THRESHOLDS,
) -> DeltaScore:
    """Run the pipeline at one delta and score it."""
    state = run_pipeline(classes, delta, base_class_index,
                         divisor=divisor, thresholds=thresholds)
    return DeltaScore(
        delta=int(delta),
        shannon=state.average_max_shannon(),
        kullback=state.average_max_kullback(),
        in_working_space=state.all_in_working_space(),
    )


def _select(scores: Sequence[DeltaScore], criterion: str) -> int:
    best: Optional[DeltaScore] = None
    for s in scores:
        if not s.in_working_space:
            continue
        # Strict '>' keeps the smallest delta on ties.
        if best is None or s.value(criterion) > best.value(criterion):
            best = s
    return best.delta if best is not None else 0


def optimize_delta(
    classes: Sequence[AttributeMatrix],
    criterion: str = "shannon",
    *,
    base_class_index: int = 0,
    deltas: Optional[Sequence[int]] = None,
    max_workers: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
    divisor: str = "realizations",
    thresholds: ThresholdRegistry = DEFAULT_THRESHOLDS,
) -> OptimizationResult:
    """Sweep delta and return the best value with all per-delta scores.

    Parameters
    ----------
    classes : sequence of AttributeMatrix
        At least two training classes of one shape.
    criterion : {"shannon", "kullback"}
        Average to maximise.
    base_class_index : int
        Corridor base class, fixed for the whole sweep.
    deltas : sequence of int, optional
        Explicit sweep points; defaults to ``delta.min .. delta.max``.
    max_workers : int, optional
        Thread-pool size; ``None`` or 1 sweeps serially.
    cancel : threading.Event, optional
        When set, the sweep stops and :class:`SweepCancelled` is raised.

    Returns
    -------
    OptimizationResult
    """
    if criterion not in CRITERIA:
        raise ValueError(
            f"criterion must be one of {CRITERIA}, got {criterion!r}")
    if len(classes) < 2:
        raise ValueError(
            f"Delta optimisation needs at least two classes, "
            f"got {len(classes)}")
    if deltas is None:
        deltas = range(int(thresholds["delta.min"]),
                       int(thresholds["delta.max"]) + 1)
    deltas = [int(d) for d in deltas]

    def _point(delta: int) -> DeltaScore:
        if cancel is not None and cancel.is_set():
            raise SweepCancelled(f"Sweep cancelled before delta={delta}")
        return evaluate_delta(classes, delta, base_class_index,
                              divisor=divisor, thresholds=thresholds)

    t0 = time.perf_counter()
    if max_workers is not None and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(_point, d) for d in deltas]
            try:
                scores = [f.result() for f in futures]
            except SweepCancelled:
                for f in futures:
                    f.cancel()
                raise
    else:
        scores = [_point(d) for d in deltas]
    elapsed = time.perf_counter() - t0

    best = _select(scores, criterion)
    if not any(s.in_working_space for s in scores):
        logger.warning(
            f"No delta keeps every class in its working space; "
            f"falling back to delta={best}")
    logger.info(
        f"Delta sweep over {len(deltas)} values ({criterion}): "
        f"best delta={best} in {elapsed:.2f}s")
    return OptimizationResult(
        best_delta=best,
        criterion=criterion,
        scores=tuple(scores),
        elapsed_s=elapsed,
    )


# ═══════════════════════════════════════════════════════════════════
# DeltaSweeper: last request wins
# ═══════════════════════════════════════════════════════════════════

class DeltaSweeper:
    """Runs sweeps so that a newer request supersedes an older one.

    ``run`` may be called from several threads (e.g. a UI thread kicking
    off a sweep per parameter change).  Starting a sweep sets the cancel
    event of the one still in flight, which then raises
    :class:`SweepCancelled` at its next sweep point.
    """

    def __init__(self, *, max_workers: Optional[int] = None):
        self.max_workers = max_workers
        self._lock = threading.Lock()
        self._current: Optional[threading.Event] = None

    def cancel(self) -> None:
        """Abandon the sweep in flight, if any."""
        with self._lock:
            if self._current is not None:
                self._current.set()

    def run(
        self,
        classes: Sequence[AttributeMatrix],
        criterion: str = "shannon",
        **kwargs,
    ) -> OptimizationResult:
        if "cancel" in kwargs:
            raise TypeError(
                "DeltaSweeper.run manages cancellation itself; "
                "use DeltaSweeper.cancel() instead of cancel=")
        event = threading.Event()
        with self._lock:
            if self._current is not None:
                logger.warning("Superseding a running delta sweep")
                self._current.set()
            self._current = event
        try:
            return optimize_delta(
                classes, criterion,
                max_workers=kwargs.pop("max_workers", self.max_workers),
                cancel=event,
                **kwargs,
            )
        finally:
            with self._lock:
                if self._current is event:
                    self._current = None
