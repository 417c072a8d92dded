"""SATPR: information-theoretic Hamming-radius classification.

Classes are grayscale measurement matrices (rows = realizations,
columns = attributes).  They are binarised against a tolerance corridor
around a base class, reduced to binary reference vectors, and each class
gets a containment radius in Hamming space chosen by maximising the
Kullback (or, failing that, Shannon) information criterion inside the
working space.  Unknown samples are assigned to the single class whose
decision ball contains them, or reported as unknown.

The tolerance itself can be tuned by an exhaustive sweep
(:func:`optimize_delta`).

>>> from satpr import ClassSet, load_class, run_pipeline, optimize_delta
>>> training = ClassSet().add(load_class(buf_a, 50, 50)).add(load_class(buf_b, 50, 50))
>>> best = optimize_delta(list(training)).best_delta
>>> state = run_pipeline(list(training), best)
>>> state.classify(state.binaries[0])[0]
Found(class_index=0, ...)
"""
from .thresholds import ThresholdRegistry, DEFAULT_THRESHOLDS
from .matrices import AttributeMatrix, ClassSet, LoadError, LoadErrorKind, load_class
from .corridor import Corridor, build_corridor
from .binary import (
    BinaryMatrix, ReferenceVector,
    binarize, binarize_all, build_reference_vector,
)
from .hamming import hamming, hamming_to_each, DistanceTable, build_distance_table
from .criteria import (
    Characteristics, Criteria, compute_criteria,
    kullback_criterion, shannon_criterion,
)
from .geometry import Projection, project, build_projection
from .exam import (
    ExamEvidence, ExamResult, Found, Unknown,
    exam, exam_matrix, ExamReport,
)
from .pipeline import ClassAnalysis, ClassificationState, run_pipeline
from .optimizer import (
    DeltaScore, OptimizationResult, SweepCancelled,
    optimize_delta, evaluate_delta, DeltaSweeper,
)

__version__ = "0.3.0"

__all__ = [
    # Configuration
    "ThresholdRegistry", "DEFAULT_THRESHOLDS",
    # Loading boundary
    "AttributeMatrix", "ClassSet", "LoadError", "LoadErrorKind", "load_class",
    # Corridor, binarisation, reference vectors
    "Corridor", "build_corridor",
    "BinaryMatrix", "ReferenceVector",
    "binarize", "binarize_all", "build_reference_vector",
    # Distances and projection
    "hamming", "hamming_to_each", "DistanceTable", "build_distance_table",
    "Projection", "project", "build_projection",
    # Criteria
    "Characteristics", "Criteria", "compute_criteria",
    "kullback_criterion", "shannon_criterion",
    # Exam
    "ExamEvidence", "ExamResult", "Found", "Unknown",
    "exam", "exam_matrix", "ExamReport",
    # Pipeline and optimiser
    "ClassAnalysis", "ClassificationState", "run_pipeline",
    "DeltaScore", "OptimizationResult", "SweepCancelled",
    "optimize_delta", "evaluate_delta", "DeltaSweeper",
]
