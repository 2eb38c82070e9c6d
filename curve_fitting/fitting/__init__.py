"""Adaptive Bézier fitting: straight-through and steppable engines."""

from curve_fitting.fitting.bezier import BezierCurve
from curve_fitting.fitting.engine import (
    Checkpoint,
    EngineStateError,
    FittingError,
    InvalidSamplesError,
    PathFinder,
    Stage,
    fit_path,
)
from curve_fitting.fitting.path import FittedPath, Segment
from curve_fitting.fitting.pausable import PausablePathFinder

__all__ = [
    "BezierCurve",
    "Checkpoint",
    "EngineStateError",
    "FittedPath",
    "FittingError",
    "InvalidSamplesError",
    "PathFinder",
    "PausablePathFinder",
    "Segment",
    "Stage",
    "fit_path",
]
