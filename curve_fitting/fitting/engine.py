"""Adaptive Bézier fitting engine.

Fits an ordered sequence of 2D samples with a path of line, quadratic and
cubic Bézier segments whose samples all lie within ``config.tolerance`` of
the curve.

Per interval ``[start, end]`` (``count`` samples):

    count == 2   line through both samples
    count == 3   quadratic through all three (closed form)
    count >= 4   cubic by weighted least squares with pinned endpoints,
                 alternated with Newton reparametrization until the residual
                 stops improving; if the farthest sample is still out of
                 tolerance the interval is split there and both halves are
                 fitted, left half first

The algorithm is written as a generator: it yields an immutable
``Checkpoint`` at each named stage.  ``PausablePathFinder`` pauses on every
yield; ``PathFinder.get_path()`` runs the same generator with intermediate
checkpoints switched off.  Pending intervals live on an explicit work stack,
so a long chain of splits does not nest Python frames, and each interval
keeps its parameters and curve in its own short-lived generator frame, so
there is no shared "current interval" state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Generator, Iterator

import numpy as np

from curve_fitting.configs.loader import FittingConfig
from curve_fitting.fitting.bezier import BezierCurve
from curve_fitting.fitting.least_squares import (
    fit_fixed_endpoints,
    quadratic_through,
    sample_weights,
)
from curve_fitting.fitting.parametrize import (
    chord_length_parametrization,
    remap_parametrization,
)
from curve_fitting.fitting.path import FittedPath, PathBuilder, Point, Segment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FittingError(Exception):
    """Base exception for the fitting engines."""

    pass


class InvalidSamplesError(FittingError, ValueError):
    """Sample points or interval bounds rejected at construction / call."""

    pass


class EngineStateError(FittingError, RuntimeError):
    """State read before it exists (no checkpoint yet, path not finished)."""

    pass


# ---------------------------------------------------------------------------
# Checkpoints
# ---------------------------------------------------------------------------


class Stage(Enum):
    """Named checkpoints, in the order one interval visits them."""

    AFTER_PARAMETRIZATION = "after-parametrization"
    AFTER_LEAST_SQUARES = "after-least-squares"
    AFTER_REPARAMETRIZATION = "after-reparametrization"
    SPLIT_DETERMINATION = "split-determination"
    END = "end"


@dataclass(frozen=True)
class Checkpoint:
    """Snapshot of the algorithm at one checkpoint.

    Attributes
    ----------
    stage : Stage
        Which checkpoint this is.
    start, end : int
        Active sample interval (the whole fitted range for ``END``).
    parameter_array : np.ndarray | None
        Read-only parameter per interval sample (``None`` for ``END``).
    sample_array : np.ndarray | None
        Read-only view of the interval's samples (``None`` for ``END``).
    control_points : tuple[Point, ...] | None
        Current curve; ``None`` before the first solve.
    residual : float | None
        Sum of squared sample-to-curve distances over the interval.
    farthest_index : int | None
        Absolute index of the farthest sample (split determination only).
    farthest_distance : float | None
        Its distance to the curve.
    path : FittedPath | None
        Segments committed so far (the finished path for ``END``).

    Notes
    -----
    The arrays are shared with the engine, not copied, and are excluded from
    ``==``; ``parameters`` and ``samples`` convert them to tuples on access.
    """

    stage: Stage
    start: int
    end: int
    parameter_array: np.ndarray | None = field(default=None, repr=False, compare=False)
    sample_array: np.ndarray | None = field(default=None, repr=False, compare=False)
    control_points: tuple[Point, ...] | None = None
    residual: float | None = None
    farthest_index: int | None = None
    farthest_distance: float | None = None
    path: FittedPath | None = None

    @property
    def parameters(self) -> tuple[float, ...]:
        """Parameter per interval sample (empty for ``END``)."""
        if self.parameter_array is None:
            return ()
        return tuple(self.parameter_array.tolist())

    @property
    def samples(self) -> tuple[Point, ...]:
        """The interval's sample points (empty for ``END``)."""
        if self.sample_array is None:
            return ()
        return _as_points(self.sample_array)

    @property
    def degree(self) -> int | None:
        if self.control_points is None:
            return None
        return len(self.control_points) - 1

    @property
    def message(self) -> str:
        """Short status line for renderers."""
        if self.stage is Stage.AFTER_PARAMETRIZATION:
            return "Initial"
        if self.stage is Stage.SPLIT_DETERMINATION:
            return f"Greatest distance = {self.farthest_distance:.2f}"
        if self.stage is Stage.END:
            return "Done"
        return f"Residual = {self.residual:.2f}"


# ---------------------------------------------------------------------------
# Algorithm steps
# ---------------------------------------------------------------------------


def validate_samples(sample_points) -> np.ndarray:
    """Return a read-only (N, 2) float64 copy of the samples.

    Raises
    ------
    InvalidSamplesError
        Wrong shape, fewer than 2 points, or non-finite coordinates.
    """
    try:
        samples = np.array(sample_points, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidSamplesError(f"Sample points are not numeric 2D points: {exc}") from exc
    if samples.ndim != 2 or samples.shape[1] != 2:
        raise InvalidSamplesError(
            f"Sample points must have shape (N, 2), got {samples.shape}"
        )
    if samples.shape[0] < 2:
        raise InvalidSamplesError(
            f"Sample points must contain at least 2 points, got {samples.shape[0]}"
        )
    if not np.all(np.isfinite(samples)):
        bad = int(np.flatnonzero(~np.isfinite(samples).all(axis=1))[0])
        raise InvalidSamplesError(f"Sample point {bad} has non-finite coordinates")
    samples.setflags(write=False)
    return samples


def reparametrize(curve: BezierCurve, points: np.ndarray, t: np.ndarray) -> tuple[np.ndarray, float]:
    """One Newton step per interior sample towards its foot of perpendicular.

    Parameters
    ----------
    curve : BezierCurve
        Current fit.
    points : np.ndarray
        Interval samples, shape (N, 2).
    t : np.ndarray
        Current parameters, shape (N,); not modified.

    Returns
    -------
    tuple[np.ndarray, float]
        New parameters and the residual (sum of squared distances of the
        interior samples under them).

    Notes
    -----
    ``t_hat = t + ((D - B(t)) · B'(t)) / |B'(t)|²``, clamped between the
    sample's current neighbours, is kept only when it strictly reduces the
    sample's squared distance, so no sample moves away from the curve.  Two
    adjacent steps can still cross each other; the right one is then undone,
    which keeps the parameters non-decreasing.  A zero velocity skips the
    step.
    """
    t = np.asarray(t, dtype=np.float64)
    new_t = t.copy()
    if len(t) < 3:
        return new_t, 0.0

    inner_t = t[1:-1]
    inner_points = points[1:-1]
    dist_before = curve.distances_sq(inner_points, inner_t)

    offset = inner_points - curve.position(inner_t)
    velocity = curve.velocity(inner_t)
    speed_sq = np.einsum('ij,ij->i', velocity, velocity)
    moving = speed_sq > 0.0
    step = np.zeros_like(inner_t)
    step[moving] = np.einsum('ij,ij->i', offset, velocity)[moving] / speed_sq[moving]
    t_hat = np.clip(inner_t + step, t[:-2], t[2:])

    dist_after = curve.distances_sq(inner_points, t_hat)
    accept = moving & (dist_after < dist_before)
    candidate = np.where(accept, t_hat, inner_t)
    crossed = np.flatnonzero(candidate[1:] < candidate[:-1]) + 1
    accept[crossed] = False

    new_t[1:-1] = np.where(accept, t_hat, inner_t)
    residual = float(np.where(accept, dist_after, dist_before).sum())
    return new_t, residual


def farthest_sample(curve: BezierCurve, points: np.ndarray, t: np.ndarray) -> tuple[int, float]:
    """Interior sample with the largest squared distance to the curve.

    Returns
    -------
    tuple[int, float]
        Interval-relative index and squared distance.  Ties keep the first
        sample; when every interior distance is 0 the index is 0.
    """
    dist_sq = curve.distances_sq(points, t)[1:-1]
    if dist_sq.size == 0:
        return 0, 0.0
    idx = int(np.argmax(dist_sq))
    max_dist_sq = float(dist_sq[idx])
    if max_dist_sq <= 0.0:
        return 0, 0.0
    return idx + 1, max_dist_sq


def _as_points(array: np.ndarray) -> tuple[Point, ...]:
    return tuple((float(x), float(y)) for x, y in array)


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class PathFinder:
    """Fit sample points with a piecewise Bézier path.

    Parameters
    ----------
    sample_points : array-like
        Ordered (x, y) samples, at least 2, all finite.  Copied on
        construction.
    config : FittingConfig | None
        Algorithm settings; defaults to ``FittingConfig()``.

    Raises
    ------
    InvalidSamplesError
        If the samples are rejected.

    Examples
    --------
    >>> path = PathFinder([(0, 0), (5, 5), (10, 0)]).get_path()
    >>> path.degrees
    (2,)
    """

    def __init__(self, sample_points, config: FittingConfig | None = None) -> None:
        self._samples = validate_samples(sample_points)
        self._config = config if config is not None else FittingConfig()

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    @property
    def config(self) -> FittingConfig:
        return self._config

    def _check_interval(self, start: int, end: int | None) -> tuple[int, int]:
        last = len(self._samples) - 1
        if end is None:
            end = last
        if not 0 <= start < end <= last:
            raise InvalidSamplesError(
                f"Interval [{start}, {end}] must satisfy 0 <= start < end <= {last}"
            )
        return start, end

    def get_path(self, start: int = 0, end: int | None = None) -> FittedPath:
        """Fit samples ``start..end`` (default: all) straight through.

        Only the ``END`` checkpoint is built; the path is the same one
        ``iter_checkpoints()`` finishes with.
        """
        start, end = self._check_interval(start, end)
        checkpoint = None
        for checkpoint in self._run(start, end, detailed=False):
            pass
        return checkpoint.path

    def iter_checkpoints(self, start: int = 0, end: int | None = None) -> Iterator[Checkpoint]:
        """Run the fit, yielding a ``Checkpoint`` at every stage.

        The final checkpoint has stage ``END`` and carries the finished path.
        Interval bounds are checked immediately, before the first ``next()``.

        Raises
        ------
        InvalidSamplesError
            If the interval is empty or out of range.
        """
        start, end = self._check_interval(start, end)
        return self._run(start, end, detailed=True)

    def _run(self, start: int, end: int, detailed: bool) -> Iterator[Checkpoint]:
        base = np.zeros(len(self._samples))
        base[start:end + 1] = chord_length_parametrization(self._samples[start:end + 1])
        builder = PathBuilder(self._samples[start])

        # Left halves are pushed last so they are fitted first.
        pending = [(start, end)]
        while pending:
            lo, hi = pending.pop()
            split_idx = yield from self._fit_interval(lo, hi, base, builder, detailed)
            if split_idx is not None:
                pending.append((split_idx, hi))
                pending.append((lo, split_idx))

        path = builder.snapshot()
        logger.info(
            "Fitted samples [%d, %d] with %d segment(s), degrees %s",
            start,
            end,
            len(path),
            path.degrees,
        )
        yield Checkpoint(stage=Stage.END, start=start, end=end, path=path)

    def _fit_interval(
        self,
        start: int,
        end: int,
        base: np.ndarray,
        builder: PathBuilder,
        detailed: bool,
    ) -> Generator[Checkpoint, None, int | None]:
        """Fit one interval; return the split index, or ``None`` once committed."""
        cfg = self._config
        points = self._samples[start:end + 1]
        t = _read_only(remap_parametrization(base, start, end))
        count = end - start + 1

        def snapshot(stage: Stage, curve: BezierCurve | None = None, **extra) -> Checkpoint:
            if curve is not None:
                extra["control_points"] = _as_points(curve.control_points)
                extra["residual"] = float(curve.distances_sq(points, t).sum())
            return Checkpoint(
                stage=stage,
                start=start,
                end=end,
                parameter_array=t,
                sample_array=points,
                path=builder.snapshot(),
                **extra,
            )

        if detailed:
            yield snapshot(Stage.AFTER_PARAMETRIZATION)

        if count == 2:
            builder.append(Segment.from_curve(BezierCurve(points), start, end))
            logger.debug("Committed line [%d, %d]", start, end)
            return None

        if count == 3:
            curve = quadratic_through(points, float(t[1]))
            builder.append(Segment.from_curve(curve, start, end))
            logger.debug("Committed degree-%d segment [%d, %d]", curve.degree, start, end)
            return None

        weights = sample_weights(count, cfg.weighting)
        residual = math.inf
        while True:
            curve = fit_fixed_endpoints(points, t, 3, weights)
            if detailed:
                yield snapshot(Stage.AFTER_LEAST_SQUARES, curve)

            previous = residual
            new_t, residual = reparametrize(curve, points, t)
            t = _read_only(new_t)
            if not (residual < cfg.improvement_ratio * previous and residual > cfg.residual_floor):
                break
            if detailed:
                yield snapshot(Stage.AFTER_REPARAMETRIZATION, curve)

        idx, max_dist_sq = farthest_sample(curve, points, t)
        split_idx = start + idx
        if detailed:
            yield snapshot(
                Stage.SPLIT_DETERMINATION,
                curve,
                farthest_index=split_idx,
                farthest_distance=math.sqrt(max_dist_sq),
            )

        if max_dist_sq > cfg.tolerance_sq:
            logger.debug(
                "Splitting [%d, %d] at %d (distance %.3f)",
                start,
                end,
                split_idx,
                math.sqrt(max_dist_sq),
            )
            return split_idx

        builder.append(Segment.from_curve(curve, start, end))
        logger.debug("Committed degree-%d segment [%d, %d]", curve.degree, start, end)
        return None


def fit_path(sample_points, config: FittingConfig | None = None) -> FittedPath:
    """Fit all samples straight through; see :class:`PathFinder`."""
    return PathFinder(sample_points, config).get_path()
