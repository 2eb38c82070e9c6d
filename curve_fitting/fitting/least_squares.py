"""Weighted least-squares Bézier fits with fixed endpoints.

Provides:
    - Per-sample weights for each ``WeightingPolicy``
    - ``solve_weighted``: dense least-squares solve that reports the rank
    - ``fit_fixed_endpoints``: interior control points of a degree-d curve
      whose first and last control points are pinned to the interval's
      endpoint samples, dropping one degree whenever the system is
      rank-deficient
    - ``quadratic_through``: closed-form quadratic through three samples

Unweighted least squares tends to round off corners near the interval ends;
the weights counter that by favouring samples near both ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from curve_fitting.configs.loader import WeightingPolicy
from curve_fitting.fitting.bezier import BezierCurve, basis_matrix

logger = logging.getLogger(__name__)

ENDPOINT_WEIGHT = 1e10


def sample_weights(count: int, policy: WeightingPolicy) -> np.ndarray:
    """Weights for ``count`` samples of one interval.

    Parameters
    ----------
    count : int
        Number of samples, ≥ 2
    policy : WeightingPolicy
        ``LINEAR``: ``|n - 2i|``; ``ENDPOINT``: ``1e10`` at both ends,
        ``(|n - 2i| + 1) / n`` elsewhere (``n = count - 1``)

    Returns
    -------
    np.ndarray
        Shape (count,)
    """
    if count < 2:
        raise ValueError(f"Need at least 2 samples to weight, got {count}")
    n = count - 1
    distance_from_centre = np.abs(n - 2.0 * np.arange(count))
    if policy is WeightingPolicy.LINEAR:
        return distance_from_centre
    if policy is WeightingPolicy.ENDPOINT:
        weights = (distance_from_centre + 1.0) / n
        weights[0] = ENDPOINT_WEIGHT
        weights[-1] = ENDPOINT_WEIGHT
        return weights
    raise ValueError(f"Unknown weighting policy: {policy!r}")


@dataclass(frozen=True)
class LeastSquaresSolution:
    """Result of :func:`solve_weighted`."""

    solution: np.ndarray
    rank: int
    columns: int

    @property
    def rank_deficient(self) -> bool:
        return self.rank < self.columns


def solve_weighted(design: np.ndarray, rhs: np.ndarray, weights: np.ndarray) -> LeastSquaresSolution:
    """Minimize ``|| W (design · X - rhs) ||²``.

    Parameters
    ----------
    design : np.ndarray
        Shape (N, K)
    rhs : np.ndarray
        Shape (N, 2)
    weights : np.ndarray
        Shape (N,), applied row-wise

    Returns
    -------
    LeastSquaresSolution
        Solution of shape (K, 2) plus the numerical rank of the weighted
        design matrix.
    """
    w = np.asarray(weights, dtype=np.float64)[:, None]
    solution, _, rank, _ = np.linalg.lstsq(w * design, w * rhs, rcond=None)
    return LeastSquaresSolution(solution=solution, rank=int(rank), columns=design.shape[1])


def fit_fixed_endpoints(
    points: np.ndarray,
    t: np.ndarray,
    degree: int,
    weights: np.ndarray,
) -> BezierCurve:
    """Least-squares Bézier with first/last control points pinned.

    Parameters
    ----------
    points : np.ndarray
        Interval samples, shape (N, 2)
    t : np.ndarray
        Their parameters, shape (N,)
    degree : int
        Requested degree, 1-3
    weights : np.ndarray
        Per-sample weights, shape (N,)

    Returns
    -------
    BezierCurve
        Degree ``degree`` or lower: a rank-deficient system falls back to
        the next lower degree, down to the straight line through both
        endpoints.
    """
    points = np.asarray(points, dtype=np.float64)
    first, last = points[0], points[-1]

    while degree > 1:
        basis = basis_matrix(t, degree)
        interior = basis[:, 1:degree]
        rhs = points - np.outer(basis[:, 0], first) - np.outer(basis[:, degree], last)
        result = solve_weighted(interior, rhs, weights)
        if not result.rank_deficient:
            return BezierCurve(np.vstack([first, result.solution, last]))
        logger.debug(
            "Rank-deficient degree-%d system (rank %d < %d); lowering degree",
            degree,
            result.rank,
            result.columns,
        )
        degree -= 1

    return BezierCurve(np.vstack([first, last]))


def quadratic_through(points: np.ndarray, t_mid: float) -> BezierCurve:
    """Quadratic through three samples, the middle one at ``t_mid``.

    Solves ``D1 = (1-t)²·P0 + 2t(1-t)·P1 + t²·P2`` for ``P1``.  When
    ``t_mid`` is 0 or 1 (coincident samples) there is no solution and the
    line through the two endpoints is returned.
    """
    points = np.asarray(points, dtype=np.float64)
    p0, d1, p2 = points
    u = 1.0 - t_mid
    denom = 2.0 * t_mid * u
    if denom <= 0.0:
        logger.debug("Degenerate quadratic (t=%.3f); using a line", t_mid)
        return BezierCurve(np.vstack([p0, p2]))
    p1 = (d1 - u * u * p0 - t_mid * t_mid * p2) / denom
    return BezierCurve(np.vstack([p0, p1, p2]))
