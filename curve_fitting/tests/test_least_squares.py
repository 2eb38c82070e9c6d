"""Tests for weighted least-squares fitting with pinned endpoints."""

from __future__ import annotations

import numpy as np
import pytest

from curve_fitting.configs.loader import WeightingPolicy
from curve_fitting.fitting.bezier import BezierCurve
from curve_fitting.fitting.least_squares import (
    ENDPOINT_WEIGHT,
    fit_fixed_endpoints,
    quadratic_through,
    sample_weights,
    solve_weighted,
)


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------


class TestSampleWeights:
    def test_linear(self) -> None:
        np.testing.assert_allclose(
            sample_weights(5, WeightingPolicy.LINEAR), [4.0, 2.0, 0.0, 2.0, 4.0]
        )

    def test_linear_even_count(self) -> None:
        np.testing.assert_allclose(
            sample_weights(4, WeightingPolicy.LINEAR), [3.0, 1.0, 1.0, 3.0]
        )

    def test_endpoint(self) -> None:
        weights = sample_weights(5, WeightingPolicy.ENDPOINT)
        assert weights[0] == ENDPOINT_WEIGHT
        assert weights[-1] == ENDPOINT_WEIGHT
        np.testing.assert_allclose(weights[1:-1], [0.75, 0.25, 0.75])

    def test_symmetric(self) -> None:
        for policy in WeightingPolicy:
            weights = sample_weights(8, policy)
            np.testing.assert_allclose(weights, weights[::-1])

    def test_too_few_samples(self) -> None:
        with pytest.raises(ValueError, match="at least 2"):
            sample_weights(1, WeightingPolicy.LINEAR)


# ---------------------------------------------------------------------------
# Solver
# ---------------------------------------------------------------------------


class TestSolveWeighted:
    def test_full_rank(self) -> None:
        design = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])
        rhs = np.array([[1.0, 2.0], [3.0, 4.0], [4.0, 6.0]])
        result = solve_weighted(design, rhs, np.ones(3))
        assert not result.rank_deficient
        np.testing.assert_allclose(result.solution, [[1.0, 2.0], [3.0, 4.0]])

    def test_reports_rank(self) -> None:
        design = np.array([[1.0, 2.0], [2.0, 4.0], [3.0, 6.0]])
        result = solve_weighted(design, np.ones((3, 2)), np.ones(3))
        assert result.rank == 1
        assert result.columns == 2
        assert result.rank_deficient


class TestFitFixedEndpoints:
    @pytest.mark.parametrize("policy", list(WeightingPolicy))
    def test_recovers_exact_cubic(self, policy: WeightingPolicy) -> None:
        truth = BezierCurve([(0.0, 0.0), (2.0, 6.0), (7.0, -3.0), (10.0, 4.0)])
        t = np.linspace(0.0, 1.0, 12)
        points = truth.position(t)
        curve = fit_fixed_endpoints(points, t, 3, sample_weights(len(t), policy))
        assert curve.degree == 3
        np.testing.assert_allclose(curve.control_points, truth.control_points, atol=1e-6)

    def test_endpoints_are_pinned(self) -> None:
        rng = np.random.default_rng(3)
        points = np.cumsum(rng.normal(size=(10, 2)), axis=0)
        t = np.linspace(0.0, 1.0, 10)
        curve = fit_fixed_endpoints(points, t, 3, sample_weights(10, WeightingPolicy.LINEAR))
        assert tuple(curve.control_points[0]) == tuple(points[0])
        assert tuple(curve.control_points[-1]) == tuple(points[-1])

    def test_rank_deficient_falls_back_to_line(self) -> None:
        # Every sample sits at t = 0 or t = 1, so interior columns vanish.
        points = np.array([[0.0, 0.0], [0.0, 0.0], [1.0, 1.0], [1.0, 1.0]])
        t = np.array([0.0, 0.0, 1.0, 1.0])
        curve = fit_fixed_endpoints(points, t, 3, sample_weights(4, WeightingPolicy.LINEAR))
        assert curve.degree == 1
        np.testing.assert_allclose(curve.control_points, [[0.0, 0.0], [1.0, 1.0]])

    def test_rank_deficient_cubic_falls_back_to_quadratic(self) -> None:
        # A single interior parameter only determines one interior control point.
        points = np.array([[0.0, 0.0], [5.0, 5.0], [5.0, 5.0], [10.0, 0.0]])
        t = np.array([0.0, 0.5, 0.5, 1.0])
        curve = fit_fixed_endpoints(points, t, 3, np.ones(4))
        assert curve.degree == 2
        np.testing.assert_allclose(curve.position(0.5), [5.0, 5.0], atol=1e-9)


# ---------------------------------------------------------------------------
# Quadratic closed form
# ---------------------------------------------------------------------------


class TestQuadraticThrough:
    def test_passes_through_middle_sample(self) -> None:
        points = np.array([[0.0, 0.0], [5.0, 5.0], [10.0, 0.0]])
        curve = quadratic_through(points, 0.5)
        assert curve.degree == 2
        np.testing.assert_allclose(curve.control_points[1], [5.0, 10.0])
        np.testing.assert_allclose(curve.position(0.5), [5.0, 5.0])

    def test_asymmetric_parameter(self) -> None:
        points = np.array([[0.0, 0.0], [1.0, 3.0], [8.0, 2.0]])
        curve = quadratic_through(points, 0.3)
        np.testing.assert_allclose(curve.position(0.3), [1.0, 3.0], atol=1e-12)
        np.testing.assert_allclose(curve.position(1.0), [8.0, 2.0])

    @pytest.mark.parametrize("t_mid", [0.0, 1.0])
    def test_degenerate_parameter_gives_line(self, t_mid: float) -> None:
        points = np.array([[0.0, 0.0], [0.0, 0.0], [4.0, 4.0]])
        curve = quadratic_through(points, t_mid)
        assert curve.degree == 1
        np.testing.assert_allclose(curve.control_points, [[0.0, 0.0], [4.0, 4.0]])
