"""Tests for Bézier evaluation and sample parametrization.

Validates:
    - Power-basis evaluation matches the Bernstein form
    - Velocity matches a central finite difference
    - Basis rows sum to 1 (partition of unity)
    - Chord-length parametrization: exact endpoints, monotone, degenerate input
    - Sub-interval remapping
"""

from __future__ import annotations

from math import comb

import numpy as np
import pytest

from curve_fitting.fitting.bezier import BezierCurve, basis_matrix, evaluate_polynomial
from curve_fitting.fitting.parametrize import (
    chord_length_parametrization,
    remap_parametrization,
)


def bernstein(control_points, t: float) -> np.ndarray:
    cp = np.asarray(control_points, dtype=np.float64)
    d = len(cp) - 1
    return sum(comb(d, k) * (1 - t) ** (d - k) * t**k * cp[k] for k in range(d + 1))


CONTROL_POINTS = {
    1: [(0.0, 0.0), (4.0, 2.0)],
    2: [(0.0, 0.0), (5.0, 10.0), (10.0, 0.0)],
    3: [(1.0, 2.0), (3.0, 8.0), (9.0, -4.0), (12.0, 5.0)],
}


# ---------------------------------------------------------------------------
# BezierCurve
# ---------------------------------------------------------------------------


class TestBezierCurve:
    @pytest.mark.parametrize("degree", [1, 2, 3])
    def test_position_matches_bernstein(self, degree: int) -> None:
        curve = BezierCurve(CONTROL_POINTS[degree])
        assert curve.degree == degree
        for t in np.linspace(0.0, 1.0, 11):
            np.testing.assert_allclose(
                curve.position(t), bernstein(CONTROL_POINTS[degree], t), atol=1e-12
            )

    @pytest.mark.parametrize("degree", [1, 2, 3])
    def test_endpoints_are_control_endpoints(self, degree: int) -> None:
        cp = CONTROL_POINTS[degree]
        curve = BezierCurve(cp)
        np.testing.assert_allclose(curve.position(0.0), cp[0])
        np.testing.assert_allclose(curve.position(1.0), cp[-1])

    @pytest.mark.parametrize("degree", [1, 2, 3])
    def test_velocity_matches_finite_difference(self, degree: int) -> None:
        curve = BezierCurve(CONTROL_POINTS[degree])
        h = 1e-6
        for t in (0.1, 0.35, 0.5, 0.9):
            numeric = (curve.position(t + h) - curve.position(t - h)) / (2 * h)
            np.testing.assert_allclose(curve.velocity(t), numeric, rtol=1e-5, atol=1e-5)

    def test_vector_evaluation_shape(self) -> None:
        curve = BezierCurve(CONTROL_POINTS[3])
        assert curve.position(0.5).shape == (2,)
        assert curve.position(np.linspace(0, 1, 7)).shape == (7, 2)

    def test_distances_sq(self) -> None:
        curve = BezierCurve([(0.0, 0.0), (10.0, 0.0)])
        points = np.array([[0.0, 3.0], [5.0, -4.0]])
        np.testing.assert_allclose(curve.distances_sq(points, np.array([0.0, 0.5])), [9.0, 16.0])

    def test_control_points_read_only(self) -> None:
        curve = BezierCurve(CONTROL_POINTS[2])
        with pytest.raises(ValueError):
            curve.control_points[0, 0] = 1.0

    @pytest.mark.parametrize(
        "bad",
        [
            [(0.0, 0.0)],
            [(0.0, 0.0)] * 5,
            [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0)],
        ],
    )
    def test_rejects_bad_shape(self, bad) -> None:
        with pytest.raises(ValueError, match="Control points"):
            BezierCurve(bad)


class TestBasis:
    @pytest.mark.parametrize("degree", [1, 2, 3])
    def test_partition_of_unity(self, degree: int) -> None:
        basis = basis_matrix(np.linspace(0.0, 1.0, 9), degree)
        assert basis.shape == (9, degree + 1)
        np.testing.assert_allclose(basis.sum(axis=1), 1.0)

    def test_cubic_basis_values(self) -> None:
        basis = basis_matrix(np.array([0.0, 0.5, 1.0]), 3)
        np.testing.assert_allclose(basis[0], [1, 0, 0, 0])
        np.testing.assert_allclose(basis[1], [0.125, 0.375, 0.375, 0.125])
        np.testing.assert_allclose(basis[2], [0, 0, 0, 1])

    def test_evaluate_polynomial_horner(self) -> None:
        # 2t^2 + 1, -t + 3
        coefficients = np.array([[2.0, 0.0], [0.0, -1.0], [1.0, 3.0]])
        np.testing.assert_allclose(evaluate_polynomial(coefficients, 2.0), [9.0, 1.0])


# ---------------------------------------------------------------------------
# Parametrization
# ---------------------------------------------------------------------------


class TestChordLength:
    def test_proportional_to_arc_length(self) -> None:
        points = np.array([[0.0, 0.0], [3.0, 4.0], [3.0, 7.0], [3.0, 9.0]])
        t = chord_length_parametrization(points)
        np.testing.assert_allclose(t, [0.0, 0.5, 0.8, 1.0])

    def test_endpoints_exact_and_monotone(self) -> None:
        rng = np.random.default_rng(7)
        points = rng.normal(size=(40, 2)) * 100.0
        t = chord_length_parametrization(points)
        assert t[0] == 0.0
        assert t[-1] == 1.0
        assert np.all(np.diff(t) >= 0.0)

    def test_repeated_points_share_parameter(self) -> None:
        points = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 0.0], [2.0, 0.0]])
        t = chord_length_parametrization(points)
        assert t[1] == t[2]

    def test_coincident_points_fall_back_to_uniform(self) -> None:
        points = np.full((5, 2), 3.0)
        np.testing.assert_allclose(
            chord_length_parametrization(points), [0.0, 0.25, 0.5, 0.75, 1.0]
        )


class TestRemap:
    def test_window_is_rescaled(self) -> None:
        base = np.array([0.0, 0.2, 0.4, 0.5, 1.0])
        np.testing.assert_allclose(remap_parametrization(base, 1, 3), [0.0, 2 / 3, 1.0])

    def test_full_range_is_identity(self) -> None:
        base = np.array([0.0, 0.1, 0.7, 1.0])
        np.testing.assert_allclose(remap_parametrization(base, 0, 3), base)

    def test_flat_window_falls_back_to_uniform(self) -> None:
        base = np.array([0.0, 0.5, 0.5, 0.5, 1.0])
        np.testing.assert_allclose(remap_parametrization(base, 1, 3), [0.0, 0.5, 1.0])

    @pytest.mark.parametrize("start,end", [(2, 2), (3, 1), (-1, 2), (0, 5)])
    def test_rejects_bad_interval(self, start: int, end: int) -> None:
        with pytest.raises(ValueError, match="Interval"):
            remap_parametrization(np.linspace(0, 1, 5), start, end)
