"""Bézier curves of degree 1-3 in power-basis form.

Provides:
    - Bézier → power-basis matrices for degrees 1, 2 and 3
    - Bernstein basis matrix for a vector of parameters (least-squares design)
    - ``BezierCurve``: position / velocity evaluation via Horner's rule

Used by:
    - Least squares: design matrix columns are Bernstein basis values
    - Engine: residuals, reparametrization (position + velocity), split scan
    - Path segments: dense evaluation for external renderers

Coefficient rows are ordered by descending power of ``t``:
``B(t) = c[0]·t^d + c[1]·t^(d-1) + ... + c[d]``.
"""

from __future__ import annotations

import numpy as np

# Row j holds the coefficients of t^(d-j); column k multiplies control point k.
BEZIER_MATRICES: dict[int, np.ndarray] = {
    1: np.array([
        [-1.0, 1.0],
        [1.0, 0.0],
    ]),
    2: np.array([
        [1.0, -2.0, 1.0],
        [-2.0, 2.0, 0.0],
        [1.0, 0.0, 0.0],
    ]),
    3: np.array([
        [-1.0, 3.0, -3.0, 1.0],
        [3.0, -6.0, 3.0, 0.0],
        [-3.0, 3.0, 0.0, 0.0],
        [1.0, 0.0, 0.0, 0.0],
    ]),
}

for _matrix in BEZIER_MATRICES.values():
    _matrix.setflags(write=False)


def basis_matrix(t: np.ndarray, degree: int) -> np.ndarray:
    """Bernstein basis values for each parameter.

    Parameters
    ----------
    t : np.ndarray
        Parameter values, shape (N,)
    degree : int
        Curve degree, 1-3

    Returns
    -------
    np.ndarray
        Shape (N, degree + 1); entry ``[i, k]`` is ``B_k(t_i)``
    """
    t = np.asarray(t, dtype=np.float64)
    return np.vander(t, degree + 1) @ BEZIER_MATRICES[degree]


def evaluate_polynomial(coefficients: np.ndarray, t) -> np.ndarray:
    """Evaluate 2D polynomial rows (descending powers) at ``t``.

    Parameters
    ----------
    coefficients : np.ndarray
        Shape (K, 2)
    t : float or np.ndarray
        Scalar or array of shape (N,)

    Returns
    -------
    np.ndarray
        Shape (2,) for scalar ``t``, (N, 2) otherwise
    """
    t = np.asarray(t, dtype=np.float64)
    result = np.zeros(t.shape + (2,))
    for row in coefficients:
        result = result * t[..., None] + row
    return result


class BezierCurve:
    """Bézier curve with cached power-basis coefficients.

    Parameters
    ----------
    control_points : array-like
        Shape (degree + 1, 2), degree 1-3.

    Notes
    -----
    Position coefficients are ``M_d · P``; velocity coefficients are the
    term-wise derivative ``(d - j) · position[j]`` for ``j < d``.  Both are
    computed once at construction, so a new least-squares solve means a new
    ``BezierCurve``.
    """

    __slots__ = ("control_points", "degree", "position_coefficients", "velocity_coefficients")

    def __init__(self, control_points) -> None:
        cp = np.array(control_points, dtype=np.float64)
        if cp.ndim != 2 or cp.shape[1] != 2 or (cp.shape[0] - 1) not in BEZIER_MATRICES:
            raise ValueError(
                f"Control points must have shape (2..4, 2), got {cp.shape}"
            )
        cp.setflags(write=False)
        self.control_points = cp
        self.degree = cp.shape[0] - 1

        position = BEZIER_MATRICES[self.degree] @ cp
        powers = np.arange(self.degree, 0, -1, dtype=np.float64)[:, None]
        velocity = powers * position[:-1]
        position.setflags(write=False)
        velocity.setflags(write=False)
        self.position_coefficients = position
        self.velocity_coefficients = velocity

    def __repr__(self) -> str:
        pts = ", ".join(f"({x:.3f}, {y:.3f})" for x, y in self.control_points)
        return f"BezierCurve(degree={self.degree}, [{pts}])"

    def position(self, t) -> np.ndarray:
        """Point(s) on the curve at ``t``."""
        return evaluate_polynomial(self.position_coefficients, t)

    def velocity(self, t) -> np.ndarray:
        """First derivative at ``t``."""
        return evaluate_polynomial(self.velocity_coefficients, t)

    def distances_sq(self, points: np.ndarray, t: np.ndarray) -> np.ndarray:
        """Squared distance from each point to its curve position.

        Parameters
        ----------
        points : np.ndarray
            Shape (N, 2)
        t : np.ndarray
            Shape (N,), one parameter per point

        Returns
        -------
        np.ndarray
            Shape (N,)
        """
        diff = np.asarray(points, dtype=np.float64) - self.position(t)
        return np.einsum('ij,ij->i', diff, diff)
