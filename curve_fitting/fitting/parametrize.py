"""Parametrization of sample intervals.

Every fitted interval needs one parameter ``t`` in [0, 1] per sample:
``t[0] == 0.0`` and ``t[-1] == 1.0`` exactly, non-decreasing in between.

The full sample sequence is parametrized once by chord length.  Sub-intervals
created by splitting reuse that parametrization, linearly remapped onto
[0, 1]; chord lengths are not recomputed per interval.
"""

from __future__ import annotations

import numpy as np


def chord_length_parametrization(points: np.ndarray) -> np.ndarray:
    """Cumulative chord length, normalized to [0, 1].

    Parameters
    ----------
    points : np.ndarray
        Sample points, shape (N, 2), N ≥ 2

    Returns
    -------
    np.ndarray
        Parameters, shape (N,); t[0] = 0.0, t[-1] = 1.0

    Notes
    -----
    If all points coincide the chord length is zero and the parameters are
    spaced uniformly instead.
    """
    points = np.asarray(points, dtype=np.float64)
    n = points.shape[0]
    segment_lengths = np.linalg.norm(np.diff(points, axis=0), axis=1)
    cumulative = np.concatenate(([0.0], np.cumsum(segment_lengths)))

    total = cumulative[-1]
    if total <= 0.0:
        return np.linspace(0.0, 1.0, n)

    t = cumulative / total
    t[0] = 0.0
    t[-1] = 1.0
    return t


def remap_parametrization(base: np.ndarray, start: int, end: int) -> np.ndarray:
    """Linearly remap ``base[start:end + 1]`` onto [0, 1].

    Parameters
    ----------
    base : np.ndarray
        Parametrization of the whole sample sequence
    start, end : int
        Inclusive interval bounds, ``start < end``

    Returns
    -------
    np.ndarray
        Shape (end - start + 1,); t[0] = 0.0, t[-1] = 1.0
    """
    if not 0 <= start < end < len(base):
        raise ValueError(
            f"Interval [{start}, {end}] is not inside [0, {len(base) - 1}] with start < end"
        )
    window = np.asarray(base[start:end + 1], dtype=np.float64)
    span = window[-1] - window[0]
    if span <= 0.0:
        return np.linspace(0.0, 1.0, window.shape[0])

    t = (window - window[0]) / span
    t[0] = 0.0
    t[-1] = 1.0
    return t
