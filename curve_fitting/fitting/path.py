"""Fitted path -- the value handed to external renderers.

A ``FittedPath`` is an origin point followed by line / quadratic / cubic
segments, each starting exactly where the previous one ended.  Segments are
immutable, slotted dataclasses; renderers draw each one with their own
primitive for its degree.

Each segment remembers the sample interval it approximates, so consumers can
relate it back to the input points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from curve_fitting.fitting.bezier import BezierCurve

Point = tuple[float, float]


def _as_point(p) -> Point:
    return (float(p[0]), float(p[1]))


# ---------------------------------------------------------------------------
# Segment
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Segment:
    """One Bézier piece of a fitted path.

    Parameters
    ----------
    degree : int
        1 (line), 2 (quadratic) or 3 (cubic).
    control_points : tuple[Point, ...]
        ``degree + 1`` points; the first and last are sample points.
    start_index, end_index : int
        Inclusive sample interval approximated by this segment.
    """

    degree: int
    control_points: tuple[Point, ...]
    start_index: int
    end_index: int

    def __post_init__(self) -> None:
        if self.degree not in (1, 2, 3):
            raise ValueError(f"Segment degree must be 1, 2 or 3, got {self.degree}")
        if len(self.control_points) != self.degree + 1:
            raise ValueError(
                f"Degree-{self.degree} segment needs {self.degree + 1} control "
                f"points, got {len(self.control_points)}"
            )
        if not 0 <= self.start_index < self.end_index:
            raise ValueError(
                f"Invalid sample interval [{self.start_index}, {self.end_index}]"
            )

    @classmethod
    def from_curve(cls, curve: BezierCurve, start_index: int, end_index: int) -> Segment:
        return cls(
            degree=curve.degree,
            control_points=tuple(_as_point(p) for p in curve.control_points),
            start_index=start_index,
            end_index=end_index,
        )

    @property
    def start(self) -> Point:
        return self.control_points[0]

    @property
    def end(self) -> Point:
        return self.control_points[-1]

    def to_curve(self) -> BezierCurve:
        return BezierCurve(self.control_points)

    def evaluate(self, t) -> np.ndarray:
        """Point(s) on the segment at parameter(s) ``t`` in [0, 1]."""
        return self.to_curve().position(t)


# ---------------------------------------------------------------------------
# Path
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FittedPath:
    """Ordered, continuous sequence of segments.

    Parameters
    ----------
    origin : Point
        First sample point; the path's pen-down position.
    segments : tuple[Segment, ...]
        May be empty while a fit is still in progress.
    """

    origin: Point
    segments: tuple[Segment, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        joint = self.origin
        for idx, segment in enumerate(self.segments):
            if segment.start != joint:
                raise ValueError(
                    f"Segment {idx} starts at {segment.start}, expected {joint}"
                )
            joint = segment.end

    @classmethod
    def _from_checked(cls, origin: Point, segments: tuple[Segment, ...]) -> FittedPath:
        """Build a path whose continuity the caller already guarantees."""
        path = object.__new__(cls)
        object.__setattr__(path, "origin", origin)
        object.__setattr__(path, "segments", segments)
        return path

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    @property
    def start_point(self) -> Point:
        return self.origin

    @property
    def end_point(self) -> Point:
        return self.segments[-1].end if self.segments else self.origin

    @property
    def degrees(self) -> tuple[int, ...]:
        return tuple(s.degree for s in self.segments)

    def to_polyline(self, samples_per_segment: int = 32) -> np.ndarray:
        """Flatten the path for drawing.

        Parameters
        ----------
        samples_per_segment : int
            Evaluation points per segment (≥ 2), shared joints included once.

        Returns
        -------
        np.ndarray
            Polyline vertices, shape (M, 2), starting at ``origin``
        """
        if samples_per_segment < 2:
            raise ValueError(f"samples_per_segment must be >= 2, got {samples_per_segment}")
        pieces = [np.array([self.origin], dtype=np.float64)]
        t = np.linspace(0.0, 1.0, samples_per_segment)[1:]
        for segment in self.segments:
            pieces.append(segment.evaluate(t))
        return np.vstack(pieces)


class PathBuilder:
    """Append-only assembly of a ``FittedPath``.

    Committed segments are never modified; ``snapshot()`` returns an
    immutable view of everything committed so far.  Continuity is checked
    once per segment in ``append``, and the snapshot is reused until the
    next append.
    """

    def __init__(self, origin) -> None:
        self._origin = _as_point(origin)
        self._segments: list[Segment] = []
        self._snapshot: FittedPath | None = None

    def append(self, segment: Segment) -> None:
        joint = self._segments[-1].end if self._segments else self._origin
        if segment.start != joint:
            raise ValueError(f"Segment starts at {segment.start}, path ends at {joint}")
        self._segments.append(segment)
        self._snapshot = None

    def snapshot(self) -> FittedPath:
        if self._snapshot is None:
            self._snapshot = FittedPath._from_checked(self._origin, tuple(self._segments))
        return self._snapshot
