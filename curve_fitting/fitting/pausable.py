"""Steppable fitting engine.

``PausablePathFinder`` runs the same algorithm as ``PathFinder`` on a
``Coroutine`` worker thread and pauses at every checkpoint, so a driver (a
GUI timer, a "Step" button, a terminal loop) can inspect and draw the
intermediate state before resuming.

Typical driver loop::

    finder = PausablePathFinder(samples)
    finder.launch()                       # runs to the first checkpoint
    while True:
        render(finder.checkpoint)         # or finder.message, finder.parameters ...
        if not finder.resume():
            break
    path = finder.get_path()

Between two hand-offs only the driver runs, so the accessors read the latest
published snapshot without locking.  Cancellation is polled at checkpoints:
``request_cancel()`` lets the worker finish its current step, close the
algorithm generator and exit.
"""

from __future__ import annotations

import logging

import numpy as np

from curve_fitting.configs.loader import FittingConfig
from curve_fitting.coroutine.handoff import Coroutine
from curve_fitting.fitting.engine import (
    Checkpoint,
    EngineStateError,
    PathFinder,
    Stage,
)
from curve_fitting.fitting.path import FittedPath, Point

logger = logging.getLogger(__name__)


class PausablePathFinder(Coroutine):
    """Fit sample points one checkpoint at a time.

    Parameters
    ----------
    sample_points : array-like
        Ordered (x, y) samples, at least 2, all finite.  Validated here, on
        the driver thread.
    config : FittingConfig | None
        Algorithm settings; defaults to ``FittingConfig()``.

    Raises
    ------
    InvalidSamplesError
        If the samples are rejected.
    """

    def __init__(self, sample_points, config: FittingConfig | None = None) -> None:
        super().__init__(name="pausable-path-finder")
        self._finder = PathFinder(sample_points, config)
        self._checkpoint: Checkpoint | None = None
        self._steps = 0

    @property
    def samples(self) -> np.ndarray:
        return self._finder.samples

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def execute(self) -> None:
        steps = self._finder.iter_checkpoints()
        try:
            for checkpoint in steps:
                self._checkpoint = checkpoint
                self._steps += 1
                if checkpoint.stage is Stage.END:
                    return
                self.yield_point()
                if self.is_cancel_requested():
                    logger.info(
                        "Fit cancelled at %s [%d, %d] after %d step(s)",
                        checkpoint.stage.value,
                        checkpoint.start,
                        checkpoint.end,
                        self._steps,
                    )
                    return
        finally:
            steps.close()

    # ------------------------------------------------------------------
    # Read-only state (driver side)
    # ------------------------------------------------------------------

    @property
    def checkpoint(self) -> Checkpoint:
        """Latest published snapshot.

        Raises
        ------
        EngineStateError
            Before the first checkpoint (i.e. before ``launch()``).
        """
        if self._checkpoint is None:
            raise EngineStateError("No checkpoint yet; call launch() first")
        return self._checkpoint

    @property
    def steps(self) -> int:
        """Number of checkpoints published so far."""
        return self._steps

    @property
    def stage(self) -> Stage:
        return self.checkpoint.stage

    @property
    def interval(self) -> tuple[int, int]:
        cp = self.checkpoint
        return cp.start, cp.end

    @property
    def parameters(self) -> tuple[float, ...]:
        return self.checkpoint.parameters

    @property
    def control_points(self) -> tuple[Point, ...] | None:
        return self.checkpoint.control_points

    @property
    def residual(self) -> float | None:
        return self.checkpoint.residual

    @property
    def farthest_index(self) -> int | None:
        return self.checkpoint.farthest_index

    @property
    def partial_path(self) -> FittedPath | None:
        """Segments committed as of the latest checkpoint."""
        return self.checkpoint.path

    @property
    def message(self) -> str:
        return self.checkpoint.message

    def get_path(self) -> FittedPath:
        """The finished path.

        Raises
        ------
        EngineStateError
            Unless the ``END`` checkpoint has been reached (a cancelled run
            never produces a path).
        """
        cp = self._checkpoint
        if cp is None or cp.stage is not Stage.END:
            raise EngineStateError("Fit has not finished; no path available")
        return cp.path
