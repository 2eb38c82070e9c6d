"""Cooperative driver/worker hand-off used to step long computations."""

from curve_fitting.coroutine.handoff import Coroutine, CoroutineError

__all__ = ["Coroutine", "CoroutineError"]
