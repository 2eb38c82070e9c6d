"""Cooperative hand-off between a driver thread and one worker thread.

A ``Coroutine`` runs its :meth:`Coroutine.execute` body on a dedicated worker
thread, but never concurrently with the thread that drives it.  Control is
passed back and forth like a baton:

Driver
    ``launch()`` starts the worker and blocks until it yields or finishes.
    ``resume()`` hands control back and blocks again.  ``request_cancel()``
    asks the worker to stop and waits for the thread to die.

Worker
    ``yield_point()`` hands control to the driver and blocks until the next
    ``resume()``.  ``is_cancel_requested()`` should be polled right after
    each ``yield_point()`` returns; a cancelled body returns normally.

Exactly one side runs at any moment, so state written by the worker between
two yield points can be read by the driver without further locking.

Synchronization is a single boolean turn token guarded by a
``threading.Condition``.  The worker waits for its first turn before running
the body, so it cannot overtake the driver however the two threads are
scheduled at start-up.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CoroutineError(RuntimeError):
    """Raised when the hand-off protocol is used out of order."""

    pass


# ---------------------------------------------------------------------------
# Turn token
# ---------------------------------------------------------------------------


class _Baton:
    """Boolean turn token: ``True`` while the worker holds control."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._worker_turn = False

    def pass_to_worker(self) -> None:
        """Driver side: give the worker its turn and wait to get it back."""
        with self._cond:
            self._worker_turn = True
            self._cond.notify_all()
            while self._worker_turn:
                self._cond.wait()

    def pass_to_driver(self) -> None:
        """Worker side: give the driver its turn and wait to get it back."""
        with self._cond:
            self._worker_turn = False
            self._cond.notify_all()
            while not self._worker_turn:
                self._cond.wait()

    def wait_for_worker_turn(self) -> None:
        with self._cond:
            while not self._worker_turn:
                self._cond.wait()

    def release_to_driver(self) -> None:
        """Worker side, final hand-off: return control without waiting."""
        with self._cond:
            self._worker_turn = False
            self._cond.notify_all()


# ---------------------------------------------------------------------------
# Coroutine
# ---------------------------------------------------------------------------


class Coroutine(ABC):
    """Step-wise execution of :meth:`execute` on a worker thread.

    Parameters
    ----------
    name : str | None
        Worker thread name (shows up in log records).

    Notes
    -----
    Instances are single-use: once the body has returned the worker thread
    is gone and ``resume()`` / ``request_cancel()`` are no-ops that report
    "finished".  An exception escaping the body also finishes the worker;
    it is logged, and the driver only observes "finished".
    """

    def __init__(self, name: str | None = None) -> None:
        self._baton = _Baton()
        self._thread = threading.Thread(
            target=self._run,
            name=name or type(self).__name__,
            daemon=True,
        )
        self._launched = False
        self._running = False
        self._cancel_flag = threading.Event()

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    @abstractmethod
    def execute(self) -> None:
        """Body run on the worker thread."""

    def _run(self) -> None:
        self._baton.wait_for_worker_turn()
        try:
            self.execute()
        except Exception:  # noqa: BLE001
            logger.exception("Coroutine %s terminated with an error", self._thread.name)
        finally:
            self._running = False
            self._baton.release_to_driver()

    def yield_point(self) -> None:
        """Hand control to the driver; returns on the next ``resume()``.

        Raises
        ------
        CoroutineError
            If called from any thread other than the worker.
        """
        if threading.current_thread() is not self._thread:
            raise CoroutineError("yield_point() may only be called from the worker thread")
        self._baton.pass_to_driver()

    def is_cancel_requested(self) -> bool:
        """Return ``True`` once the driver has called ``request_cancel()``."""
        return self._cancel_flag.is_set()

    # ------------------------------------------------------------------
    # Driver side
    # ------------------------------------------------------------------

    @property
    def is_finished(self) -> bool:
        """``True`` once the body has returned (never ``True`` before launch)."""
        return self._launched and not self._running

    def launch(self) -> None:
        """Start the worker and block until it yields or finishes.

        Raises
        ------
        CoroutineError
            If the coroutine was already launched.
        """
        if self._launched:
            raise CoroutineError("launch() may only be called once")
        self._launched = True
        self._running = True
        logger.debug("Launching coroutine %s", self._thread.name)
        self._thread.start()
        self._baton.pass_to_worker()

    def resume(self) -> bool:
        """Let the worker run to its next yield point.

        Returns
        -------
        bool
            ``True`` while the worker is still running, ``False`` once it has
            finished.  After the first ``False`` every call returns ``False``
            immediately without touching the worker.

        Raises
        ------
        CoroutineError
            If called before ``launch()``.
        """
        if not self._launched:
            raise CoroutineError("resume() called before launch()")
        if self._running:
            self._baton.pass_to_worker()
        return self._running

    def request_cancel(self) -> None:
        """Ask the worker to stop and block until its thread has died.

        The worker observes the request the next time it returns from
        ``yield_point()``.  Calling this after the worker has finished has no
        effect.

        Raises
        ------
        CoroutineError
            If called before ``launch()``.
        """
        if not self._launched:
            raise CoroutineError("request_cancel() called before launch()")
        if not self._running:
            return
        logger.debug("Cancelling coroutine %s", self._thread.name)
        self._cancel_flag.set()
        while self.resume():
            logger.debug("Coroutine %s yielded after cancel; resuming", self._thread.name)
        self._thread.join()
