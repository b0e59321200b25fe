"""
Background sweep removing expired tokens from a TokenStore.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class CleanupTask:
    """Run :meth:`TokenStore.cleanup_sessions` every ``interval`` seconds.

    The sweep runs on a daemon thread and waits on an event between
    passes, so :meth:`cancel` takes effect without waiting out the
    interval.

    ::

        task = CleanupTask(store, interval=30)
        task.start()
        ...
        task.cancel()
        task.join()

    :param store: The :class:`~flask_expiring_csrf.store.TokenStore` to sweep.
    :param interval: Seconds between sweeps.
    """

    def __init__(self, store, interval):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")

        self.store = store
        self.interval = interval
        self._cancelled = None
        self._thread = None

    @property
    def running(self):
        """Whether a sweep thread is alive and has not been cancelled."""
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._cancelled.is_set()
        )

    def start(self):
        """Start the sweep thread. Does nothing if it is already running.

        A thread that was cancelled but has not exited yet is left to
        finish; the new thread gets its own cancellation event.
        """
        if self.running:
            return

        self._cancelled = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._cancelled,),
            name="expiring-csrf-cleanup",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Started CSRF token cleanup every %s seconds", self.interval)

    def cancel(self):
        """Ask the sweep thread to stop after its current pass."""
        if self._cancelled is not None:
            self._cancelled.set()

    def join(self, timeout=None):
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, cancelled):
        while not cancelled.wait(self.interval):
            try:
                self.store.cleanup_sessions()
            except Exception:
                logger.exception("CSRF token cleanup failed")
        logger.debug("Stopped CSRF token cleanup")
