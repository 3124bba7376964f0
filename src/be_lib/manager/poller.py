# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

import threading
from collections.abc import Callable

from be_lib.core.error import BEError
from be_lib.core.logger import get_logger

logger = get_logger(__name__)


class StatusPoller:
    """
    Periodic background task updating the status of tracked jobs.

    The poller runs the update function in a daemon thread every `interval`
    seconds until it is stopped.
    """

    def __init__(self, update: Callable[[], object], interval: float):
        """
        Args:
            update (Callable): Function performing one status update.
            interval (float): Number of seconds between two updates.
        """
        self._update = update
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def isRunning(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background updates. Does nothing if the poller is already running."""
        if self.isRunning():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._worker, name="status-poller", daemon=True
        )
        self._thread.start()
        logger.debug(f"Started status updates every {self._interval} seconds.")

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop the background updates and wait for the running update to finish.
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
            logger.debug("Stopped status updates.")

    def _worker(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                self._update()
            except BEError as e:
                logger.warning(f"Background status update failed: {e}")
            except Exception as e:
                logger.warning(
                    f"Unexpected error in background status update: {e}", exc_info=True
                )
