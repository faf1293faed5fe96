"""Watch mode: run the synchronization jobs repeatedly at a fixed interval."""

from __future__ import annotations

import signal
import time
from collections.abc import Callable
from typing import Any

from loguru import logger

DEFAULT_MAX_CONSECUTIVE_ERRORS = 10


class PeriodicSyncRunner:
    """Runs a synchronization batch every `interval_seconds` until stopped by SIGINT/SIGTERM.

    A batch fails when the callback returns a non zero exit code or raises. Watch mode gives up after
    `max_consecutive_errors` failed batches in a row; one successful batch resets the counter.
    """

    def __init__(
        self,
        *,
        sync_callback: Callable[[], int],
        interval_seconds: int,
        max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS,
        install_signal_handlers: bool = True,
    ) -> None:
        """Initialize the runner.

        Args:
            sync_callback: Runs one batch of jobs. Should return exit code (0 for success).
            interval_seconds: Pause between the end of one batch and the start of the next.
            max_consecutive_errors: Failed batches in a row after which watch mode exits.
            install_signal_handlers: Stop gracefully on SIGINT and SIGTERM.
        """
        self.sync_callback = sync_callback
        self.interval_seconds = max(1, interval_seconds)
        self.max_consecutive_errors = max_consecutive_errors

        self.running = False
        self.consecutive_errors = 0
        self.iterations = 0

        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._signal_handler)
            signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame: Any) -> None:  # noqa: ANN401
        signal_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
        logger.info(f"{signal_name} received. Shutting down watch mode gracefully...")
        self.running = False

    def stop(self) -> None:
        self.running = False

    def _run_batch(self) -> bool:
        try:
            exit_code = self.sync_callback()
        except Exception as e:
            logger.error(f"Synchronization raised an exception: {e}")
            return False

        if exit_code != 0:
            logger.error(f"Synchronization failed with exit code {exit_code}")
            return False

        logger.success("Synchronization completed successfully")
        return True

    def run(self) -> int:
        """Run the watch loop.

        Returns:
            Exit code (0 when stopped by a signal, 1 after too many consecutive failures).
        """
        self.running = True

        logger.info("=" * 80)
        logger.info("Grafana Dashboard Sync - WATCH MODE")
        logger.info("=" * 80)
        logger.info(f"Interval: {self.interval_seconds} seconds")
        logger.info(f"Giving up after {self.max_consecutive_errors} consecutive failures")
        logger.info("Starting watch loop. Press Ctrl+C to stop.")
        logger.info("-" * 80)

        while self.running:
            self.iterations += 1
            logger.debug(f"Watch iteration {self.iterations}")

            if self._run_batch():
                if self.consecutive_errors > 0:
                    logger.info(f"Recovered after {self.consecutive_errors} failed runs")
                self.consecutive_errors = 0
            else:
                self.consecutive_errors += 1
                logger.warning(f"Failed run {self.consecutive_errors}/{self.max_consecutive_errors}")
                if self.consecutive_errors >= self.max_consecutive_errors:
                    logger.critical("Too many consecutive failures. Exiting watch mode.")
                    self.running = False
                    return 1

            if self.running:
                logger.debug(f"Sleeping for {self.interval_seconds} seconds...")
                try:
                    time.sleep(self.interval_seconds)
                except KeyboardInterrupt:
                    logger.info("Keyboard interrupt detected during sleep. Shutting down...")
                    self.running = False

        logger.info("=" * 80)
        logger.info("Watch mode stopped")
        logger.info("=" * 80)
        return 0
