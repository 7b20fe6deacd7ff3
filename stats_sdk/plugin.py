"""
Entry point that wires configuration and reporting for a host server.
"""
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .collector import SnapshotSource
from .config_loader import load_config
from .dispatcher import SendResult
from .reporter import StatisticsReporter

logger = logging.getLogger(__name__)


class StatisticsPlugin:
    """Loads the config, owns the reporter and offers manual sends."""

    def __init__(self, config_path: str, source: SnapshotSource):
        """
        Initialize the plugin.

        Args:
            config_path (str): Path to the JSON config file
            source (SnapshotSource): Supplier of server metrics
        """
        if not config_path:
            raise ValueError("config_path is required")
        if source is None:
            raise ValueError("source is required")

        self.config_path = config_path
        self.source = source
        self.reporter: Optional[StatisticsReporter] = None

        self._lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='statistics-async')

    def start(self) -> None:
        """
        Load the config and start periodic reporting.

        Raises:
            ConfigValidationError: If the config file is missing or invalid
        """
        with self._lock:
            if self.reporter is not None:
                return
            config = load_config(self.config_path)
            self.reporter = StatisticsReporter(config, self.source)
            self.reporter.start()

    def start_safely(self) -> bool:
        """
        Start the plugin but never raise, so config problems cannot crash the host.

        Returns:
            bool: True if reporting was started (or already running), False otherwise
        """
        with self._lock:
            if self.reporter is not None:
                return True
            try:
                self.start()
                return True
            except Exception as e:
                logger.error("Failed to start statistics plugin (config=%s): %s",
                             os.path.abspath(self.config_path), e)
                self.reporter = None
                return False

    def send_once_now(self) -> SendResult:
        """
        Send one telemetry payload immediately.

        Reuses the running reporter if there is one. Otherwise the config is
        loaded and a one-shot reporter is used and closed again, without
        starting the schedule.

        Returns:
            SendResult: Response status and the (limited) response body
        """
        with self._lock:
            reporter = self.reporter
            if reporter is None:
                config = load_config(self.config_path)

        if reporter is not None:
            return reporter.send_once()

        with StatisticsReporter(config, self.source) as one_shot:
            return one_shot.send_once()

    def send_once_now_async(self) -> Future:
        """
        Run send_once_now() on a background worker, for callers that must not
        block on network I/O.

        Returns:
            Future: Resolves to a SendResult or to the raised exception
        """
        return self._executor.submit(self.send_once_now)

    def close(self) -> None:
        with self._lock:
            if self.reporter is not None:
                try:
                    self.reporter.close()
                except Exception as e:
                    logger.warning("Failed to close statistics reporter: %s", e)
                self.reporter = None
        self._executor.shutdown(wait=False)
