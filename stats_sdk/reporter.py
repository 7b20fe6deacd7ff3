"""
Periodically pushes statistics payloads to the remote API endpoint.
"""
import logging
import threading
import time
from typing import Optional

from . import config as settings
from .classifier import classify, log_classification
from .collector import SnapshotSource
from .config import StatisticsConfig
from .dispatcher import SendResult, send_payload
from .errors import NetworkError, Timeout, ValidationError
from .payload import build_payload
from .ping import measure_median_latency

logger = logging.getLogger(__name__)


class StatisticsReporter:
    """
    Drives the measure -> snapshot -> build -> send cycle.

    Scheduled sends run on one dedicated worker thread, so at most one
    scheduled cycle is ever in flight. ``send_once()`` may be called from any
    thread at any time and is not serialized with the scheduled cycles.

    The reporter moves from idle to running on ``start()`` and to closed on
    ``close()``; a closed reporter cannot be started again.
    """

    def __init__(
        self,
        config: StatisticsConfig,
        source: SnapshotSource,
        close_grace_period: float = settings.CLOSE_GRACE_PERIOD
    ):
        """
        Initialize the reporter.

        Args:
            config (StatisticsConfig): Validated configuration
            source (SnapshotSource): Supplier of server metrics
            close_grace_period (float): Seconds close() waits for an in-flight cycle
        """
        if config is None:
            raise ValueError("config is required")
        if source is None:
            raise ValueError("source is required")

        self.config = config
        self.source = source
        self.close_grace_period = close_grace_period

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._closed = False

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start periodic reporting. The first cycle runs immediately."""
        with self._lock:
            if self._closed:
                logger.warning("StatisticsReporter.start() called after close(); ignoring")
                return
            if self._thread is not None:
                return

            self._thread = threading.Thread(
                target=self._run_loop,
                name='statistics-reporter',
                daemon=True
            )
            self._thread.start()

        logger.info("Statistics reporter started: endpoint=%s, interval=%ss",
                    self.config.telemetry_endpoint, self.config.interval_seconds)

    def _run_loop(self) -> None:
        interval = self.config.interval_seconds
        next_tick = time.monotonic()

        while not self._stop_event.is_set():
            self._dispatch_safely()

            next_tick += interval
            now = time.monotonic()
            if now > next_tick:
                # Overran the interval; start the next cycle right away without catching up
                logger.warning("Telemetry cycle took longer than the %ss interval", interval)
                next_tick = now

            if self._stop_event.wait(next_tick - now):
                break

        logger.debug("Statistics reporter loop stopped")

    def _dispatch_safely(self) -> None:
        endpoint = self.config.telemetry_endpoint
        try:
            result = self.send_once()
            log_classification(logger, classify(result, endpoint))
        except Timeout as e:
            logger.warning("Statistics endpoint timed out (%s): %s", endpoint, e)
        except NetworkError as e:
            logger.warning("Statistics endpoint unreachable (%s): %s", endpoint, e)
        except ValidationError as e:
            logger.error("Skipping telemetry cycle, invalid payload: %s", e)
        except Exception:
            logger.critical("Unexpected statistics dispatch failure", exc_info=True)

    def send_once(self) -> SendResult:
        """
        Send one telemetry payload immediately.

        Works whether or not the reporter is running and does not touch the
        schedule. Errors are raised to the caller.

        Returns:
            SendResult: Response status and the (limited) response body

        Raises:
            NetworkError: If the endpoint could not be reached
            Timeout: If the endpoint did not answer in time
            ValidationError: If the snapshot does not produce a valid payload
        """
        latency_ms = measure_median_latency(
            self.config.ping_endpoint,
            timeout=(self.config.connect_timeout, self.config.read_timeout),
            attempts=settings.PING_ATTEMPTS
        )
        snapshot = self.source.snapshot()
        payload = build_payload(self.config, snapshot, latency_ms)
        return send_payload(self.config, payload)

    def close(self) -> None:
        """
        Stop periodic reporting. Safe to call more than once.

        A cycle that is already running may finish within the grace period.
        After that the daemon worker is abandoned and cannot block exit.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._stop_event.set()
            thread = self._thread
            self._thread = None

        if thread is None or thread is threading.current_thread():
            return

        thread.join(timeout=self.close_grace_period)
        if thread.is_alive():
            logger.warning("Statistics reporter thread did not stop within %ss; abandoning it",
                           self.close_grace_period)
        else:
            logger.info("Statistics reporter stopped")

    def __enter__(self) -> 'StatisticsReporter':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
