"""
Round-trip latency measurement against the API ping endpoint.
"""
import logging
import math
import time
from typing import Callable, List, Sequence, Tuple, Union

import requests

from . import config

logger = logging.getLogger(__name__)

FAILED_SAMPLE = math.inf

TimeoutValue = Union[float, Tuple[float, float]]


def select_median(samples: Sequence[float]) -> int:
    """
    Pick the median of a set of latency samples.

    The samples are sorted and the element at index ``len // 2`` is taken, so
    an even number of samples yields the upper of the two middle values
    (``[50, 10]`` gives 50). Failed samples sort last; if the pick lands on one,
    most attempts failed and 0 is returned.

    Args:
        samples (sequence): Latencies in milliseconds, FAILED_SAMPLE for failures

    Returns:
        int: Median latency in milliseconds, 0 if unavailable
    """
    if not samples:
        return 0
    ordered = sorted(samples)
    median = ordered[len(ordered) // 2]
    if median == FAILED_SAMPLE:
        return 0
    return int(median)


def measure_median_latency(
    ping_url: str,
    timeout: TimeoutValue = (config.CONNECT_TIMEOUT, config.READ_TIMEOUT),
    attempts: int = config.PING_ATTEMPTS,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Measure the median round-trip latency to ping_url.

    Each attempt is a GET whose body is discarded. A failed or timed out
    attempt is recorded as FAILED_SAMPLE instead of aborting the probe.

    Args:
        ping_url (str): URL to ping
        timeout (float or tuple): Per-attempt timeout passed to requests
        attempts (int): Number of sequential attempts, at least 1
        clock (callable): Monotonic clock returning seconds

    Returns:
        int: Median latency in milliseconds, 0 if most attempts failed
    """
    samples: List[float] = []

    for attempt in range(1, max(1, attempts) + 1):
        try:
            start = clock()
            with requests.get(ping_url, timeout=timeout, stream=True) as response:
                # Body is discarded but read in full before the clock stops
                for _ in response.iter_content(chunk_size=1024):
                    pass
            elapsed_ms = round((clock() - start) * 1000)
            samples.append(elapsed_ms)
            logger.debug("Ping %d to %s took %d ms (HTTP %d)",
                         attempt, ping_url, elapsed_ms, response.status_code)
        except requests.RequestException as e:
            logger.warning("Ping measurement %d failed: %s", attempt, e)
            samples.append(FAILED_SAMPLE)

    return select_median(samples)
