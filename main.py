#!/usr/bin/env python3
"""
CLI application for running the statistics reporter as a standalone process.

Server metrics are simulated; a real host wires its own ServerAdapter.
"""
import argparse
import logging
import random
import signal
import sys
import threading
from datetime import datetime

import pytz

from collectors.server_collector.server_adapter import CachedServerAdapter, format_joined
from collectors.server_collector.server_collector import ServerCollector
from stats_sdk import config as sdk_config
from stats_sdk.classifier import classify, describe_response, log_classification
from stats_sdk.config_loader import ensure_config_exists, load_config
from stats_sdk.errors import StatisticsError
from stats_sdk.models import PlayerInfo, PluginInfo
from stats_sdk.reporter import StatisticsReporter

# Setup logging
logger = logging.getLogger(__name__)

SIMULATED_SLOTS = 50
SIMULATION_REFRESH_SECONDS = 2


def setup_logging(log_level: str) -> None:
    """
    Setup logging with the specified log level.

    Args:
        log_level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def refresh_simulated_metrics(adapter: CachedServerAdapter, version: str) -> None:
    """
    Push a fresh set of simulated values into the adapter.

    Args:
        adapter (CachedServerAdapter): The adapter to update
        version (str): Server version to report
    """
    online = random.randint(0, SIMULATED_SLOTS - 1)
    joined = format_joined(datetime.now(pytz.UTC))

    adapter.set_max_players(SIMULATED_SLOTS)
    adapter.set_online_players(online)
    adapter.set_server_version(version)
    adapter.set_players([
        PlayerInfo(uuid=f"00000000-0000-0000-0000-{i:012d}", name=f"player{i}", joined=joined)
        for i in range(online)
    ])
    adapter.set_plugin_details([
        PluginInfo('ExamplePlugin', '1.0.0'),
        PluginInfo('StatisticsPlugin'),
    ])


def start_simulation(adapter: CachedServerAdapter, version: str, stop_event: threading.Event) -> threading.Thread:
    """
    Refresh the simulated metrics on their own cadence, like a host poller would.

    Returns:
        threading.Thread: The poller thread
    """
    def poll_loop():
        while not stop_event.wait(SIMULATION_REFRESH_SECONDS):
            try:
                refresh_simulated_metrics(adapter, version)
            except Exception as e:
                logger.error("Error refreshing simulated metrics: %s", e)

    thread = threading.Thread(target=poll_loop, name='statistics-simulation', daemon=True)
    thread.start()
    return thread


def send_once(reporter: StatisticsReporter) -> int:
    """
    Send exactly one payload and report the outcome.

    Returns:
        int: Process exit code
    """
    try:
        result = reporter.send_once()
    except StatisticsError as e:
        logger.error("Send-once failed: %s", e)
        return 1

    logger.info("Send-once finished with HTTP %d", result.status_code)
    body = describe_response(result)
    if body:
        logger.info("Response body: %s", body)
    log_classification(logger, classify(result, reporter.config.telemetry_endpoint))
    return 0


def main():
    """Main function to parse arguments and run the reporter."""
    parser = argparse.ArgumentParser(
        description='Report server statistics to a telemetry endpoint.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--config-file', type=str, default=sdk_config.CONFIG_FILE,
                        help='Path to JSON configuration file')
    parser.add_argument('--log-level', type=str, default=sdk_config.LOG_LEVEL,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Log level')
    parser.add_argument('--interval', type=str, default=sdk_config.INTERVAL_OVERRIDE,
                        help='Seconds between sends (default: 300)')
    parser.add_argument('--send-once', action='store_true',
                        help='Send a single payload and exit')
    parser.add_argument('--server-version', type=str, default='v1.0.0-alpha',
                        help='Version reported by the simulated server')

    args = parser.parse_args()
    setup_logging(args.log_level)

    if not ensure_config_exists(args.config_file):
        sys.exit(1)

    try:
        config = load_config(args.config_file, interval_override=args.interval)
    except StatisticsError as e:
        logger.error("Invalid statistics config (%s): %s", args.config_file, e)
        logger.error("Required fields: endpoint, bearerToken, vanityUrl")
        sys.exit(1)

    adapter = CachedServerAdapter()
    refresh_simulated_metrics(adapter, 'send-once' if args.send_once else args.server_version)
    collector = ServerCollector(adapter)

    if args.send_once:
        with StatisticsReporter(config, collector) as reporter:
            sys.exit(send_once(reporter))

    shutdown = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Shutdown signal received, stopping statistics reporter...")
        shutdown.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    start_simulation(adapter, args.server_version, shutdown)
    reporter = StatisticsReporter(config, collector)
    try:
        reporter.start()
        logger.info("Statistics reporter started. Press Ctrl+C to stop.")
        while not shutdown.wait(1):
            pass
    finally:
        reporter.close()

    logger.info("Statistics reporter shut down.")


if __name__ == "__main__":
    main()
