"""
Statistics SDK for reporting server metrics to a telemetry endpoint.
"""
from .collector import SnapshotSource
from .config import StatisticsConfig, resolve_interval
from .config_loader import ensure_config_exists, load_config
from .dispatcher import SendResult, send_payload
from .errors import (
    ConfigValidationError,
    NetworkError,
    StatisticsError,
    Timeout,
    ValidationError
)
from .models import PlayerInfo, PluginInfo, Snapshot
from .payload import StatisticsPayload, build_payload
from .ping import measure_median_latency
from .plugin import StatisticsPlugin
from .reporter import StatisticsReporter

__all__ = [
    'SnapshotSource',
    'StatisticsConfig',
    'StatisticsPayload',
    'StatisticsPlugin',
    'StatisticsReporter',
    'SendResult',
    'Snapshot',
    'PlayerInfo',
    'PluginInfo',
    'StatisticsError',
    'ConfigValidationError',
    'ValidationError',
    'NetworkError',
    'Timeout',
    'build_payload',
    'ensure_config_exists',
    'load_config',
    'measure_median_latency',
    'resolve_interval',
    'send_payload',
]
