"""
Configuration settings for the statistics reporter.
"""
import os
import re
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urljoin, urlparse

from .errors import ConfigValidationError

# Config file location
CONFIG_FILE = os.getenv('STATISTICS_CONFIG_FILE', 'config/statistics.json')

# Interval override in seconds, resolved once when the config is loaded
INTERVAL_OVERRIDE = os.getenv('STATISTICS_INTERVAL_SECONDS')

# Reporting configuration
DEFAULT_INTERVAL_SECONDS = 5 * 60
PING_ATTEMPTS = 3

# HTTP client configuration
CONNECT_TIMEOUT = 5  # seconds
READ_TIMEOUT = 20  # seconds, 15s base + 5s safety buffer
MAX_RESPONSE_BYTES = 4096

# Shutdown configuration
CLOSE_GRACE_PERIOD = 5  # seconds

# Logging configuration
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

VANITY_URL_PATTERN = re.compile(r'^[a-z0-9]{3,32}$')
API_PATH_MARKER = '/api/v1/'


def normalize_vanity_url(value: str) -> str:
    """
    Trim and lowercase a vanity URL, then check it against the allowed pattern.

    Args:
        value (str): Raw vanity URL

    Returns:
        str: The normalized vanity URL

    Raises:
        ValueError: If the value does not match ^[a-z0-9]{3,32}$
    """
    if value is None:
        raise ValueError("vanityUrl must not be empty")
    normalized = value.strip().lower()
    if not VANITY_URL_PATTERN.match(normalized):
        raise ValueError("vanityUrl must match ^[a-z0-9]{3,32}$")
    return normalized


def resolve_interval(raw: Optional[Union[str, int]] = None) -> int:
    """
    Resolve the reporting interval from an optional override.

    Args:
        raw (str or int, optional): Override in whole seconds. Blank means the default.

    Returns:
        int: Interval in seconds

    Raises:
        ConfigValidationError: If the override is not a whole number >= 1
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return DEFAULT_INTERVAL_SECONDS
    try:
        seconds = int(str(raw).strip())
    except ValueError:
        raise ConfigValidationError(
            f"interval override must be a whole number of seconds, got {raw!r}")
    if seconds < 1:
        raise ConfigValidationError("interval override must be >= 1 second")
    return seconds


@dataclass(frozen=True)
class StatisticsConfig:
    """
    Validated reporter configuration. Immutable for the lifetime of a reporter.

    Attributes:
        endpoint (str): Base API URL, e.g. https://example.com/api/v1/
        bearer_token (str): Static token sent in the Authorization header
        vanity_url (str): Short identifier of the reporting server
        send_player_list (bool): Include the detailed player list
        send_plugin_list (bool): Include the detailed plugin list
        interval_seconds (int): Seconds between scheduled sends
    """
    endpoint: str
    bearer_token: str
    vanity_url: str
    send_player_list: bool = False
    send_plugin_list: bool = False
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS

    def __post_init__(self):
        if not self.endpoint or not str(self.endpoint).strip():
            raise ConfigValidationError("endpoint must not be empty")
        endpoint = str(self.endpoint).strip()
        if not endpoint.endswith('/'):
            endpoint += '/'

        parsed = urlparse(endpoint)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigValidationError(
                "endpoint must be an absolute URL (e.g. https://example.com/api/v1/)")
        if API_PATH_MARKER not in parsed.path:
            raise ConfigValidationError(
                "endpoint must include /api/v1/ (e.g. https://example.com/api/v1/)")

        if not self.bearer_token or not self.bearer_token.strip():
            raise ConfigValidationError("bearerToken must not be blank")

        try:
            vanity_url = normalize_vanity_url(self.vanity_url)
        except ValueError as e:
            raise ConfigValidationError(str(e))

        if self.interval_seconds < 1:
            raise ConfigValidationError("interval must be >= 1 second")

        object.__setattr__(self, 'endpoint', endpoint)
        object.__setattr__(self, 'bearer_token', self.bearer_token.strip())
        object.__setattr__(self, 'vanity_url', vanity_url)

    @property
    def telemetry_endpoint(self) -> str:
        return urljoin(self.endpoint, 'server-api/telemetry')

    @property
    def ping_endpoint(self) -> str:
        return urljoin(self.endpoint, 'ping')

    @property
    def connect_timeout(self) -> int:
        return CONNECT_TIMEOUT

    @property
    def read_timeout(self) -> int:
        return READ_TIMEOUT

    def __repr__(self) -> str:
        return (f"StatisticsConfig(endpoint={self.endpoint!r}, vanity_url={self.vanity_url!r}, "
                f"send_player_list={self.send_player_list}, send_plugin_list={self.send_plugin_list}, "
                f"interval_seconds={self.interval_seconds})")
