"""
Loads the statistics configuration from a JSON file.

Expected JSON shape::

    {
      "endpoint": "https://example.com/api/v1/",
      "bearerToken": "REPLACE_WITH_TOKEN",
      "vanityUrl": "myserver123",
      "sendPlayerList": false,
      "sendPluginList": false
    }
"""
import json
import logging
import os
from typing import Any, Dict, Optional

from . import config
from .config import StatisticsConfig, resolve_interval
from .errors import ConfigValidationError

logger = logging.getLogger(__name__)

KNOWN_KEYS = {'endpoint', 'bearerToken', 'vanityUrl', 'sendPlayerList', 'sendPluginList'}
# Older config files may still carry these; they are now derived or fixed
LEGACY_KEYS = {'pingEndpoint', 'timeouts'}

DEFAULT_CONFIG = {
    'endpoint': 'https://example.com/api/v1/',
    'bearerToken': 'REPLACE_WITH_TOKEN',
    'vanityUrl': 'myserver123',
    'sendPlayerList': False,
    'sendPluginList': False,
}


def _require_non_blank(raw: Dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigValidationError(f"{key} must be present in statistics config")
    return value.strip()


def _optional_bool(raw: Dict[str, Any], key: str) -> bool:
    value = raw.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigValidationError(f"{key} must be true or false")
    return value


def parse_config(raw: Dict[str, Any], interval_override: Optional[str] = None) -> StatisticsConfig:
    """
    Build a validated config from a decoded JSON document.

    Args:
        raw (dict): Decoded config document
        interval_override (str, optional): Interval override in seconds

    Returns:
        StatisticsConfig: The validated configuration

    Raises:
        ConfigValidationError: If a field is missing, unknown or invalid
    """
    if not isinstance(raw, dict):
        raise ConfigValidationError("statistics config must be a JSON object")

    unknown = set(raw) - KNOWN_KEYS - LEGACY_KEYS
    if unknown:
        raise ConfigValidationError(f"Unknown statistics config keys: {', '.join(sorted(unknown))}")

    return StatisticsConfig(
        endpoint=_require_non_blank(raw, 'endpoint'),
        bearer_token=_require_non_blank(raw, 'bearerToken'),
        vanity_url=_require_non_blank(raw, 'vanityUrl'),
        send_player_list=_optional_bool(raw, 'sendPlayerList'),
        send_plugin_list=_optional_bool(raw, 'sendPluginList'),
        interval_seconds=resolve_interval(interval_override),
    )


def load_config(path: Optional[str] = None, interval_override: Optional[str] = None) -> StatisticsConfig:
    """
    Load and validate the statistics config file.

    Args:
        path (str, optional): Path to the JSON file. Defaults to config.CONFIG_FILE.
        interval_override (str, optional): Interval override in seconds.
            Defaults to the STATISTICS_INTERVAL_SECONDS environment variable.

    Returns:
        StatisticsConfig: The validated configuration

    Raises:
        ConfigValidationError: If the file is missing, empty or invalid
    """
    path = path or config.CONFIG_FILE
    if interval_override is None:
        interval_override = config.INTERVAL_OVERRIDE

    if not os.path.exists(path):
        raise ConfigValidationError(f"Missing statistics config: {os.path.abspath(path)}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except IOError as e:
        raise ConfigValidationError(f"Cannot read statistics config {os.path.abspath(path)}: {e}")

    if not content.strip():
        raise ConfigValidationError(f"Statistics config is empty: {os.path.abspath(path)}")

    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"Statistics config is not valid JSON ({os.path.abspath(path)}): {e}")

    loaded = parse_config(raw, interval_override)
    logger.debug("Loaded statistics config from %s: %r", path, loaded)
    return loaded


def ensure_config_exists(path: Optional[str] = None) -> bool:
    """
    Create the default config template if the file does not exist yet.

    Args:
        path (str, optional): Path to the JSON file. Defaults to config.CONFIG_FILE.

    Returns:
        bool: True if the file exists afterwards, False if it could not be created
    """
    path = path or config.CONFIG_FILE
    if os.path.exists(path):
        return True

    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(DEFAULT_CONFIG, f, indent=2)
            f.write('\n')
    except OSError as e:
        logger.error("Failed to create statistics config at %s: %s", os.path.abspath(path), e)
        return False

    logger.info("Created default statistics config: %s", os.path.abspath(path))
    logger.info("Please open the file and fill in endpoint, bearerToken and vanityUrl before starting.")
    return True
