"""
HTTP client for sending telemetry payloads to the server.
"""
import logging
from dataclasses import dataclass

import requests
from urllib3.exceptions import ReadTimeoutError

from . import config as settings
from .config import StatisticsConfig
from .errors import NetworkError, Timeout
from .http_io import read_utf8_limited
from .payload import StatisticsPayload

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024


@dataclass(frozen=True)
class SendResult:
    """
    Outcome of one telemetry POST.

    Attributes:
        status_code (int): HTTP status returned by the server
        response_body (str): Response text, at most MAX_RESPONSE_BYTES bytes of it
        truncated (bool): True if the server sent more than was read
    """
    status_code: int
    response_body: str
    truncated: bool


def send_payload(config: StatisticsConfig, payload: StatisticsPayload) -> SendResult:
    """
    POST a payload to the telemetry endpoint.

    Args:
        config (StatisticsConfig): Reporter configuration
        payload (StatisticsPayload): Payload to send

    Returns:
        SendResult: Status code and the (possibly truncated) response body

    Raises:
        Timeout: If connecting or reading timed out
        NetworkError: If the endpoint could not be reached
    """
    body = payload.to_json()
    endpoint = config.telemetry_endpoint

    headers = {
        'Content-Type': 'application/json',
        'Authorization': f'Bearer {config.bearer_token}'
    }

    logger.info("Sending telemetry: endpoint=%s, vanityUrl=%s, payload=%s",
                endpoint, payload.vanity_url, body)

    try:
        with requests.post(
            endpoint,
            data=body.encode('utf-8'),
            headers=headers,
            timeout=(config.connect_timeout, config.read_timeout),
            stream=True
        ) as response:
            limited = read_utf8_limited(
                response.iter_content(chunk_size=READ_CHUNK_SIZE),
                settings.MAX_RESPONSE_BYTES
            )
            status_code = response.status_code
    except requests.Timeout as e:
        raise Timeout(f"Telemetry request to {endpoint} timed out: {e}") from e
    except requests.ConnectionError as e:
        # requests reports a read timeout while streaming the body as ConnectionError
        if e.args and isinstance(e.args[0], ReadTimeoutError):
            raise Timeout(f"Telemetry request to {endpoint} timed out: {e}") from e
        raise NetworkError(f"Telemetry request to {endpoint} failed: {e}") from e
    except requests.RequestException as e:
        raise NetworkError(f"Telemetry request to {endpoint} failed: {e}") from e

    return SendResult(status_code, limited.text or '', limited.truncated)
