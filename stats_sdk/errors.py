"""
Exceptions raised by the statistics reporter.
"""


class StatisticsError(Exception):
    """Base class for all reporter errors."""


class ConfigValidationError(StatisticsError, ValueError):
    """Raised when the configuration is invalid. The reporter never starts."""


class ValidationError(StatisticsError, ValueError):
    """Raised when a payload cannot be built from the current snapshot."""


class NetworkError(StatisticsError):
    """Raised when the telemetry endpoint cannot be reached."""


class Timeout(NetworkError):
    """Raised when the telemetry endpoint does not answer in time."""
