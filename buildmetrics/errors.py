"""Exception hierarchy for the build metrics publisher."""

from typing import Optional


class BuildMetricsError(Exception):
    """Base class for all publisher errors."""


class ConfigurationError(BuildMetricsError, ValueError):
    """Raised when publisher or target configuration is invalid."""


class InvalidPointError(BuildMetricsError, ValueError):
    """Raised when a point would be emitted without a name or without fields."""


class InfluxReportException(BuildMetricsError):
    """Raised when a strict target could not be written.

    Only targets configured with ``expose_exceptions`` raise this; the
    original transport error is available as ``__cause__``.
    """

    def __init__(self, message: str, target: Optional[object] = None):
        super().__init__(message)
        self.target = target
