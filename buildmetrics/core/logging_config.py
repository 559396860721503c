"""Logging setup for the publisher.

Skip and failure events are logged at DEBUG; when the package logger is at
DEBUG they are also mirrored to the console sink.
"""

import logging
import os
from typing import Optional

PACKAGE_LOGGER = 'buildmetrics'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# HTTP client loggers that flood DEBUG output with request details
_CLIENT_LOGGERS = ('urllib3', 'influxdb_client', 'influxdb_client_3', 'reactivex')


class LoggingConfigurator:
    """Handles all logging setup independently of other configuration."""

    @staticmethod
    def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> None:
        """Configure root logging for a publish invocation.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_file: Optional path to log file, written in addition to the console
        """
        level = getattr(logging, log_level.upper())

        handlers = [logging.StreamHandler()]
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

        # Client libraries stay at WARNING unless they are explicitly debugged
        for name in _CLIENT_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))

    @staticmethod
    def is_verbose() -> bool:
        """True when diagnostic messages should also go to the console sink."""
        return logging.getLogger(PACKAGE_LOGGER).isEnabledFor(logging.DEBUG)
