"""Publication target configuration.

Separates per-destination connection details and failure policy from the
main publisher config.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from ..errors import ConfigurationError

WRITE_PRECISIONS = ('ns', 'us', 'ms', 's')


@dataclass(frozen=True)
class Target:
    """One InfluxDB destination.

    Constructed before a run and never modified during it.
    """

    url: str
    database: str
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    retention_policy: Optional[str] = None
    expose_exceptions: bool = False  # raise write failures instead of logging them
    description: Optional[str] = None
    write_precision: str = 'ns'

    def __post_init__(self):
        """Validate target configuration after initialization."""
        if not self.url:
            raise ConfigurationError("url required for target")
        if urlparse(self.url).scheme not in ('http', 'https'):
            raise ConfigurationError(f"target url must be http or https: {self.url}")
        if not self.database:
            raise ConfigurationError(f"database required for target {self.url}")
        if self.write_precision not in WRITE_PRECISIONS:
            raise ConfigurationError(f"write_precision must be one of {list(WRITE_PRECISIONS)}")

    @property
    def has_credentials(self) -> bool:
        return bool(self.username)

    def __str__(self) -> str:
        return self.description or self.url

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with the password redacted."""
        return {
            'url': self.url,
            'database': self.database,
            'username': self.username,
            'password': '[REDACTED]' if self.password else None,
            'retention_policy': self.retention_policy,
            'expose_exceptions': self.expose_exceptions,
            'description': self.description,
            'write_precision': self.write_precision,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Target':
        """Create a target from a config-file entry (snake_case or camelCase keys)."""
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        expose = pick('expose_exceptions', 'exposeExceptions', default=False)
        if isinstance(expose, str):
            expose = expose.strip().lower() in ('1', 'true', 'yes', 'on')

        return cls(
            url=pick('url'),
            database=pick('database'),
            username=pick('username'),
            password=pick('password'),
            retention_policy=pick('retention_policy', 'retentionPolicy'),
            expose_exceptions=bool(expose),
            description=pick('description'),
            write_precision=pick('write_precision', 'writePrecision', default='ns'),
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Optional['Target']:
        """Build the implicit target from INFLUXDB_* variables, if they are set."""
        env = os.environ if env is None else env
        url = env.get('INFLUXDB_URL')
        database = env.get('INFLUXDB_DATABASE')
        if not url or not database:
            return None
        return cls(
            url=url,
            database=database,
            username=env.get('INFLUXDB_USERNAME') or None,
            password=env.get('INFLUXDB_PASSWORD') or None,
            retention_policy=env.get('INFLUXDB_RETENTION_POLICY') or None,
            expose_exceptions=env.get('INFLUXDB_EXPOSE_EXCEPTIONS', '').lower() in ('1', 'true', 'yes'),
        )
