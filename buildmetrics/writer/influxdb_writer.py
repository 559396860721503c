"""
InfluxDB connection for the build metrics publisher.
Writes a batch of points to InfluxDB with a single synchronous write call.
"""

import logging
from typing import List, Optional

from influxdb_client_3 import InfluxDBClient3, Point as InfluxPoint
from influxdb_client_3.exceptions.exceptions import InfluxDBError

from ..core.target import Target
from ..schema.point import Batch, Point
from .base import TargetConnection

LOG = logging.getLogger(__name__)

# Nanoseconds per unit of each write precision
_PRECISION_DIVISORS = {
    'ns': 1,
    'us': 1_000,
    'ms': 1_000_000,
    's': 1_000_000_000,
}


def bucket_for(database: str, retention_policy: Optional[str] = None) -> str:
    """v1-compatible bucket name: ``database`` or ``database/retention_policy``."""
    if retention_policy:
        return f"{database}/{retention_policy}"
    return database


def to_influx_point(point: Point, precision: str = 'ns') -> InfluxPoint:
    """
    Convert a Point to an InfluxDB client point.

    Args:
        point: Point with an epoch-nanosecond timestamp
        precision: Target write precision the timestamp is scaled to

    Returns:
        influxdb_client_3 Point
    """
    influx_point = InfluxPoint(point.name)
    for key, value in point.tags.items():
        influx_point.tag(key, value)
    for key, value in point.fields.items():
        influx_point.field(key, value)
    if point.timestamp is not None:
        influx_point.time(point.timestamp // _PRECISION_DIVISORS[precision], precision)
    return influx_point


class InfluxDBConnection(TargetConnection):
    """
    Connection to one InfluxDB target.

    Handles:
    - Anonymous access, or username/password sent as a v1-compatibility token
    - database/retention-policy bucket naming
    - Synchronous writes with no client-side batching or retries
    """

    def __init__(self, target: Target):
        """Create the client for a target. No network traffic happens here."""
        self.target = target
        self.precision = target.write_precision

        # The client requires a token; an empty one carries no credentials
        token = ''
        if target.has_credentials:
            token = f"{target.username}:{target.password or ''}"
            LOG.debug(f"Connecting to {target} as {target.username}")
        else:
            LOG.debug(f"Connecting to {target} anonymously")

        client_kwargs = {
            'host': target.url,
            'database': bucket_for(target.database, target.retention_policy),
            'token': token,
            'enable_gzip': True,
        }

        self.client = InfluxDBClient3(**client_kwargs)

    def write(self, batch: Batch) -> None:
        """Write every point of the batch in one call."""
        bucket = bucket_for(batch.database, batch.retention_policy)
        records: List[InfluxPoint] = [to_influx_point(p, self.precision) for p in batch.points]

        # InfluxDB 3 has no write consistency parameter; the level is informational
        LOG.debug(f"Writing {len(records)} points to {self.target} bucket={bucket} "
                  f"consistency={batch.consistency.value}")
        try:
            self.client.write(record=records, database=bucket, write_precision=self.precision)
        except InfluxDBError as e:
            LOG.debug(f"InfluxDB rejected write to {self.target}: {e}")
            raise

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None


def connect(target: Target) -> InfluxDBConnection:
    """Open a connection for a target (the default connection factory)."""
    return InfluxDBConnection(target)
