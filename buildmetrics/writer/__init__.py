"""Writer module for the build metrics publisher.

Provides the target connection interface, the InfluxDB connection and the
batch publisher.
"""

from .base import TargetConnection
from .influxdb_writer import InfluxDBConnection, connect
from .publisher import BatchPublisher, TargetWriteResult

__all__ = ['TargetConnection', 'InfluxDBConnection', 'connect', 'BatchPublisher', 'TargetWriteResult']
