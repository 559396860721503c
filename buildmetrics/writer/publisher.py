"""
Batch publisher.
Writes the collected points to every configured target, isolating failures
per target according to each target's failure policy.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..core.console import CONSOLE_PREFIX, ConsoleSink, NullConsole
from ..core.target import Target
from ..errors import InfluxReportException
from ..schema.point import Batch, ConsistencyLevel, Point
from .base import TargetConnection
from .influxdb_writer import connect as influxdb_connect

# Initialize logger
LOG = logging.getLogger(__name__)

Connector = Callable[[Target], TargetConnection]


@dataclass
class TargetWriteResult:
    """Outcome of writing the batch to one target."""
    target: Target
    success: bool
    point_count: int = 0
    error: Optional[BaseException] = None

    @property
    def expose(self) -> bool:
        """Failure must be raised to the caller instead of logged."""
        return not self.success and self.target.expose_exceptions


class BatchPublisher:
    """
    Writes one batch per target, sequentially, in target order.
    """

    def __init__(self, connect: Optional[Connector] = None, console: Optional[ConsoleSink] = None,
                 verbose: bool = False):
        """
        Initialize the publisher.

        Args:
            connect: Connection factory (defaults to InfluxDB)
            console: Sink for human-readable progress messages
            verbose: Mirror progress to the console
        """
        self.connect = connect or influxdb_connect
        self.console = console or NullConsole()
        self.verbose = verbose

    def _print(self, message: str) -> None:
        if self.verbose:
            self.console.println(f"{CONSOLE_PREFIX} {message}")

    @staticmethod
    def build_batch(points: Sequence[Point], target: Target) -> Batch:
        """Same point list for every target; no per-target filtering."""
        return Batch(
            database=target.database,
            retention_policy=target.retention_policy,
            consistency=ConsistencyLevel.ANY,
            points=list(points),
        )

    def write_target(self, points: Sequence[Point], target: Target) -> TargetWriteResult:
        """
        Connect, write and close for one target.

        Connection, write and close failures are all captured in the result.
        """
        batch = self.build_batch(points, target)
        try:
            connection = self.connect(target)
            try:
                connection.write(batch)
            finally:
                connection.close()
        except Exception as e:
            return TargetWriteResult(target=target, success=False, error=e)

        return TargetWriteResult(target=target, success=True, point_count=len(batch))

    def publish(self, points: Sequence[Point], targets: Sequence[Target]) -> List[TargetWriteResult]:
        """
        Write the points to every target.

        Args:
            points: Collected points, shared verbatim across targets
            targets: Targets in write order; may be empty

        Returns:
            One result per attempted target

        Raises:
            InfluxReportException: a target with expose_exceptions failed;
                later targets are not attempted
        """
        results = []
        for target in targets:
            message = f"Publishing data to: {target}"
            LOG.debug(message)
            self._print(message)

            result = self.write_target(points, target)
            results.append(result)

            if result.success:
                LOG.info(f"Wrote {result.point_count} points to {target}")
                continue

            if result.expose:
                raise InfluxReportException(
                    f"Could not report to InfluxDB target {target}: {result.error}", target=target
                ) from result.error

            LOG.warning(f"Could not report to InfluxDB target {target}. Ignoring Exception: {result.error}")

        successful = sum(1 for r in results if r.success)
        LOG.info(f"Publication completed: {successful}/{len(targets)} targets successful")
        return results
