"""Collection orchestration: drive every generator and gather one ordered point list.

Each generator runs behind its own failure boundary so a missing or broken
source never stops collection from the others.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..generators.base import GeneratorContext, PointGenerator
from ..generators.registry import probe_capabilities
from ..schema.point import Point
from .console import CONSOLE_PREFIX, ConsoleSink, NullConsole


@dataclass
class CollectionReport:
    """Outcome of one collection pass."""
    points: List[Point] = field(default_factory=list)
    collected: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class PointCollector:
    """Runs generators in order and concatenates their points."""

    def __init__(self, console: Optional[ConsoleSink] = None, verbose: bool = False):
        """Initialize collector.

        Args:
            console: Sink for human-readable progress messages
            verbose: Mirror skip/failure diagnostics to the console
        """
        self.console = console or NullConsole()
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)

    def _print(self, message: str) -> None:
        if self.verbose:
            self.console.println(f"{CONSOLE_PREFIX} {message}")

    def _has_data(self, generator: PointGenerator) -> bool:
        try:
            return bool(generator.has_data())
        except Exception as e:
            self.logger.debug(f"{generator.name}: data check failed, treating as empty: {e}")
            return False

    def collect(self, context: GeneratorContext, generators: Sequence[PointGenerator],
                capabilities: Optional[Dict[str, bool]] = None) -> List[Point]:
        """Collect points from every generator; see collect_with_report."""
        return self.collect_with_report(context, generators, capabilities).points

    def collect_with_report(self, context: GeneratorContext, generators: Sequence[PointGenerator],
                            capabilities: Optional[Dict[str, bool]] = None) -> CollectionReport:
        """
        Collect points from every generator in order.

        Args:
            context: Run context the generators were built with
            generators: Generators in collection order
            capabilities: Result of probe_capabilities; probed here when omitted

        Returns:
            CollectionReport whose points are the concatenation of each
            successful generator's output, in generator order
        """
        if capabilities is None:
            capabilities = probe_capabilities(generators)

        report = CollectionReport()
        self.logger.debug(f"Collecting points for {context.project_name} from {len(generators)} generators")

        for generator in generators:
            if generator.requires and not capabilities.get(generator.requires, False):
                self.logger.debug(f"Plugin skipped: {generator.name} ('{generator.requires}' not available)")
                report.unavailable.append(generator.name)
                continue

            if not self._has_data(generator):
                self.logger.debug(f"Data source empty: {generator.name}")
                report.skipped.append(generator.name)
                continue

            self._print(f"{generator.name} data found. Writing to InfluxDB...")
            try:
                points = list(generator.generate())
            except Exception as e:
                self.logger.debug(f"{generator.name}: failed to collect data: {e}", exc_info=True)
                self._print(f"Failed to collect data. Ignoring Exception: {e}")
                report.failed[generator.name] = str(e)
                continue

            report.points.extend(points)
            report.collected.append(generator.name)
            self.logger.debug(f"{generator.name}: {len(points)} points")

        self.logger.info(f"Collected {len(report.points)} points "
                         f"({len(report.collected)} sources, {len(report.skipped)} empty, "
                         f"{len(report.unavailable)} unavailable, {len(report.failed)} failed)")
        return report
