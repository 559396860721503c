"""
Robot Framework result generator.

Needs the optional ``robot`` package (``pip install buildmetrics[robot]``).
Without it the generator reports no data instead of failing.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator, module_available

LOG = logging.getLogger(__name__)

DEFAULT_REPORT = 'output.xml'

RF_TAG_NAME = 'rf_tag_name'


def _percent(passed: int, total: int) -> float:
    return round(100.0 * passed / total, 2) if total else 0.0


def _elapsed_ms(suite) -> Optional[int]:
    """Suite duration in milliseconds across Robot Framework versions."""
    elapsed = getattr(suite, 'elapsed_time', None)
    if elapsed is not None:
        return int(elapsed.total_seconds() * 1000)
    return getattr(suite, 'elapsedtime', None)


class RobotFrameworkPointGenerator(PointGenerator):
    """Totals from output.xml plus one point per test tag."""

    name = 'Robot Framework'
    requires = 'robot'

    def __init__(self, context: GeneratorContext, report_path: Optional[str] = None):
        super().__init__(context)
        self.report_path = Path(report_path) if report_path else context.workspace_path / DEFAULT_REPORT

    def has_data(self) -> bool:
        return module_available(self.requires) and self.report_path.is_file()

    def generate(self) -> List[Point]:
        from robot.api import ExecutionResult

        result = ExecutionResult(str(self.report_path))
        stats = result.statistics
        total = stats.total

        passed, failed = int(total.passed), int(total.failed)
        skipped = int(getattr(total, 'skipped', 0))
        executed = passed + failed + skipped

        points = [self.build_point(
            self.measurement('rf_results'),
            fields={
                'rf_passed': passed,
                'rf_failed': failed,
                'rf_skipped': skipped,
                'rf_total': executed,
                'rf_pass_percentage': _percent(passed, executed),
                'rf_duration': _elapsed_ms(result.suite),
                'rf_suites': len(result.suite.suites),
            },
        )]

        for tag_stat in stats.tags:
            tag_total = int(tag_stat.passed) + int(tag_stat.failed) + int(getattr(tag_stat, 'skipped', 0))
            points.append(self.build_point(
                self.measurement('rf_tag_results'),
                fields={
                    'rf_tag_passed': int(tag_stat.passed),
                    'rf_tag_failed': int(tag_stat.failed),
                    'rf_tag_total': tag_total,
                    'rf_tag_pass_percentage': _percent(int(tag_stat.passed), tag_total),
                },
                tags={RF_TAG_NAME: tag_stat.name},
            ))

        LOG.debug(f"Robot Framework results {self.report_path}: {passed} passed, {failed} failed")
        return points
