"""
Load test results generator.

Summarizes JMeter results files (``.jtl`` in CSV form, JMeter's default output)
found under the workspace, one point per results file.
"""

import csv
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator

LOG = logging.getLogger(__name__)

DEFAULT_PATTERNS = (
    '*.jtl',
    'jmeter/*.jtl',
    'performance/*.jtl',
    'target/jmeter/results/*.jtl',
)

REPORT_NAME = 'report_name'

PERFORMANCE_SIZE = 'size'
PERFORMANCE_ERROR_COUNT = 'error_count'
PERFORMANCE_ERROR_PERCENT = 'error_percent'
PERFORMANCE_AVERAGE = 'average'
PERFORMANCE_MIN = 'min'
PERFORMANCE_MAX = 'max'
PERFORMANCE_MEDIAN = 'median'
PERFORMANCE_90_PERCENTILE = 'percentile_90'
PERFORMANCE_TOTAL_TRAFFIC = 'total_traffic'


def percentile(sorted_values: Sequence[int], percent: float) -> int:
    """Nearest-rank percentile of an ascending, non-empty sequence."""
    rank = max(1, math.ceil(percent * len(sorted_values) / 100.0))
    return sorted_values[rank - 1]


def summarize_samples(rows) -> Optional[Dict[str, float]]:
    """
    Aggregate JMeter sample rows.

    Args:
        rows: Mappings with at least ``elapsed``; ``success`` and ``bytes`` are optional

    Returns:
        Performance fields, or None when there are no samples
    """
    elapsed = []
    errors = 0
    traffic = 0
    for row in rows:
        value = row.get('elapsed')
        if value in (None, ''):
            continue
        elapsed.append(int(float(value)))
        if str(row.get('success', 'true')).strip().lower() != 'true':
            errors += 1
        traffic += int(float(row.get('bytes') or 0))

    if not elapsed:
        return None

    elapsed.sort()
    size = len(elapsed)
    return {
        PERFORMANCE_SIZE: size,
        PERFORMANCE_ERROR_COUNT: errors,
        PERFORMANCE_ERROR_PERCENT: round(100.0 * errors / size, 2),
        PERFORMANCE_AVERAGE: round(sum(elapsed) / size, 2),
        PERFORMANCE_MIN: elapsed[0],
        PERFORMANCE_MAX: elapsed[-1],
        PERFORMANCE_MEDIAN: percentile(elapsed, 50),
        PERFORMANCE_90_PERCENTILE: percentile(elapsed, 90),
        PERFORMANCE_TOTAL_TRAFFIC: round(traffic / 1024.0, 2),
    }


class PerformancePointGenerator(PointGenerator):
    """One ``performance_data`` point per load test results file."""

    name = 'Performance'

    def __init__(self, context: GeneratorContext, patterns: Optional[Sequence[str]] = None):
        super().__init__(context)
        self.patterns = tuple(patterns or DEFAULT_PATTERNS)
        self._report_files: Optional[List[Path]] = None

    def report_files(self) -> List[Path]:
        if self._report_files is None:
            workspace = self.context.workspace_path
            files = set()
            for pattern in self.patterns:
                files.update(p for p in workspace.glob(pattern) if p.is_file())
            self._report_files = sorted(files)
        return self._report_files

    def has_data(self) -> bool:
        return bool(self.report_files())

    def generate(self) -> List[Point]:
        points = []
        for report in self.report_files():
            with open(report, newline='', encoding='utf-8') as f:
                reader = csv.DictReader(f)
                if not reader.fieldnames or 'elapsed' not in reader.fieldnames:
                    raise ValueError(f"{report} is not a CSV JMeter results file")
                fields = summarize_samples(reader)

            if fields is None:
                LOG.debug(f"Results file {report} has no samples, skipping")
                continue
            points.append(self.build_point(
                self.measurement('performance_data'),
                fields=fields,
                tags={REPORT_NAME: report.name},
            ))
        return points
