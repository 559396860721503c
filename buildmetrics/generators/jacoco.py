"""JaCoCo XML coverage report generator."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator

LOG = logging.getLogger(__name__)

DEFAULT_REPORTS = ('jacoco.xml', 'target/site/jacoco/jacoco.xml', 'build/reports/jacoco/test/jacocoTestReport.xml')

COUNTER_TYPES = ('INSTRUCTION', 'BRANCH', 'LINE', 'COMPLEXITY', 'METHOD', 'CLASS')


class JacocoPointGenerator(PointGenerator):
    """Report-level JaCoCo counters as covered/missed/coverage-rate fields."""

    name = 'JaCoCo'

    def __init__(self, context: GeneratorContext, report_path: Optional[str] = None):
        super().__init__(context)
        self.report_path = Path(report_path) if report_path else self._find_report()

    def _find_report(self) -> Path:
        workspace = self.context.workspace_path
        for candidate in DEFAULT_REPORTS:
            path = workspace / candidate
            if path.is_file():
                return path
        return workspace / DEFAULT_REPORTS[0]

    def has_data(self) -> bool:
        return self.report_path.is_file()

    def generate(self) -> List[Point]:
        root = ET.parse(self.report_path).getroot()
        if root.tag != 'report':
            raise ValueError(f"{self.report_path} is not a JaCoCo report (root <{root.tag}>)")

        fields = {}
        # Only the report's direct counters are the totals
        for counter in root.findall('counter'):
            counter_type = counter.get('type', '')
            if counter_type not in COUNTER_TYPES:
                continue
            missed = int(counter.get('missed', 0))
            covered = int(counter.get('covered', 0))
            total = missed + covered
            prefix = f"jacoco_{counter_type.lower()}"
            fields[f"{prefix}_covered"] = covered
            fields[f"{prefix}_missed"] = missed
            fields[f"{prefix}_coverage_rate"] = round(100.0 * covered / total, 2) if total else 0.0

        if not fields:
            LOG.debug(f"JaCoCo report {self.report_path} has no report-level counters")
            return []

        return [self.build_point(self.measurement('jacoco_data'), fields=fields)]
