"""
JUnit XML test result generator.

Accepts both ``<testsuites>`` and bare ``<testsuite>`` documents, as written by
pytest (``--junitxml``), Maven Surefire, Gradle and most other test runners.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator

LOG = logging.getLogger(__name__)

# Known report locations, relative to the workspace; no recursive scan by default
DEFAULT_PATTERNS = (
    'TEST-*.xml',
    'junit*.xml',
    'reports/junit*.xml',
    'test-reports/*.xml',
    'target/surefire-reports/TEST-*.xml',
    'target/failsafe-reports/TEST-*.xml',
    'build/test-results/*/TEST-*.xml',
)

SUITE_NAME = 'suite_name'


def _suite_counts(suite: ET.Element) -> Dict[str, float]:
    """Counts for one <testsuite>, from its testcases or, failing that, its attributes."""
    cases = suite.findall('testcase')
    if cases:
        failures = sum(1 for c in cases if c.find('failure') is not None)
        errors = sum(1 for c in cases if c.find('error') is not None)
        skipped = sum(1 for c in cases if c.find('skipped') is not None)
        tests = len(cases)
        duration = sum(float(c.get('time', 0) or 0) for c in cases)
    else:
        tests = int(suite.get('tests', 0) or 0)
        failures = int(suite.get('failures', 0) or 0)
        errors = int(suite.get('errors', 0) or 0)
        skipped = int(suite.get('skipped', suite.get('skips', 0)) or 0)
        duration = float(suite.get('time', 0) or 0)

    return {
        'tests': tests,
        'failures': failures,
        'errors': errors,
        'skipped': skipped,
        'passed': max(0, tests - failures - errors - skipped),
        'duration': duration,
    }


class JUnitPointGenerator(PointGenerator):
    """One summary point plus one point per test suite."""

    name = 'JUnit'

    def __init__(self, context: GeneratorContext, patterns: Optional[Sequence[str]] = None):
        super().__init__(context)
        self.patterns = tuple(patterns or DEFAULT_PATTERNS)
        self._report_files: Optional[List[Path]] = None

    def report_files(self) -> List[Path]:
        """Report files matching the patterns; the workspace is scanned once per generator."""
        if self._report_files is None:
            workspace = self.context.workspace_path
            files = set()
            for pattern in self.patterns:
                files.update(p for p in workspace.glob(pattern) if p.is_file())
            self._report_files = sorted(files)
        return self._report_files

    def has_data(self) -> bool:
        return bool(self.report_files())

    @staticmethod
    def _suites(root: ET.Element) -> Iterable[ET.Element]:
        if root.tag == 'testsuite':
            return [root]
        if root.tag == 'testsuites':
            return root.iter('testsuite')
        raise ValueError(f"Not a JUnit report (root <{root.tag}>)")

    def generate(self) -> List[Point]:
        suite_points = []
        totals = {'tests': 0, 'failures': 0, 'errors': 0, 'skipped': 0, 'passed': 0, 'duration': 0.0}
        suite_count = 0

        for report in self.report_files():
            root = ET.parse(report).getroot()
            for suite in self._suites(root):
                counts = _suite_counts(suite)
                suite_count += 1
                for key, value in counts.items():
                    totals[key] += value

                suite_points.append(self.build_point(
                    self.measurement('junit_suite_data'),
                    fields={
                        'suite_tests': counts['tests'],
                        'suite_failures': counts['failures'],
                        'suite_errors': counts['errors'],
                        'suite_skipped': counts['skipped'],
                        'suite_passed': counts['passed'],
                        'suite_duration': round(counts['duration'], 3),
                    },
                    tags={SUITE_NAME: suite.get('name') or report.stem},
                ))

        if not suite_count:
            return []

        summary = self.build_point(
            self.measurement('junit_data'),
            fields={
                'junit_suites': suite_count,
                'junit_tests': totals['tests'],
                'junit_failures': totals['failures'],
                'junit_errors': totals['errors'],
                'junit_skipped': totals['skipped'],
                'junit_passed': totals['passed'],
                'junit_duration': round(totals['duration'], 3),
                'junit_successful': totals['failures'] == 0 and totals['errors'] == 0,
            },
        )
        return [summary] + suite_points
