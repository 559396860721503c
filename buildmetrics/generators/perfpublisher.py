"""
PerfPublisher report generator.

Reads PerfPublisher XML reports: a ``<report>`` holding ``<test>`` elements,
each with a ``<result>`` carrying success, timing, performance and free-form
metric measures::

    <report name="nightly" categ="benchmarks">
      <test name="parse_large_file" executed="yes">
        <result>
          <success passed="yes" state="100"/>
          <compiletime unit="s" mesure="0.4" isRelevant="true"/>
          <performance unit="%" mesure="92" isRelevant="true"/>
          <executiontime unit="s" mesure="12.5" isRelevant="true"/>
          <metrics>
            <throughput unit="MB/s" mesure="80.5" isRelevant="true"/>
          </metrics>
        </result>
      </test>
    </report>
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator

LOG = logging.getLogger(__name__)

DEFAULT_PATTERNS = ('perfpublisher*.xml', 'perfpublisher/*.xml', 'reports/perfpublisher/*.xml')

TEST_NAME = 'test_name'
METRIC_NAME = 'metric_name'
CATEGORY = 'category'
UNIT = 'unit'

# Result children measured for every test
TIMINGS = {
    'executiontime': 'execution_time',
    'compiletime': 'compile_time',
    'performance': 'performance',
}


def _measure(element: Optional[ET.Element]) -> Optional[float]:
    """The ``mesure`` of a relevant measure element, else None."""
    if element is None or element.get('isRelevant', 'true').lower() == 'false':
        return None
    value = element.get('mesure')
    if value in (None, ''):
        return None
    return float(value)


def _stats(values: List[float]) -> Dict[str, float]:
    return {
        'average': round(sum(values) / len(values), 3),
        'min': min(values),
        'max': max(values),
    }


class _TestResult:
    """Parsed view of one <test> element."""

    def __init__(self, test: ET.Element, category: Optional[str]):
        self.name = test.get('name', '')
        self.category = category
        self.executed = test.get('executed', 'yes').lower() == 'yes'

        result = test.find('result')
        success = result.find('success') if result is not None else None
        self.passed = success is not None and success.get('passed', 'no').lower() == 'yes'

        self.timings: Dict[str, float] = {}
        self.metrics: Dict[str, float] = {}
        self.units: Dict[str, str] = {}
        if result is None:
            return

        for element_name, field_name in TIMINGS.items():
            value = _measure(result.find(element_name))
            if value is not None:
                self.timings[field_name] = value

        metrics = result.find('metrics')
        for metric in (metrics if metrics is not None else []):
            metric_name = metric.get('name') or metric.tag
            value = _measure(metric)
            if value is None:
                continue
            self.metrics[metric_name] = value
            if metric.get('unit'):
                self.units[metric_name] = metric.get('unit')


class PerfPublisherPointGenerator(PointGenerator):
    """
    Summary, per-metric, per-test and per-test-metric points.

    Emits, in order: one ``perfpublisher_summary`` point, one
    ``perfpublisher_metric`` point per metric name, one ``perfpublisher_test``
    point per test, and one ``perfpublisher_test_metric`` point per measured
    metric of each test.
    """

    name = 'PerfPublisher'

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

    def _read_tests(self) -> List[_TestResult]:
        tests = []
        for report in self.report_files():
            root = ET.parse(report).getroot()
            if root.tag != 'report':
                LOG.debug(f"{report} is not a PerfPublisher report (root <{root.tag}>), skipping")
                continue
            category = root.get('categ')
            tests.extend(_TestResult(test, category) for test in root.findall('test'))
        return tests

    def generate(self) -> List[Point]:
        tests = self._read_tests()
        if not tests:
            return []

        executed = [t for t in tests if t.executed]
        summary_fields = {
            'number_of_tests': len(tests),
            'number_of_executed_tests': len(executed),
            'number_of_not_executed_tests': len(tests) - len(executed),
            'number_of_passed_tests': sum(1 for t in executed if t.passed),
            'number_of_failed_tests': sum(1 for t in executed if not t.passed),
        }
        for field_name in TIMINGS.values():
            values = [t.timings[field_name] for t in executed if field_name in t.timings]
            if values:
                for stat, value in _stats(values).items():
                    summary_fields[f"{stat}_{field_name}"] = value

        points = [self.build_point(self.measurement('perfpublisher_summary'), fields=summary_fields)]

        metric_values: Dict[str, List[float]] = {}
        for test in executed:
            for metric_name, value in test.metrics.items():
                metric_values.setdefault(metric_name, []).append(value)
        for metric_name, values in metric_values.items():
            points.append(self.build_point(
                self.measurement('perfpublisher_metric'),
                fields=_stats(values),
                tags={METRIC_NAME: metric_name},
            ))

        for test in tests:
            fields = {'successful': test.passed, 'executed': test.executed}
            fields.update(test.timings)
            points.append(self.build_point(
                self.measurement('perfpublisher_test'),
                fields=fields,
                tags={TEST_NAME: test.name, CATEGORY: test.category},
            ))

        for test in tests:
            for metric_name, value in test.metrics.items():
                points.append(self.build_point(
                    self.measurement('perfpublisher_test_metric'),
                    fields={'value': value},
                    tags={TEST_NAME: test.name, METRIC_NAME: metric_name, UNIT: test.units.get(metric_name)},
                ))

        return points
