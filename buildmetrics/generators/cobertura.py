"""
Cobertura coverage report generator.

Reads a Cobertura XML report (as written by ``coverage xml`` or any
Cobertura-compatible tool) from the workspace.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator

LOG = logging.getLogger(__name__)

DEFAULT_REPORT = 'coverage.xml'

COBERTURA_NUMBER_OF_PACKAGES = 'cobertura_number_of_packages'
COBERTURA_NUMBER_OF_SOURCE_FILES = 'cobertura_number_of_source_files'
COBERTURA_NUMBER_OF_CLASSES = 'cobertura_number_of_classes'
COBERTURA_NUMBER_OF_LINES = 'cobertura_number_of_lines'
COBERTURA_NUMBER_OF_CONDITIONALS = 'cobertura_number_of_conditionals'
COBERTURA_PACKAGE_COVERAGE_RATE = 'cobertura_package_coverage_rate'
COBERTURA_CLASS_COVERAGE_RATE = 'cobertura_class_coverage_rate'
COBERTURA_LINE_COVERAGE_RATE = 'cobertura_line_coverage_rate'
COBERTURA_BRANCH_COVERAGE_RATE = 'cobertura_branch_coverage_rate'


def _percent(covered: int, total: int) -> float:
    return round(100.0 * covered / total, 2) if total else 0.0


def _rate(element: ET.Element, attribute: str) -> float:
    return round(float(element.get(attribute, 0) or 0) * 100.0, 2)


class CoberturaPointGenerator(PointGenerator):

    name = 'Cobertura'

    def __init__(self, context: GeneratorContext, report_path: Optional[str] = None):
        super().__init__(context)
        self.report_path = Path(report_path) if report_path else context.workspace_path / DEFAULT_REPORT

    def has_data(self) -> bool:
        return self.report_path.is_file()

    def generate(self) -> List[Point]:
        root = ET.parse(self.report_path).getroot()
        if root.tag != 'coverage':
            raise ValueError(f"{self.report_path} is not a Cobertura report (root <{root.tag}>)")

        packages = root.findall('./packages/package')
        classes = root.findall('./packages/package/classes/class')
        lines = root.findall('./packages/package/classes/class/lines/line')

        source_files = {c.get('filename') for c in classes if c.get('filename')}
        covered_packages = sum(1 for p in packages if float(p.get('line-rate', 0) or 0) > 0)
        covered_classes = sum(1 for c in classes if float(c.get('line-rate', 0) or 0) > 0)

        number_of_lines = int(root.get('lines-valid') or len(lines))
        number_of_conditionals = root.get('branches-valid')
        if number_of_conditionals is None:
            number_of_conditionals = sum(1 for line in lines if line.get('branch') == 'true')

        fields = {
            COBERTURA_NUMBER_OF_PACKAGES: len(packages),
            COBERTURA_NUMBER_OF_SOURCE_FILES: len(source_files),
            COBERTURA_NUMBER_OF_CLASSES: len(classes),
            COBERTURA_NUMBER_OF_LINES: number_of_lines,
            COBERTURA_NUMBER_OF_CONDITIONALS: int(number_of_conditionals),
            COBERTURA_PACKAGE_COVERAGE_RATE: _percent(covered_packages, len(packages)),
            COBERTURA_CLASS_COVERAGE_RATE: _percent(covered_classes, len(classes)),
            COBERTURA_LINE_COVERAGE_RATE: _rate(root, 'line-rate'),
            COBERTURA_BRANCH_COVERAGE_RATE: _rate(root, 'branch-rate'),
        }
        LOG.debug(f"Cobertura report {self.report_path}: {len(packages)} packages, {len(classes)} classes")
        return [self.build_point(self.measurement('cobertura_data'), fields=fields)]
