"""
SonarQube quality gate metrics generator.

Finds the ``report-task.txt`` written by the SonarQube scanner, then queries
the server named in it for the project's measures.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
import urllib3

from ..schema.point import Point
from .base import GeneratorContext, PointGenerator

LOG = logging.getLogger(__name__)

REPORT_TASK_LOCATIONS = (
    '.scannerwork/report-task.txt',
    'target/sonar/report-task.txt',
    'build/sonar/report-task.txt',
)

METRIC_KEYS = (
    'bugs', 'vulnerabilities', 'code_smells', 'coverage', 'duplicated_lines_density',
    'ncloc', 'complexity', 'sqale_index', 'violations', 'blocker_violations',
    'critical_violations', 'major_violations', 'minor_violations', 'info_violations',
    'lines', 'alert_status',
)

REQUEST_TIMEOUT = 10


def parse_report_task(path: Path) -> Dict[str, str]:
    """Parse the scanner's key=value report-task file."""
    properties = {}
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, value = line.split('=', 1)
            properties[key.strip()] = value.strip()
    return properties


def _measure_value(value: Optional[str]) -> Any:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        try:
            return float(value)
        except ValueError:
            return value


class SonarQubePointGenerator(PointGenerator):
    """One point with the project's SonarQube measures, prefixed ``sonarqube_``."""

    name = 'SonarQube'

    def __init__(self, context: GeneratorContext, report_task: Optional[str] = None,
                 token: Optional[str] = None, verify_tls: Optional[bool] = None):
        super().__init__(context)
        self.report_task = Path(report_task) if report_task else self._find_report_task()
        self.token = token if token is not None else context.build.resolve('SONAR_TOKEN') or os.getenv('SONAR_TOKEN')
        if verify_tls is None:
            verify_tls = (context.build.resolve('SONAR_TLS_VERIFY') or 'true').lower() not in ('0', 'false', 'no')
        self.verify_tls = verify_tls

    def _find_report_task(self) -> Path:
        workspace = self.context.workspace_path
        for candidate in REPORT_TASK_LOCATIONS:
            path = workspace / candidate
            if path.is_file():
                return path
        return workspace / REPORT_TASK_LOCATIONS[0]

    def has_data(self) -> bool:
        return self.report_task.is_file()

    def fetch_measures(self, server_url: str, project_key: str) -> Dict[str, Any]:
        """Query /api/measures/component for the configured metric keys."""
        if not self.verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        url = f"{server_url.rstrip('/')}/api/measures/component"
        params = {'component': project_key, 'metricKeys': ','.join(METRIC_KEYS)}
        auth = (self.token, '') if self.token else None

        response = requests.get(url, params=params, auth=auth, timeout=REQUEST_TIMEOUT, verify=self.verify_tls)
        response.raise_for_status()

        measures = response.json().get('component', {}).get('measures', [])
        return {m['metric']: _measure_value(m.get('value')) for m in measures if 'metric' in m}

    def generate(self) -> List[Point]:
        task = parse_report_task(self.report_task)
        server_url = task.get('serverUrl')
        project_key = task.get('projectKey')
        if not server_url or not project_key:
            raise ValueError(f"{self.report_task} lacks serverUrl or projectKey")

        measures = self.fetch_measures(server_url, project_key)
        if not measures:
            LOG.debug(f"SonarQube returned no measures for {project_key}")
            return []

        fields = {f"sonarqube_{metric}": value for metric, value in measures.items()}
        fields['sonarqube_project_key'] = project_key
        return [self.build_point(self.measurement('sonarqube_data'), fields=fields)]
