"""
Base build point generator.

Emits one point per build with duration, result and scheduling information,
plus any fields/tags declared through environment-parameter specs.
"""

import logging
from typing import Dict, List, Optional

from ..core.build import BuildInfo
from ..schema.point import Point
from .base import PointGenerator

LOG = logging.getLogger(__name__)

BUILD_TIME = 'build_time'
BUILD_STATUS_MESSAGE = 'build_status_message'
BUILD_RESULT = 'build_result'
BUILD_RESULT_ORDINAL = 'build_result_ordinal'
BUILD_SUCCESSFUL = 'build_successful'
BUILD_AGENT_NAME = 'build_agent_name'
BUILD_SCHEDULED_TIME = 'build_scheduled_time'
BUILD_EXEC_TIME = 'build_exec_time'
BUILD_MEASURED_TIME = 'build_measured_time'
TIME_IN_QUEUE = 'time_in_queue'
BUILD_CAUSE = 'build_cause'
PROJECT_BUILD_HEALTH = 'project_build_health'

UNKNOWN_RESULT = '?'
RESOLVE_SIGIL = '$'


def resolve_env_parameters(spec: Optional[str], build: BuildInfo) -> Dict[str, str]:
    """
    Parse newline separated KEY=VALUE lines.

    A value starting with '$' (``$VAR`` or ``${VAR}``) is looked up in the
    build parameters and environment; anything else is used literally.
    Malformed lines and unresolvable references are skipped.
    """
    resolved: Dict[str, str] = {}
    if not spec:
        return resolved

    for raw_line in spec.splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue

        key, sep, value = line.partition('=')
        key, value = key.strip(), value.strip()
        if not sep or not key:
            LOG.debug(f"Ignoring malformed parameter line: {line!r}")
            continue

        if value.startswith(RESOLVE_SIGIL):
            variable = value[1:]
            if variable.startswith('{') and variable.endswith('}'):
                variable = variable[1:-1]
            lookup = build.resolve(variable)
            if lookup is None:
                LOG.debug(f"Parameter {key} references unknown variable {variable}, skipping")
                continue
            value = lookup

        resolved[key] = value

    return resolved


class BuildBasePointGenerator(PointGenerator):
    """Always present: core metadata of the build itself."""

    name = 'Build'

    def has_data(self) -> bool:
        return True

    def generate(self) -> List[Point]:
        ctx = self.context
        build = ctx.build
        now_ms = ctx.timestamp // 1_000_000

        duration = build.duration_ms
        if not duration and build.start_time_ms is not None:
            # Build still running: measure up to the invocation timestamp
            duration = max(0, now_ms - build.start_time_ms)

        result = build.result
        fields = {
            BUILD_TIME: duration,
            BUILD_RESULT: result.name if result else UNKNOWN_RESULT,
            BUILD_RESULT_ORDINAL: result.ordinal if result else None,
            BUILD_SUCCESSFUL: result is not None and result.ordinal == 0,
            BUILD_STATUS_MESSAGE: result.status_message if result else None,
            BUILD_AGENT_NAME: build.agent_name,
            BUILD_SCHEDULED_TIME: build.scheduled_time_ms,
            BUILD_EXEC_TIME: build.start_time_ms,
            BUILD_MEASURED_TIME: now_ms,
            TIME_IN_QUEUE: build.time_in_queue_ms,
            BUILD_CAUSE: ', '.join(build.causes) if build.causes else None,
            PROJECT_BUILD_HEALTH: build.health_score,
        }
        fields.update(resolve_env_parameters(ctx.env_parameter_field, build))

        tags = {BUILD_RESULT: result.name if result else UNKNOWN_RESULT}
        tags.update(resolve_env_parameters(ctx.env_parameter_tag, build))

        return [self.build_point(ctx.measurement_name, fields=fields, tags=tags)]
