"""Read-only build context consumed by the point generators."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional


class BuildResult(Enum):
    """Build outcome, ordered from best to worst."""
    SUCCESS = 0
    UNSTABLE = 1
    FAILURE = 2
    NOT_BUILT = 3
    ABORTED = 4

    @property
    def ordinal(self) -> int:
        return self.value

    @property
    def status_message(self) -> str:
        return _STATUS_MESSAGES[self]

    @classmethod
    def from_string(cls, value: Optional[str]) -> Optional['BuildResult']:
        """Parse a result name such as 'SUCCESS' or 'not_built'. Unknown values yield None."""
        if not value:
            return None
        try:
            return cls[value.strip().upper().replace('-', '_').replace(' ', '_')]
        except KeyError:
            return None


_STATUS_MESSAGES = {
    BuildResult.SUCCESS: 'stable',
    BuildResult.UNSTABLE: 'unstable',
    BuildResult.FAILURE: 'broken',
    BuildResult.NOT_BUILT: 'not built',
    BuildResult.ABORTED: 'aborted',
}


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass
class BuildInfo:
    """Identity, outcome and environment of the build being reported."""
    full_name: str = ''
    number: int = 0
    result: Optional[BuildResult] = None
    duration_ms: int = 0
    start_time_ms: Optional[int] = None
    scheduled_time_ms: Optional[int] = None
    agent_name: Optional[str] = None
    causes: List[str] = field(default_factory=list)
    parameters: Dict[str, str] = field(default_factory=dict)
    environment: Dict[str, str] = field(default_factory=dict)
    workspace: Optional[str] = None
    health_score: Optional[int] = None

    @property
    def name(self) -> str:
        """Last segment of the project path."""
        return self.full_name.rstrip('/').rsplit('/', 1)[-1]

    @property
    def time_in_queue_ms(self) -> Optional[int]:
        if self.start_time_ms is None or self.scheduled_time_ms is None:
            return None
        return max(0, self.start_time_ms - self.scheduled_time_ms)

    def resolve(self, variable: str) -> Optional[str]:
        """Look up a build parameter, falling back to the build environment."""
        if variable in self.parameters:
            return self.parameters[variable]
        return self.environment.get(variable)

    @classmethod
    def from_environment(cls, env: Optional[Mapping[str, str]] = None) -> 'BuildInfo':
        """Create build info from the variables a CI server exports to its jobs."""
        env = dict(os.environ if env is None else env)
        cause = env.get('BUILD_CAUSE')
        return cls(
            full_name=env.get('JOB_NAME', ''),
            number=_int_or_none(env.get('BUILD_NUMBER')) or 0,
            result=BuildResult.from_string(env.get('BUILD_RESULT')),
            duration_ms=_int_or_none(env.get('BUILD_DURATION_MS')) or 0,
            start_time_ms=_int_or_none(env.get('BUILD_START_TIME_MS')),
            scheduled_time_ms=_int_or_none(env.get('BUILD_SCHEDULED_TIME_MS')),
            agent_name=env.get('NODE_NAME'),
            causes=[c.strip() for c in cause.split(',') if c.strip()] if cause else [],
            environment=env,
            workspace=env.get('WORKSPACE'),
            health_score=_int_or_none(env.get('BUILD_HEALTH')),
        )
