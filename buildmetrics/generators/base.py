"""Base PointGenerator interface and shared generator context."""

import importlib.util
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..core.build import BuildInfo
from ..core.config import DEFAULT_MEASUREMENT_NAME
from ..core.renderer import measurement_name
from ..schema.point import Point

LOG = logging.getLogger(__name__)

# Standard tag/field names shared by every generator
PROJECT_NAME = 'project_name'
PROJECT_PATH = 'project_path'
BUILD_NUMBER = 'build_number'
CUSTOM_PREFIX = 'prefix'


def module_available(module: Optional[str]) -> bool:
    """Capability probe: whether the named module can be imported here."""
    if not module:
        return True
    try:
        return importlib.util.find_spec(module) is not None
    except (ImportError, ValueError):
        return False


def sanitize_tag_key(key: str, enabled: bool) -> str:
    """Replace every '-' in a tag key with '_' when enabled."""
    if not enabled:
        return key
    return key.replace('-', '_')


@dataclass(frozen=True)
class GeneratorContext:
    """Per-run, read-only inputs handed to every generator."""
    build: BuildInfo
    project_name: str
    timestamp: int
    custom_prefix: Optional[str] = None
    replace_dash_with_underscore: bool = False
    measurement_name: str = DEFAULT_MEASUREMENT_NAME
    custom_data: Mapping[str, Any] = field(default_factory=dict)
    custom_data_tags: Mapping[str, str] = field(default_factory=dict)
    custom_data_map: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    custom_data_map_tags: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    env_parameter_field: Optional[str] = None
    env_parameter_tag: Optional[str] = None
    workspace: Optional[str] = None

    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace or self.build.workspace or '.')


class PointGenerator(ABC):
    """Abstract base class for all point generators.

    ``has_data`` must be cheap and must not raise; ``generate`` may raise and
    the collector isolates the failure.
    """

    #: Display name used in log and console messages
    name: str = 'generator'

    #: Importable module this generator needs at runtime, if any
    requires: Optional[str] = None

    def __init__(self, context: GeneratorContext):
        self.context = context

    @abstractmethod
    def has_data(self) -> bool:
        """Whether this source produced usable data in the current run."""
        pass

    @abstractmethod
    def generate(self) -> List[Point]:
        """Extract the points for this source."""
        pass

    def sanitize(self, key: str) -> str:
        return sanitize_tag_key(key, self.context.replace_dash_with_underscore)

    def sanitize_tags(self, tags: Mapping[str, Any]) -> Dict[str, Any]:
        return {self.sanitize(str(key)): value for key, value in tags.items()}

    def measurement(self, name: str) -> str:
        """Measurement name with the custom prefix applied."""
        return measurement_name(self.context.custom_prefix, name)

    def build_point(self, measurement: str, fields: Optional[Mapping[str, Any]] = None,
                    tags: Optional[Mapping[str, Any]] = None) -> Point:
        """
        Create a point carrying the standard project fields and tags.

        Args:
            measurement: Final measurement name
            fields: Generator-specific fields, added after the standard ones
            tags: Generator-specific tags, added after the standard ones

        Returns:
            Point with sanitized tag keys and the run timestamp
        """
        ctx = self.context
        point_fields: Dict[str, Any] = {
            PROJECT_NAME: ctx.project_name,
            PROJECT_PATH: ctx.build.full_name,
            BUILD_NUMBER: ctx.build.number,
        }
        point_fields.update(fields or {})

        point_tags: Dict[str, Any] = {
            PROJECT_NAME: ctx.project_name,
            PROJECT_PATH: ctx.build.full_name,
        }
        if ctx.custom_prefix:
            point_tags[CUSTOM_PREFIX] = ctx.custom_prefix
        point_tags.update(tags or {})

        return Point(
            name=measurement,
            tags=self.sanitize_tags(point_tags),
            fields=point_fields,
            timestamp=ctx.timestamp,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
