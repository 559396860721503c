"""Project name rendering used to namespace points."""

import re
from typing import Optional

from .build import BuildInfo

DEFAULT_PROJECT_NAME = 'unknown_project'

_PATH_SEPARATORS = re.compile(r'[\\/]+')


def measurement_name(prefix: Optional[str], name: str) -> str:
    """Prepend ``prefix_`` to a name when a prefix is configured."""
    if prefix:
        return f"{prefix}_{name}"
    return name


class ProjectNameRenderer:
    """Derives the logical project name for a build.

    A custom project name wins verbatim; otherwise the build's project path is
    used with path separators flattened to underscores.
    """

    def __init__(self, custom_prefix: Optional[str] = None, custom_project_name: Optional[str] = None):
        self.custom_prefix = custom_prefix
        self.custom_project_name = custom_project_name

    def render(self, build: BuildInfo) -> str:
        if self.custom_project_name:
            name = self.custom_project_name
        else:
            name = _PATH_SEPARATORS.sub('_', build.full_name or '').strip('_') or DEFAULT_PROJECT_NAME
        return measurement_name(self.custom_prefix, name)
