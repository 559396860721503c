"""Core publisher package initialization."""

from .build import BuildInfo, BuildResult
from .config import PublisherConfig
from .target import Target

__all__ = ['BuildInfo', 'BuildResult', 'PublisherConfig', 'Target']
