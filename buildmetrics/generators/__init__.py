"""Point generators, one per data source."""

from .base import GeneratorContext, PointGenerator, sanitize_tag_key, module_available
from .build_base import BuildBasePointGenerator
from .changelog import ChangeLogPointGenerator
from .cobertura import CoberturaPointGenerator
from .custom_data import CustomDataPointGenerator
from .custom_data_map import CustomDataMapPointGenerator
from .jacoco import JacocoPointGenerator
from .junit import JUnitPointGenerator
from .perfpublisher import PerfPublisherPointGenerator
from .performance import PerformancePointGenerator
from .registry import GENERATOR_CLASSES, build_generators, probe_capabilities
from .robot_framework import RobotFrameworkPointGenerator
from .sonarqube import SonarQubePointGenerator

__all__ = ['GeneratorContext', 'PointGenerator', 'sanitize_tag_key', 'module_available',
           'BuildBasePointGenerator', 'ChangeLogPointGenerator', 'CoberturaPointGenerator',
           'CustomDataPointGenerator', 'CustomDataMapPointGenerator', 'JacocoPointGenerator',
           'JUnitPointGenerator', 'PerformancePointGenerator', 'PerfPublisherPointGenerator',
           'RobotFrameworkPointGenerator', 'SonarQubePointGenerator',
           'GENERATOR_CLASSES', 'build_generators', 'probe_capabilities']
