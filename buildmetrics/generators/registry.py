"""
Generator registry.

Holds the fixed collection order and probes, once per run, which optional
runtime capabilities the registered generators can use.
"""

import logging
from typing import Dict, Iterable, List, Optional, Type

from .base import GeneratorContext, PointGenerator, module_available
from .build_base import BuildBasePointGenerator
from .changelog import ChangeLogPointGenerator
from .cobertura import CoberturaPointGenerator
from .custom_data import CustomDataPointGenerator
from .custom_data_map import CustomDataMapPointGenerator
from .jacoco import JacocoPointGenerator
from .junit import JUnitPointGenerator
from .perfpublisher import PerfPublisherPointGenerator
from .performance import PerformancePointGenerator
from .robot_framework import RobotFrameworkPointGenerator
from .sonarqube import SonarQubePointGenerator

LOG = logging.getLogger(__name__)

# Collection order; points are emitted in this order
GENERATOR_CLASSES: List[Type[PointGenerator]] = [
    BuildBasePointGenerator,
    CustomDataPointGenerator,
    CustomDataMapPointGenerator,
    CoberturaPointGenerator,
    RobotFrameworkPointGenerator,
    JacocoPointGenerator,
    PerformancePointGenerator,
    JUnitPointGenerator,
    SonarQubePointGenerator,
    ChangeLogPointGenerator,
    PerfPublisherPointGenerator,
]


def build_generators(context: GeneratorContext,
                     classes: Optional[Iterable[Type[PointGenerator]]] = None) -> List[PointGenerator]:
    """Instantiate every registered generator for one run, in collection order."""
    return [cls(context) for cls in (GENERATOR_CLASSES if classes is None else classes)]


def probe_capabilities(generators: Iterable[PointGenerator]) -> Dict[str, bool]:
    """
    Check each distinct required module once.

    Returns:
        Mapping of module name to availability
    """
    capabilities: Dict[str, bool] = {}
    for generator in generators:
        module = generator.requires
        if module and module not in capabilities:
            capabilities[module] = module_available(module)
            LOG.debug(f"Capability '{module}' available: {capabilities[module]}")
    return capabilities
