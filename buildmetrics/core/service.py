"""Publication service: one collect-then-publish invocation per build."""

import logging
from typing import List, Optional, Sequence, Type

from ..generators.base import GeneratorContext, PointGenerator
from ..generators.registry import GENERATOR_CLASSES, build_generators, probe_capabilities
from ..schema.point import Point
from ..writer.publisher import BatchPublisher, Connector, TargetWriteResult
from .build import BuildInfo
from .collector import PointCollector
from .config import PublisherConfig
from .console import CONSOLE_PREFIX, ConsoleSink, NullConsole
from .logging_config import LoggingConfigurator
from .renderer import ProjectNameRenderer


class PublicationService:
    """Collects points for a build and publishes them to every configured target.

    Each perform() builds its own context, generators and point list, so
    concurrent invocations for different builds share no mutable state.
    """

    def __init__(self, config: PublisherConfig, connect: Optional[Connector] = None,
                 generator_classes: Optional[Sequence[Type[PointGenerator]]] = None):
        """Initialize service with configuration.

        Args:
            config: Publisher configuration for this invocation
            connect: Target connection factory (defaults to InfluxDB)
            generator_classes: Generators to run, in order (defaults to the registry)
        """
        self.config = config
        self.connect = connect
        self.generator_classes = list(generator_classes) if generator_classes is not None else GENERATOR_CLASSES
        self.logger = logging.getLogger(__name__)
        self.last_results: List[TargetWriteResult] = []

    def create_context(self, build: BuildInfo) -> GeneratorContext:
        """Render the project name once and freeze the per-run inputs."""
        cfg = self.config
        renderer = ProjectNameRenderer(cfg.custom_prefix, cfg.custom_project_name)
        return GeneratorContext(
            build=build,
            project_name=renderer.render(build),
            timestamp=cfg.timestamp,
            custom_prefix=cfg.custom_prefix,
            replace_dash_with_underscore=cfg.replace_dash_with_underscore,
            measurement_name=cfg.measurement_name,
            custom_data=dict(cfg.custom_data),
            custom_data_tags=dict(cfg.custom_data_tags),
            custom_data_map={k: dict(v) for k, v in cfg.custom_data_map.items()},
            custom_data_map_tags={k: dict(v) for k, v in cfg.custom_data_map_tags.items()},
            env_parameter_field=cfg.jenkins_env_parameter_field,
            env_parameter_tag=cfg.jenkins_env_parameter_tag,
            workspace=cfg.workspace,
        )

    def perform(self, build: BuildInfo, console: Optional[ConsoleSink] = None) -> List[Point]:
        """
        Collect and publish metrics for one build.

        Returns:
            The points that were collected (and written to each target)

        Raises:
            InfluxReportException: a target with expose_exceptions failed
        """
        console = console or NullConsole()
        verbose = self.config.verbose or LoggingConfigurator.is_verbose()

        def say(message: str) -> None:
            if verbose:
                console.println(f"{CONSOLE_PREFIX} {message}")

        say("Collecting data for publication in InfluxDB...")

        context = self.create_context(build)
        generators = build_generators(context, self.generator_classes)
        collector = PointCollector(console=console, verbose=verbose)
        points = collector.collect(context, generators, probe_capabilities(generators))

        publisher = BatchPublisher(connect=self.connect, console=console, verbose=verbose)
        self.last_results = publisher.publish(points, self.config.targets)

        say("Completed.")
        return points
