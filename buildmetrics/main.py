"""Command line entry point for the build metrics publisher.

Run at the end of a CI build to publish its metrics to InfluxDB.
"""

import argparse
import logging
import sys
from typing import Optional

from .core.build import BuildInfo
from .core.config import PublisherConfig
from .core.console import StreamConsole
from .core.logging_config import LoggingConfigurator
from .core.service import PublicationService
from .errors import ConfigurationError, InfluxReportException


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""

    parser = argparse.ArgumentParser(
        description='Publish build, test and quality metrics to InfluxDB',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single target from the command line
  buildmetrics --influxdbUrl http://influxdb:8086 --influxdbDatabase jenkins \\
               --customData coverage=81.5 --customDataTag branch=main

  # Targets and custom data maps from a YAML file
  buildmetrics --config buildmetrics.yaml --customPrefix nightly
        """
    )

    parser.add_argument('--config', type=str, default=None,
                        help='YAML or JSON file with targets and custom data')

    # Target options
    target_group = parser.add_argument_group('Target Configuration')
    target_group.add_argument('--influxdbUrl', type=str, default=None,
                              help='InfluxDB server URL. Example: http://influxdb:8086')
    target_group.add_argument('--influxdbDatabase', type=str, default=None,
                              help='InfluxDB database name')
    target_group.add_argument('--influxdbUsername', type=str, default=None,
                              help='InfluxDB username (anonymous if omitted)')
    target_group.add_argument('--influxdbPassword', type=str, default=None,
                              help='InfluxDB password')
    target_group.add_argument('--retentionPolicy', type=str, default=None,
                              help='Retention policy to write into')
    target_group.add_argument('--exposeExceptions', action='store_true',
                              help='Fail the invocation when this target cannot be written')

    # Naming and custom data
    data_group = parser.add_argument_group('Measurements')
    data_group.add_argument('--customProjectName', type=str, default=None,
                            help='Override the project name derived from JOB_NAME')
    data_group.add_argument('--customPrefix', type=str, default=None,
                            help='Prefix for project and custom measurement names')
    data_group.add_argument('--measurementName', type=str, default=None,
                            help='Measurement name for build data (default: jenkins_data)')
    data_group.add_argument('--jenkinsEnvParameterField', type=str, default=None,
                            help='Newline separated KEY=VALUE fields; $VAR values resolve from the environment')
    data_group.add_argument('--jenkinsEnvParameterTag', type=str, default=None,
                            help='Newline separated KEY=VALUE tags; $VAR values resolve from the environment')
    data_group.add_argument('--customData', action='append', metavar='KEY=VALUE',
                            help='Custom data field (repeatable)')
    data_group.add_argument('--customDataTag', action='append', metavar='KEY=VALUE',
                            help='Custom data tag (repeatable)')
    data_group.add_argument('--replaceDashWithUnderscore', action='store_true',
                            help='Replace dashes with underscores in tag keys')
    data_group.add_argument('--workspace', type=str, default=None,
                            help='Directory containing report artifacts (default: $WORKSPACE or .)')

    # Debugging
    debug_group = parser.add_argument_group('Debugging')
    debug_group.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                             default=None, help='Set logging level (default: INFO)')
    debug_group.add_argument('--logfile', type=str, default=None,
                             help='Path to log file (default: stdout only)')
    debug_group.add_argument('--verbose', action='store_true',
                             help='Print progress and skipped sources to the console')

    return parser


def validate_arguments(args) -> Optional[str]:
    """Validate command line arguments.

    Returns:
        Error message if validation fails, None if valid
    """
    if args.influxdbUrl and not args.influxdbDatabase:
        return "--influxdbDatabase required with --influxdbUrl"
    if args.influxdbPassword and not args.influxdbUsername:
        return "--influxdbUsername required with --influxdbPassword"
    return None


def main(argv=None) -> int:
    """Main entry point."""

    parser = create_argument_parser()
    args = parser.parse_args(argv)

    error_msg = validate_arguments(args)
    if error_msg:
        parser.error(error_msg)

    try:
        config = PublisherConfig.from_args(args)
    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        return 1

    LoggingConfigurator.setup_logging(log_level=config.log_level, log_file=config.logfile)

    logging.info("=== Build metrics publication ===")
    logging.info(f"Targets: {[str(t) for t in config.targets] or 'none (collect only)'}")
    if config.custom_prefix:
        logging.info(f"Custom Prefix: {config.custom_prefix}")
    if config.custom_project_name:
        logging.info(f"Custom Project Name: {config.custom_project_name}")
    logging.debug(f"Configuration: {config.to_dict()}")

    build = BuildInfo.from_environment()
    service = PublicationService(config)

    try:
        points = service.perform(build, StreamConsole())
    except InfluxReportException as e:
        logging.error(f"Publication failed: {e}")
        return 1

    logging.info(f"Published {len(points)} points for {build.full_name or 'unnamed build'} #{build.number}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
