"""Core configuration classes for the publisher."""

import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml

from ..errors import ConfigurationError
from .target import Target

# Initialize logger
LOG = logging.getLogger(__name__)

DEFAULT_MEASUREMENT_NAME = 'jenkins_data'


def parse_scalar(value: Any) -> Any:
    """Convert a command-line string to int, float or bool where it looks like one."""
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass
    return value


def parse_key_values(pairs: Optional[List[str]], convert: bool = True) -> Dict[str, Any]:
    """Parse repeated KEY=VALUE arguments into a dictionary."""
    result: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition('=')
        if not sep or not key.strip():
            raise ConfigurationError(f"Expected KEY=VALUE, got: {pair}")
        result[key.strip()] = parse_scalar(value) if convert else value
    return result


def load_config_file(config_file: str) -> Dict[str, Any]:
    """Load settings from a YAML or JSON file."""
    if not os.path.exists(config_file):
        raise ConfigurationError(f"Config file not found: {config_file}")

    with open(config_file, 'r', encoding='utf-8') as f:
        try:
            if config_file.lower().endswith(('.yaml', '.yml')):
                config = yaml.safe_load(f)
            elif config_file.lower().endswith('.json'):
                config = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported config file format: {config_file}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot parse config file {config_file}: {e}") from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_file}")

    LOG.info(f"Loaded configuration from {config_file}")
    return config


@dataclass
class PublisherConfig:
    """Main configuration for one publish invocation.

    Everything a caller supplies: targets, custom data, naming overrides and
    the invocation timestamp.
    """

    # Destinations; an empty list collects but writes nothing
    targets: List[Target] = field(default_factory=list)

    # Naming
    custom_project_name: Optional[str] = None
    custom_prefix: Optional[str] = None
    measurement_name: str = DEFAULT_MEASUREMENT_NAME

    # Custom data
    custom_data: Dict[str, Any] = field(default_factory=dict)
    custom_data_tags: Dict[str, str] = field(default_factory=dict)
    custom_data_map: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    custom_data_map_tags: Dict[str, Dict[str, str]] = field(default_factory=dict)

    # Newline separated KEY=VALUE specs; $VAR values resolve from the build environment
    jenkins_env_parameter_field: Optional[str] = None
    jenkins_env_parameter_tag: Optional[str] = None

    replace_dash_with_underscore: bool = False
    timestamp: Optional[int] = None  # epoch nanoseconds, defaults to now
    workspace: Optional[str] = None

    # Debugging
    log_level: str = 'INFO'
    logfile: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.targets = [t if isinstance(t, Target) else Target.from_dict(t) for t in self.targets]

        if not self.measurement_name:
            raise ConfigurationError("measurement_name must not be empty")

        for series, values in self.custom_data_map.items():
            if not isinstance(values, dict):
                raise ConfigurationError(f"custom_data_map['{series}'] must be a mapping")
        for series, tags in self.custom_data_map_tags.items():
            if not isinstance(tags, dict):
                raise ConfigurationError(f"custom_data_map_tags['{series}'] must be a mapping")

        if self.timestamp is None:
            self.timestamp = time.time_ns()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PublisherConfig':
        """Create configuration from a loaded config file."""
        known = set(cls.__dataclass_fields__)
        unknown = sorted(k for k in data if k not in known)
        if unknown:
            LOG.warning(f"Ignoring unknown configuration keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    @classmethod
    def from_args(cls, args, env: Optional[Mapping[str, str]] = None) -> 'PublisherConfig':
        """Create configuration from command line arguments.

        Precedence: command line, then config file, then environment.
        """
        env = os.environ if env is None else env
        data: Dict[str, Any] = {}

        config_file = getattr(args, 'config', None)
        if config_file:
            data.update(load_config_file(config_file))

        # Command-line target
        if getattr(args, 'influxdbUrl', None):
            data.setdefault('targets', []).append({
                'url': args.influxdbUrl,
                'database': getattr(args, 'influxdbDatabase', None),
                'username': getattr(args, 'influxdbUsername', None),
                'password': getattr(args, 'influxdbPassword', None),
                'retention_policy': getattr(args, 'retentionPolicy', None),
                'expose_exceptions': getattr(args, 'exposeExceptions', False),
            })

        if not data.get('targets'):
            env_target = Target.from_env(env)
            if env_target:
                LOG.info(f"Using target from environment: {env_target}")
                data['targets'] = [env_target]

        overrides = {
            'custom_project_name': getattr(args, 'customProjectName', None),
            'custom_prefix': getattr(args, 'customPrefix', None),
            'measurement_name': getattr(args, 'measurementName', None),
            'jenkins_env_parameter_field': getattr(args, 'jenkinsEnvParameterField', None),
            'jenkins_env_parameter_tag': getattr(args, 'jenkinsEnvParameterTag', None),
            'workspace': getattr(args, 'workspace', None),
            'logfile': getattr(args, 'logfile', None) or env.get('BUILDMETRICS_LOG_FILE'),
        }
        data.update({k: v for k, v in overrides.items() if v is not None})

        log_level = getattr(args, 'log_level', None) or env.get('BUILDMETRICS_LOG_LEVEL')
        if log_level:
            data['log_level'] = log_level
        if getattr(args, 'replaceDashWithUnderscore', False):
            data['replace_dash_with_underscore'] = True
        if getattr(args, 'verbose', False):
            data['verbose'] = True

        custom_data = parse_key_values(getattr(args, 'customData', None))
        if custom_data:
            data['custom_data'] = {**data.get('custom_data', {}), **custom_data}
        custom_tags = parse_key_values(getattr(args, 'customDataTag', None), convert=False)
        if custom_tags:
            data['custom_data_tags'] = {**data.get('custom_data_tags', {}), **custom_tags}

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for logging (passwords redacted)."""
        return {
            'targets': [t.to_dict() for t in self.targets],
            'custom_project_name': self.custom_project_name,
            'custom_prefix': self.custom_prefix,
            'measurement_name': self.measurement_name,
            'custom_data': dict(self.custom_data),
            'custom_data_tags': dict(self.custom_data_tags),
            'custom_data_map': {k: dict(v) for k, v in self.custom_data_map.items()},
            'custom_data_map_tags': {k: dict(v) for k, v in self.custom_data_map_tags.items()},
            'jenkins_env_parameter_field': self.jenkins_env_parameter_field,
            'jenkins_env_parameter_tag': self.jenkins_env_parameter_tag,
            'replace_dash_with_underscore': self.replace_dash_with_underscore,
            'timestamp': self.timestamp,
            'workspace': self.workspace,
            'log_level': self.log_level,
            'logfile': self.logfile,
            'verbose': self.verbose,
        }
