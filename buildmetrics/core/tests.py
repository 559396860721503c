"""
Tests for the core package: naming, configuration, collection and publication.
"""
import argparse
import io
import json
import logging
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from .build import BuildInfo, BuildResult
from .collector import PointCollector
from .config import PublisherConfig, load_config_file, parse_key_values, parse_scalar
from .console import BufferConsole, StreamConsole
from .renderer import DEFAULT_PROJECT_NAME, ProjectNameRenderer, measurement_name
from .service import PublicationService
from .target import Target
from ..errors import ConfigurationError, InfluxReportException
from ..main import create_argument_parser, main, validate_arguments
from ..generators.base import GeneratorContext, PointGenerator
from ..generators.build_base import BuildBasePointGenerator
from ..generators.custom_data import CustomDataPointGenerator
from ..generators.custom_data_map import CustomDataMapPointGenerator
from ..schema.point import Point
from ..writer.base import TargetConnection

TIMESTAMP = 1_700_000_000_000_000_000


def make_context(**overrides):
    values = dict(build=BuildInfo(full_name='folder/job', number=5), project_name='folder_job', timestamp=TIMESTAMP)
    values.update(overrides)
    return GeneratorContext(**values)


class StaticGenerator(PointGenerator):
    """Generator with canned behaviour for collector tests."""

    def __init__(self, context, label, points=1, data=True, error=None, requires=None, data_error=None):
        super().__init__(context)
        self.name = label
        self.requires = requires
        self._points = points
        self._data = data
        self._error = error
        self._data_error = data_error
        self.generated = False

    def has_data(self):
        if self._data_error:
            raise self._data_error
        return self._data

    def generate(self):
        self.generated = True
        if self._error:
            raise self._error
        return [Point(name=self.name, fields={'index': i}, timestamp=self.context.timestamp)
                for i in range(self._points)]


class RecordingConnection(TargetConnection):
    def __init__(self, sink, fail):
        self.sink = sink
        self.fail = fail

    def write(self, batch):
        if self.fail:
            raise ConnectionError("unreachable")
        self.sink.append(batch)


class TestProjectNameRenderer(unittest.TestCase):
    """Test cases for project name rendering."""

    def test_path_separators_normalized(self):
        name = ProjectNameRenderer().render(BuildInfo(full_name='folder/sub/job'))
        self.assertEqual(name, 'folder_sub_job')
        self.assertNotIn('/', name)

    def test_backslashes_normalized(self):
        self.assertEqual(ProjectNameRenderer().render(BuildInfo(full_name='a\\b')), 'a_b')

    def test_override_with_prefix(self):
        renderer = ProjectNameRenderer(custom_prefix='pre', custom_project_name='custom')
        self.assertEqual(renderer.render(BuildInfo(full_name='folder/sub/job')), 'pre_custom')

    def test_override_verbatim(self):
        renderer = ProjectNameRenderer(custom_project_name='my/project')
        self.assertEqual(renderer.render(BuildInfo()), 'my/project')

    def test_prefix_on_derived_name(self):
        self.assertEqual(ProjectNameRenderer(custom_prefix='pre').render(BuildInfo(full_name='job')), 'pre_job')

    def test_fallback_name(self):
        self.assertEqual(ProjectNameRenderer().render(BuildInfo()), DEFAULT_PROJECT_NAME)
        self.assertEqual(ProjectNameRenderer().render(BuildInfo(full_name='/')), DEFAULT_PROJECT_NAME)

    def test_measurement_name(self):
        self.assertEqual(measurement_name(None, 'series1'), 'series1')
        self.assertEqual(measurement_name('', 'series1'), 'series1')
        self.assertEqual(measurement_name('pre', 'series1'), 'pre_series1')


class TestTarget(unittest.TestCase):
    """Test cases for target validation."""

    def test_requires_url_and_database(self):
        with self.assertRaises(ConfigurationError):
            Target(url='', database='db')
        with self.assertRaises(ConfigurationError):
            Target(url='http://influxdb:8086', database='')

    def test_rejects_non_http_url(self):
        with self.assertRaises(ConfigurationError):
            Target(url='influxdb:8086', database='db')

    def test_rejects_unknown_precision(self):
        with self.assertRaises(ConfigurationError):
            Target(url='http://influxdb:8086', database='db', write_precision='minutes')

    def test_str_hides_password(self):
        target = Target(url='http://influxdb:8086', database='db', username='ci', password='secret')
        self.assertNotIn('secret', str(target))
        self.assertNotIn('secret', repr(target))
        self.assertEqual(target.to_dict()['password'], '[REDACTED]')
        self.assertTrue(target.has_credentials)

    def test_description_used_as_display_name(self):
        target = Target(url='http://influxdb:8086', database='db', description='primary')
        self.assertEqual(str(target), 'primary')

    def test_from_dict_camel_case(self):
        target = Target.from_dict({'url': 'http://influxdb:8086', 'database': 'db',
                                   'retentionPolicy': 'weekly', 'exposeExceptions': 'true'})
        self.assertEqual(target.retention_policy, 'weekly')
        self.assertTrue(target.expose_exceptions)

    def test_from_env(self):
        self.assertIsNone(Target.from_env({}))
        target = Target.from_env({'INFLUXDB_URL': 'http://influxdb:8086', 'INFLUXDB_DATABASE': 'db',
                                  'INFLUXDB_USERNAME': 'ci', 'INFLUXDB_PASSWORD': 'pw'})
        self.assertEqual(target.username, 'ci')
        self.assertFalse(target.expose_exceptions)


class TestBuildInfo(unittest.TestCase):
    """Test cases for build context loading."""

    def test_from_environment(self):
        build = BuildInfo.from_environment({
            'JOB_NAME': 'folder/job', 'BUILD_NUMBER': '17', 'BUILD_RESULT': 'unstable',
            'NODE_NAME': 'agent-2', 'WORKSPACE': '/ws', 'BUILD_CAUSE': 'SCM change, Timer',
            'BUILD_START_TIME_MS': '2000', 'BUILD_SCHEDULED_TIME_MS': '500', 'BUILD_HEALTH': 'n/a',
        })
        self.assertEqual(build.full_name, 'folder/job')
        self.assertEqual(build.name, 'job')
        self.assertEqual(build.number, 17)
        self.assertEqual(build.result, BuildResult.UNSTABLE)
        self.assertEqual(build.agent_name, 'agent-2')
        self.assertEqual(build.causes, ['SCM change', 'Timer'])
        self.assertEqual(build.time_in_queue_ms, 1500)
        self.assertIsNone(build.health_score)
        self.assertEqual(build.resolve('WORKSPACE'), '/ws')

    def test_result_parsing(self):
        self.assertEqual(BuildResult.from_string('not-built'), BuildResult.NOT_BUILT)
        self.assertIsNone(BuildResult.from_string('weird'))
        self.assertIsNone(BuildResult.from_string(None))
        self.assertEqual(BuildResult.FAILURE.ordinal, 2)

    def test_parameters_shadow_environment(self):
        build = BuildInfo(parameters={'X': 'param'}, environment={'X': 'env', 'Y': 'env'})
        self.assertEqual(build.resolve('X'), 'param')
        self.assertEqual(build.resolve('Y'), 'env')
        self.assertIsNone(build.resolve('Z'))


class TestPublisherConfig(unittest.TestCase):
    """Test cases for configuration loading."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.temp_path = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def _args(self, **kwargs):
        defaults = dict(config=None, influxdbUrl=None, influxdbDatabase=None, influxdbUsername=None,
                        influxdbPassword=None, retentionPolicy=None, exposeExceptions=False,
                        customProjectName=None, customPrefix=None, measurementName=None,
                        jenkinsEnvParameterField=None, jenkinsEnvParameterTag=None,
                        customData=None, customDataTag=None, replaceDashWithUnderscore=False,
                        workspace=None, log_level=None, logfile=None, verbose=False)
        defaults.update(kwargs)
        return argparse.Namespace(**defaults)

    def test_defaults(self):
        config = PublisherConfig()
        self.assertEqual(config.targets, [])
        self.assertEqual(config.measurement_name, 'jenkins_data')
        self.assertIsInstance(config.timestamp, int)

    def test_rejects_bad_custom_data_map(self):
        with self.assertRaises(ConfigurationError):
            PublisherConfig(custom_data_map={'series1': 5})

    def test_from_yaml_file(self):
        config_file = self.temp_path / 'buildmetrics.yaml'
        config_file.write_text(
            "targets:\n"
            "  - url: http://influxdb:8086\n"
            "    database: jenkins\n"
            "    exposeExceptions: true\n"
            "custom_prefix: nightly\n"
            "custom_data_map:\n"
            "  series1:\n"
            "    k1: 11\n",
            encoding='utf-8')

        config = PublisherConfig.from_args(self._args(config=str(config_file)), env={})
        self.assertEqual(len(config.targets), 1)
        self.assertTrue(config.targets[0].expose_exceptions)
        self.assertEqual(config.custom_prefix, 'nightly')
        self.assertEqual(config.custom_data_map, {'series1': {'k1': 11}})

    def test_from_json_file(self):
        config_file = self.temp_path / 'buildmetrics.json'
        config_file.write_text(json.dumps({'measurement_name': 'ci_data'}), encoding='utf-8')
        self.assertEqual(load_config_file(str(config_file)), {'measurement_name': 'ci_data'})

    def test_missing_or_unsupported_file(self):
        with self.assertRaises(ConfigurationError):
            load_config_file(str(self.temp_path / 'missing.yaml'))
        other = self.temp_path / 'config.ini'
        other.write_text('x=1', encoding='utf-8')
        with self.assertRaises(ConfigurationError):
            load_config_file(str(other))

    def test_malformed_file(self):
        broken_yaml = self.temp_path / 'broken.yaml'
        broken_yaml.write_text('targets: [unclosed\n', encoding='utf-8')
        with self.assertRaises(ConfigurationError):
            load_config_file(str(broken_yaml))
        broken_json = self.temp_path / 'broken.json'
        broken_json.write_text('{"targets": ', encoding='utf-8')
        with self.assertRaises(ConfigurationError):
            load_config_file(str(broken_json))

    def test_command_line_target_and_custom_data(self):
        args = self._args(influxdbUrl='http://influxdb:8086', influxdbDatabase='jenkins',
                          customData=['coverage=81.5', 'tests=12', 'green=true', 'branch=main'],
                          customDataTag=['build-number=12'], replaceDashWithUnderscore=True)
        config = PublisherConfig.from_args(args, env={})
        self.assertEqual(config.targets[0].database, 'jenkins')
        self.assertEqual(config.custom_data, {'coverage': 81.5, 'tests': 12, 'green': True, 'branch': 'main'})
        self.assertEqual(config.custom_data_tags, {'build-number': '12'})
        self.assertTrue(config.replace_dash_with_underscore)

    def test_environment_target_when_none_configured(self):
        config = PublisherConfig.from_args(self._args(), env={
            'INFLUXDB_URL': 'http://env-influx:8086', 'INFLUXDB_DATABASE': 'envdb',
            'BUILDMETRICS_LOG_LEVEL': 'DEBUG'})
        self.assertEqual(config.targets[0].url, 'http://env-influx:8086')
        self.assertEqual(config.log_level, 'DEBUG')

    def test_parse_helpers(self):
        self.assertEqual(parse_scalar('3'), 3)
        self.assertEqual(parse_scalar('3.5'), 3.5)
        self.assertEqual(parse_scalar('False'), False)
        self.assertEqual(parse_scalar('x'), 'x')
        with self.assertRaises(ConfigurationError):
            parse_key_values(['novalue'])

    def test_to_dict_redacts_passwords(self):
        config = PublisherConfig(targets=[{'url': 'http://influxdb:8086', 'database': 'db',
                                           'username': 'ci', 'password': 'secret'}])
        self.assertNotIn('secret', json.dumps(config.to_dict()))


class TestConsole(unittest.TestCase):

    def test_stream_console_writes_lines(self):
        stream = io.StringIO()
        StreamConsole(stream).println('hello')
        self.assertEqual(stream.getvalue(), 'hello\n')

    def test_stream_console_is_best_effort(self):
        stream = io.StringIO()
        stream.close()
        StreamConsole(stream).println('ignored')


class TestPointCollector(unittest.TestCase):
    """Test cases for collection orchestration."""

    def setUp(self):
        self.context = make_context()

    def test_generators_without_data_contribute_nothing(self):
        empty = StaticGenerator(self.context, 'empty', data=False)
        full = StaticGenerator(self.context, 'full', points=2)
        points = PointCollector().collect(self.context, [empty, full])
        self.assertEqual([p.name for p in points], ['full', 'full'])
        self.assertFalse(empty.generated)

    def test_failure_is_isolated(self):
        before = StaticGenerator(self.context, 'before')
        broken = StaticGenerator(self.context, 'broken', error=ValueError('malformed report'))
        after = StaticGenerator(self.context, 'after', points=2)

        report = PointCollector().collect_with_report(self.context, [before, broken, after])

        self.assertEqual([p.name for p in report.points], ['before', 'after', 'after'])
        self.assertEqual(report.failed, {'broken': 'malformed report'})
        self.assertEqual(report.collected, ['before', 'after'])

    def test_has_data_exception_counts_as_empty(self):
        flaky = StaticGenerator(self.context, 'flaky', data_error=OSError('permission denied'))
        report = PointCollector().collect_with_report(self.context, [flaky])
        self.assertEqual(report.points, [])
        self.assertEqual(report.skipped, ['flaky'])

    def test_unavailable_capability_is_no_data(self):
        optional = StaticGenerator(self.context, 'optional', requires='some_missing_module_xyz')
        base = StaticGenerator(self.context, 'base')
        report = PointCollector().collect_with_report(self.context, [base, optional])
        self.assertEqual([p.name for p in report.points], ['base'])
        self.assertEqual(report.unavailable, ['optional'])
        self.assertFalse(optional.generated)

    def test_explicit_capabilities(self):
        optional = StaticGenerator(self.context, 'optional', requires='robot')
        points = PointCollector().collect(self.context, [optional], capabilities={'robot': True})
        self.assertEqual(len(points), 1)

    def test_order_is_generator_order(self):
        generators = [StaticGenerator(self.context, name) for name in ('c', 'a', 'b')]
        points = PointCollector().collect(self.context, generators)
        self.assertEqual([p.name for p in points], ['c', 'a', 'b'])

    def test_verbose_mirrors_to_console(self):
        console = BufferConsole()
        broken = StaticGenerator(self.context, 'Broken', error=RuntimeError('boom'))
        PointCollector(console=console, verbose=True).collect(self.context, [broken])
        self.assertEqual(console.lines, [
            '[buildmetrics] Broken data found. Writing to InfluxDB...',
            '[buildmetrics] Failed to collect data. Ignoring Exception: boom',
        ])

    def test_quiet_collector_prints_nothing(self):
        console = BufferConsole()
        broken = StaticGenerator(self.context, 'Broken', error=RuntimeError('boom'))
        PointCollector(console=console).collect(self.context, [broken])
        self.assertEqual(console.lines, [])


class TestPublicationService(unittest.TestCase):
    """End-to-end tests with in-memory connections."""

    CORE_GENERATORS = [BuildBasePointGenerator, CustomDataPointGenerator, CustomDataMapPointGenerator]

    def setUp(self):
        self.written = {}
        self.attempted = []
        self.build = BuildInfo(full_name='folder/sub/job', number=9, result=BuildResult.SUCCESS)

    def connect(self, target):
        self.attempted.append(target.url)
        return RecordingConnection(self.written.setdefault(target.url, []), fail='unreachable' in target.url)

    def test_perform_collects_and_publishes(self):
        config = PublisherConfig(
            targets=[Target(url='http://unreachable:8086', database='db'),
                     Target(url='http://influxdb:8086', database='db')],
            custom_prefix='pre',
            custom_data={'coverage': 80},
            custom_data_tags={'my-custom-tag': 'x'},
            custom_data_map={'series1': {'k1': 11, 'k2': 12}},
            replace_dash_with_underscore=True,
            timestamp=TIMESTAMP,
        )
        console = BufferConsole()
        service = PublicationService(config, connect=self.connect, generator_classes=self.CORE_GENERATORS)

        points = service.perform(self.build, console)

        self.assertEqual([p.name for p in points], ['jenkins_data', 'pre_jenkins_custom_data', 'pre_series1'])
        self.assertEqual(points[0].tags['project_name'], 'pre_folder_sub_job')
        self.assertEqual(points[1].tags['my_custom_tag'], 'x')
        self.assertEqual(points[2].fields, {'k1': 11, 'k2': 12})
        self.assertTrue(all(p.timestamp == TIMESTAMP for p in points))

        self.assertEqual(self.attempted, ['http://unreachable:8086', 'http://influxdb:8086'])
        self.assertEqual(self.written['http://influxdb:8086'][0].points, points)
        self.assertEqual([r.success for r in service.last_results], [False, True])

    def test_strict_target_failure_propagates(self):
        config = PublisherConfig(
            targets=[Target(url='http://unreachable:8086', database='db', expose_exceptions=True),
                     Target(url='http://influxdb:8086', database='db')],
            timestamp=TIMESTAMP,
        )
        service = PublicationService(config, connect=self.connect, generator_classes=self.CORE_GENERATORS)
        with self.assertRaises(InfluxReportException):
            service.perform(self.build)
        self.assertEqual(self.attempted, ['http://unreachable:8086'])

    def test_no_targets_collects_only(self):
        config = PublisherConfig(timestamp=TIMESTAMP)
        service = PublicationService(config, connect=self.connect, generator_classes=self.CORE_GENERATORS)
        points = service.perform(self.build)
        self.assertEqual(len(points), 1)
        self.assertEqual(self.attempted, [])

    def test_verbose_console_messages(self):
        config = PublisherConfig(timestamp=TIMESTAMP, verbose=True)
        console = BufferConsole()
        PublicationService(config, connect=self.connect, generator_classes=self.CORE_GENERATORS).perform(
            self.build, console)
        self.assertEqual(console.lines[0], '[buildmetrics] Collecting data for publication in InfluxDB...')
        self.assertEqual(console.lines[-1], '[buildmetrics] Completed.')

    def test_context_renders_name_once(self):
        config = PublisherConfig(custom_project_name='custom', custom_prefix='pre', timestamp=TIMESTAMP,
                                 workspace='/tmp/ws')
        context = PublicationService(config).create_context(self.build)
        self.assertEqual(context.project_name, 'pre_custom')
        self.assertEqual(context.timestamp, TIMESTAMP)
        self.assertEqual(str(context.workspace_path), '/tmp/ws')


class TestCommandLine(unittest.TestCase):
    """Test cases for the command line entry point."""

    def test_validate_arguments(self):
        parser = create_argument_parser()
        self.assertIsNone(validate_arguments(parser.parse_args([])))
        args = parser.parse_args(['--influxdbUrl', 'http://influxdb:8086'])
        self.assertIn('--influxdbDatabase', validate_arguments(args))
        args = parser.parse_args(['--influxdbUrl', 'http://influxdb:8086', '--influxdbDatabase', 'db',
                                  '--influxdbPassword', 'pw'])
        self.assertIn('--influxdbUsername', validate_arguments(args))

    def test_invalid_arguments_exit(self):
        with mock.patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                main(['--influxdbUrl', 'http://influxdb:8086'])

    @mock.patch('buildmetrics.main.LoggingConfigurator.setup_logging')
    @mock.patch('buildmetrics.main.PublicationService')
    def test_exit_codes(self, service_cls, _setup_logging):
        argv = ['--influxdbUrl', 'http://influxdb:8086', '--influxdbDatabase', 'db', '--customData', 'a=1']
        service_cls.return_value.perform.return_value = []
        self.assertEqual(main(argv), 0)
        config = service_cls.call_args.args[0]
        self.assertEqual(config.custom_data, {'a': 1})

        service_cls.return_value.perform.side_effect = InfluxReportException('down')
        self.assertEqual(main(argv), 1)

    def test_malformed_config_file_exit_code(self):
        with TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / 'broken.yaml'
            config_file.write_text('targets: [unclosed\n', encoding='utf-8')
            with mock.patch('buildmetrics.main.logging.error') as log_error:
                self.assertEqual(main(['--config', str(config_file)]), 1)
            self.assertIn('Configuration error', log_error.call_args.args[0])


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
