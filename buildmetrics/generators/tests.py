"""
Tests for the point generators.
"""
import logging
import subprocess
import unittest
from datetime import timedelta
from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace
from unittest import mock

from .base import GeneratorContext, sanitize_tag_key
from .build_base import BuildBasePointGenerator, resolve_env_parameters
from .changelog import ChangeLogPointGenerator
from .cobertura import CoberturaPointGenerator
from .custom_data import CustomDataPointGenerator
from .custom_data_map import CustomDataMapPointGenerator
from .jacoco import JacocoPointGenerator
from .junit import JUnitPointGenerator
from .perfpublisher import PerfPublisherPointGenerator
from .performance import PerformancePointGenerator, percentile, summarize_samples
from .registry import GENERATOR_CLASSES, build_generators, probe_capabilities
from .robot_framework import RobotFrameworkPointGenerator
from .sonarqube import SonarQubePointGenerator, parse_report_task
from ..core.build import BuildInfo, BuildResult
from ..core.collector import PointCollector

TIMESTAMP = 1_700_000_000_000_000_000

COBERTURA_XML = """<?xml version="1.0" ?>
<coverage version="7.4" timestamp="1700000000" lines-valid="10" lines-covered="8"
          line-rate="0.8" branches-valid="4" branches-covered="2" branch-rate="0.5" complexity="0">
  <packages>
    <package name="app" line-rate="0.8" branch-rate="0.5" complexity="0">
      <classes>
        <class name="main.py" filename="app/main.py" line-rate="1" branch-rate="1" complexity="0">
          <lines><line number="1" hits="1"/><line number="2" hits="1"/></lines>
        </class>
        <class name="util.py" filename="app/util.py" line-rate="0" branch-rate="0" complexity="0">
          <lines><line number="1" hits="0"/></lines>
        </class>
      </classes>
    </package>
    <package name="empty" line-rate="0" branch-rate="0" complexity="0">
      <classes/>
    </package>
  </packages>
</coverage>
"""

JACOCO_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<report name="demo">
  <package name="com/example">
    <counter type="LINE" missed="100" covered="100"/>
  </package>
  <counter type="INSTRUCTION" missed="25" covered="75"/>
  <counter type="BRANCH" missed="5" covered="5"/>
  <counter type="LINE" missed="10" covered="30"/>
  <counter type="METHOD" missed="0" covered="0"/>
</report>
"""

JUNIT_XML = """<?xml version="1.0" encoding="utf-8"?>
<testsuites>
  <testsuite name="unit" tests="3" failures="1" errors="0" skipped="1" time="1.5">
    <testcase classname="t.A" name="test_ok" time="0.5"/>
    <testcase classname="t.A" name="test_bad" time="0.5"><failure message="boom"/></testcase>
    <testcase classname="t.A" name="test_skip" time="0.5"><skipped/></testcase>
  </testsuite>
  <testsuite name="integration" tests="2" failures="0" errors="1" skipped="0" time="3.0"/>
</testsuites>
"""

JMETER_CSV = """timeStamp,elapsed,label,responseCode,success,bytes
1700000000000,100,home,200,true,1024
1700000000100,300,cart,200,true,1024
1700000000200,200,home,200,true,1024
1700000000300,400,checkout,500,false,1024
"""

PERFPUBLISHER_XML = """<?xml version="1.0" encoding="UTF-8"?>
<report name="nightly" categ="benchmarks">
  <test name="parse" executed="yes">
    <result>
      <success passed="yes" state="100"/>
      <performance unit="%" mesure="92" isRelevant="true"/>
      <executiontime unit="s" mesure="10" isRelevant="true"/>
      <metrics>
        <throughput unit="MB/s" mesure="80" isRelevant="true"/>
      </metrics>
    </result>
  </test>
  <test name="render" executed="yes">
    <result>
      <success passed="no" state="0"/>
      <compiletime unit="s" mesure="3" isRelevant="false"/>
      <executiontime unit="s" mesure="20" isRelevant="true"/>
      <metrics>
        <throughput unit="MB/s" mesure="100" isRelevant="true"/>
      </metrics>
    </result>
  </test>
  <test name="upload" executed="no"/>
</report>
"""


def make_context(**overrides):
    build = overrides.pop('build', None) or BuildInfo(
        full_name='folder/sub/job', number=42, result=BuildResult.SUCCESS, duration_ms=1234,
        start_time_ms=1_699_999_990_000, scheduled_time_ms=1_699_999_985_000, agent_name='agent-1',
        causes=['Started by user admin'], environment={'GIT_BRANCH': 'main', 'NODE_LABELS': 'linux docker'},
    )
    values = dict(build=build, project_name='folder_sub_job', timestamp=TIMESTAMP)
    values.update(overrides)
    return GeneratorContext(**values)


class TestTagSanitizer(unittest.TestCase):
    """Test cases for sanitize_tag_key."""

    def test_replaces_dashes_when_enabled(self):
        self.assertEqual(sanitize_tag_key('my-custom-tag', True), 'my_custom_tag')

    def test_unchanged_when_disabled(self):
        self.assertEqual(sanitize_tag_key('my-custom-tag', False), 'my-custom-tag')

    def test_idempotent(self):
        for key in ('my-custom-tag', 'a--b', '-', 'plain', ''):
            once = sanitize_tag_key(key, True)
            self.assertEqual(sanitize_tag_key(once, True), once)


class TestBuildBasePointGenerator(unittest.TestCase):
    """Test cases for the always-present build point."""

    def test_always_has_data(self):
        self.assertTrue(BuildBasePointGenerator(make_context()).has_data())

    def test_build_point(self):
        points = BuildBasePointGenerator(make_context()).generate()
        self.assertEqual(len(points), 1)
        point = points[0]
        self.assertEqual(point.name, 'jenkins_data')
        self.assertEqual(point.timestamp, TIMESTAMP)
        self.assertEqual(point.tags['project_name'], 'folder_sub_job')
        self.assertEqual(point.tags['project_path'], 'folder/sub/job')
        self.assertEqual(point.tags['build_result'], 'SUCCESS')
        self.assertEqual(point.fields['build_number'], 42)
        self.assertEqual(point.fields['build_time'], 1234)
        self.assertEqual(point.fields['build_result_ordinal'], 0)
        self.assertTrue(point.fields['build_successful'])
        self.assertEqual(point.fields['time_in_queue'], 5000)
        self.assertEqual(point.fields['build_agent_name'], 'agent-1')
        self.assertNotIn('prefix', point.tags)

    def test_running_build_duration_measured_to_timestamp(self):
        build = BuildInfo(full_name='job', number=1, start_time_ms=TIMESTAMP // 1_000_000 - 60_000)
        point = BuildBasePointGenerator(make_context(build=build)).generate()[0]
        self.assertEqual(point.fields['build_time'], 60_000)
        self.assertEqual(point.fields['build_result'], '?')
        self.assertFalse(point.fields['build_successful'])
        self.assertNotIn('build_result_ordinal', point.fields)

    def test_custom_measurement_name_and_prefix_tag(self):
        point = BuildBasePointGenerator(make_context(measurement_name='ci_data', custom_prefix='pre')).generate()[0]
        self.assertEqual(point.name, 'ci_data')
        self.assertEqual(point.tags['prefix'], 'pre')

    def test_env_parameters_as_fields_and_tags(self):
        ctx = make_context(env_parameter_field='branch=$GIT_BRANCH\nstage=deploy',
                           env_parameter_tag='node-labels=${NODE_LABELS}',
                           replace_dash_with_underscore=True)
        point = BuildBasePointGenerator(ctx).generate()[0]
        self.assertEqual(point.fields['branch'], 'main')
        self.assertEqual(point.fields['stage'], 'deploy')
        self.assertEqual(point.tags['node_labels'], 'linux docker')

    def test_resolve_env_parameters_skips_bad_lines(self):
        build = BuildInfo(environment={'A': '1'}, parameters={'B': '2'})
        resolved = resolve_env_parameters('a=$A\nb=$B\nmissing=$NOPE\nnot a pair\n=x\n# comment\nlit=text', build)
        self.assertEqual(resolved, {'a': '1', 'b': '2', 'lit': 'text'})

    def test_resolve_env_parameters_empty(self):
        self.assertEqual(resolve_env_parameters(None, BuildInfo()), {})
        self.assertEqual(resolve_env_parameters('', BuildInfo()), {})


class TestCustomDataPointGenerator(unittest.TestCase):
    """Test cases for single-series custom data."""

    def test_no_data_when_empty(self):
        self.assertFalse(CustomDataPointGenerator(make_context()).has_data())

    def test_point_with_custom_fields_and_tags(self):
        ctx = make_context(custom_data={'coverage': 81.5, 'flaky': 2}, custom_data_tags={'my-custom-tag': 'x'},
                           replace_dash_with_underscore=True)
        generator = CustomDataPointGenerator(ctx)
        self.assertTrue(generator.has_data())
        point = generator.generate()[0]
        self.assertEqual(point.name, 'jenkins_custom_data')
        self.assertEqual(point.fields['coverage'], 81.5)
        self.assertEqual(point.fields['flaky'], 2)
        self.assertEqual(point.tags['my_custom_tag'], 'x')
        self.assertNotIn('my-custom-tag', point.tags)

    def test_dashes_kept_when_sanitization_disabled(self):
        ctx = make_context(custom_data={'v': 1}, custom_data_tags={'my-custom-tag': 'x'})
        point = CustomDataPointGenerator(ctx).generate()[0]
        self.assertIn('my-custom-tag', point.tags)

    def test_field_keys_never_sanitized(self):
        ctx = make_context(custom_data={'my-field': 1}, replace_dash_with_underscore=True)
        point = CustomDataPointGenerator(ctx).generate()[0]
        self.assertIn('my-field', point.fields)

    def test_measurement_name_follows_override_and_prefix(self):
        ctx = make_context(custom_data={'v': 1}, measurement_name='ci_data', custom_prefix='pre')
        self.assertEqual(CustomDataPointGenerator(ctx).generate()[0].name, 'pre_custom_ci_data')
        ctx = make_context(custom_data={'v': 1}, custom_prefix='pre')
        self.assertEqual(CustomDataPointGenerator(ctx).generate()[0].name, 'pre_jenkins_custom_data')


class TestCustomDataMapPointGenerator(unittest.TestCase):
    """Test cases for multi-series custom data."""

    def test_single_series_without_tags(self):
        ctx = make_context(custom_data_map={'series1': {'k1': 11, 'k2': 12}})
        points = CustomDataMapPointGenerator(ctx).generate()
        self.assertEqual(len(points), 1)
        self.assertEqual(points[0].name, 'series1')
        self.assertEqual(points[0].fields, {'k1': 11, 'k2': 12})
        self.assertEqual(points[0].tags, {})
        self.assertEqual(points[0].timestamp, TIMESTAMP)

    def test_prefixed_series_with_tags(self):
        ctx = make_context(
            custom_prefix='pre',
            custom_data_map={'series1': {'k1': 11}, 'series2': {'k1': 21}},
            custom_data_map_tags={'series2': {'build-result': 'SUCCESS'}},
            replace_dash_with_underscore=True,
        )
        points = CustomDataMapPointGenerator(ctx).generate()
        self.assertEqual([p.name for p in points], ['pre_series1', 'pre_series2'])
        self.assertEqual(points[0].tags, {})
        self.assertEqual(points[1].tags, {'build_result': 'SUCCESS'})

    def test_empty_series_skipped(self):
        ctx = make_context(custom_data_map={'empty': {}, 'full': {'v': 1}})
        points = CustomDataMapPointGenerator(ctx).generate()
        self.assertEqual([p.name for p in points], ['full'])

    def test_null_only_series_skipped(self):
        ctx = make_context(custom_data_map={'s1': {'k': None}, 's2': {'k': 1}})
        points = PointCollector().collect(ctx, [CustomDataMapPointGenerator(ctx)])
        self.assertEqual([p.name for p in points], ['s2'])
        self.assertEqual(points[0].fields, {'k': 1})

    def test_has_data(self):
        self.assertFalse(CustomDataMapPointGenerator(make_context()).has_data())
        self.assertTrue(CustomDataMapPointGenerator(make_context(custom_data_map={'s': {'v': 1}})).has_data())


class ReportTestCase(unittest.TestCase):
    """Base for generators that read workspace artifacts."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.workspace = Path(self.temp_dir.name)
        self.context = make_context(workspace=str(self.workspace))

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, relative, content):
        path = self.workspace / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return path


class TestCoberturaPointGenerator(ReportTestCase):

    def test_no_report(self):
        self.assertFalse(CoberturaPointGenerator(self.context).has_data())

    def test_report(self):
        self.write('coverage.xml', COBERTURA_XML)
        generator = CoberturaPointGenerator(self.context)
        self.assertTrue(generator.has_data())
        point = generator.generate()[0]
        self.assertEqual(point.name, 'cobertura_data')
        self.assertEqual(point.fields['cobertura_number_of_packages'], 2)
        self.assertEqual(point.fields['cobertura_number_of_classes'], 2)
        self.assertEqual(point.fields['cobertura_number_of_source_files'], 2)
        self.assertEqual(point.fields['cobertura_number_of_lines'], 10)
        self.assertEqual(point.fields['cobertura_number_of_conditionals'], 4)
        self.assertEqual(point.fields['cobertura_line_coverage_rate'], 80.0)
        self.assertEqual(point.fields['cobertura_branch_coverage_rate'], 50.0)
        self.assertEqual(point.fields['cobertura_package_coverage_rate'], 50.0)
        self.assertEqual(point.fields['cobertura_class_coverage_rate'], 50.0)

    def test_wrong_format_raises(self):
        self.write('coverage.xml', '<report name="x"/>')
        with self.assertRaises(ValueError):
            CoberturaPointGenerator(self.context).generate()


class TestJacocoPointGenerator(ReportTestCase):

    def test_report(self):
        self.write('target/site/jacoco/jacoco.xml', JACOCO_XML)
        generator = JacocoPointGenerator(self.context)
        self.assertTrue(generator.has_data())
        point = generator.generate()[0]
        self.assertEqual(point.name, 'jacoco_data')
        self.assertEqual(point.fields['jacoco_instruction_coverage_rate'], 75.0)
        self.assertEqual(point.fields['jacoco_line_covered'], 30)
        self.assertEqual(point.fields['jacoco_line_missed'], 10)
        self.assertEqual(point.fields['jacoco_branch_coverage_rate'], 50.0)
        self.assertEqual(point.fields['jacoco_method_coverage_rate'], 0.0)

    def test_no_report(self):
        self.assertFalse(JacocoPointGenerator(self.context).has_data())


class TestJUnitPointGenerator(ReportTestCase):

    def test_summary_and_suites(self):
        self.write('reports/junit.xml', JUNIT_XML)
        generator = JUnitPointGenerator(self.context)
        self.assertTrue(generator.has_data())

        points = generator.generate()
        self.assertEqual([p.name for p in points], ['junit_data', 'junit_suite_data', 'junit_suite_data'])

        summary = points[0]
        self.assertEqual(summary.fields['junit_suites'], 2)
        self.assertEqual(summary.fields['junit_tests'], 5)
        self.assertEqual(summary.fields['junit_failures'], 1)
        self.assertEqual(summary.fields['junit_errors'], 1)
        self.assertEqual(summary.fields['junit_skipped'], 1)
        self.assertEqual(summary.fields['junit_passed'], 2)
        self.assertFalse(summary.fields['junit_successful'])

        self.assertEqual(points[1].tags['suite_name'], 'unit')
        self.assertEqual(points[2].tags['suite_name'], 'integration')
        self.assertEqual(points[2].fields['suite_errors'], 1)

    def test_no_reports(self):
        self.assertFalse(JUnitPointGenerator(self.context).has_data())

    def test_default_locations_only(self):
        self.write('target/surefire-reports/TEST-com.example.AppTest.xml', JUNIT_XML)
        self.write('node_modules/pkg/fixtures/junit.xml', JUNIT_XML)
        generator = JUnitPointGenerator(self.context)
        self.assertEqual([p.name for p in generator.report_files()], ['TEST-com.example.AppTest.xml'])

    def test_custom_patterns(self):
        self.write('deep/nested/out/junit-results.xml', JUNIT_XML)
        self.assertFalse(JUnitPointGenerator(self.context).has_data())
        self.assertTrue(JUnitPointGenerator(self.context, patterns=['**/junit*.xml']).has_data())

    def test_workspace_scanned_once(self):
        self.write('reports/junit.xml', JUNIT_XML)
        generator = JUnitPointGenerator(self.context)
        self.assertTrue(generator.has_data())
        with mock.patch.object(Path, 'glob', side_effect=AssertionError('rescanned')):
            self.assertEqual(len(generator.generate()), 3)


class TestRobotFrameworkPointGenerator(ReportTestCase):

    def test_no_data_without_robot_package(self):
        self.write('output.xml', '<robot/>')
        with mock.patch('buildmetrics.generators.robot_framework.module_available', return_value=False):
            self.assertFalse(RobotFrameworkPointGenerator(self.context).has_data())

    def test_requires_robot(self):
        self.assertEqual(RobotFrameworkPointGenerator.requires, 'robot')

    @unittest.skipUnless(probe_capabilities([RobotFrameworkPointGenerator(make_context())]).get('robot'),
                         'robotframework not installed')
    def test_results(self):
        self.write('output.xml', '<robot/>')
        tag = SimpleNamespace(name='smoke', passed=2, failed=1, skipped=0)
        result = SimpleNamespace(
            statistics=SimpleNamespace(total=SimpleNamespace(passed=3, failed=1, skipped=1), tags=[tag]),
            suite=SimpleNamespace(elapsed_time=timedelta(seconds=2), suites=[object(), object()]),
        )
        with mock.patch('robot.api.ExecutionResult', return_value=result):
            points = RobotFrameworkPointGenerator(self.context).generate()

        self.assertEqual(points[0].name, 'rf_results')
        self.assertEqual(points[0].fields['rf_total'], 5)
        self.assertEqual(points[0].fields['rf_pass_percentage'], 60.0)
        self.assertEqual(points[0].fields['rf_duration'], 2000)
        self.assertEqual(points[0].fields['rf_suites'], 2)
        self.assertEqual(points[1].tags['rf_tag_name'], 'smoke')
        self.assertEqual(points[1].fields['rf_tag_total'], 3)


class TestSonarQubePointGenerator(ReportTestCase):

    def test_parse_report_task(self):
        path = self.write('.scannerwork/report-task.txt',
                          'projectKey=demo\nserverUrl=http://sonar:9000\n# comment\nceTaskId=AX1\n')
        self.assertEqual(parse_report_task(path),
                         {'projectKey': 'demo', 'serverUrl': 'http://sonar:9000', 'ceTaskId': 'AX1'})

    @mock.patch('buildmetrics.generators.sonarqube.requests.get')
    def test_measures(self, get):
        self.write('.scannerwork/report-task.txt', 'projectKey=demo\nserverUrl=http://sonar:9000/\n')
        get.return_value.json.return_value = {'component': {'measures': [
            {'metric': 'bugs', 'value': '3'},
            {'metric': 'coverage', 'value': '81.5'},
            {'metric': 'alert_status', 'value': 'OK'},
        ]}}

        generator = SonarQubePointGenerator(self.context, token='abc')
        self.assertTrue(generator.has_data())
        point = generator.generate()[0]

        self.assertEqual(point.name, 'sonarqube_data')
        self.assertEqual(point.fields['sonarqube_bugs'], 3)
        self.assertEqual(point.fields['sonarqube_coverage'], 81.5)
        self.assertEqual(point.fields['sonarqube_alert_status'], 'OK')
        self.assertEqual(get.call_args.args[0], 'http://sonar:9000/api/measures/component')
        self.assertEqual(get.call_args.kwargs['auth'], ('abc', ''))
        self.assertEqual(get.call_args.kwargs['params']['component'], 'demo')

    def test_no_report_task(self):
        self.assertFalse(SonarQubePointGenerator(self.context).has_data())


class TestChangeLogPointGenerator(ReportTestCase):

    def _git_output(self, args):
        if args[1] == 'log':
            return '\n'.join([
                'abc\x1fAlice\x1fFix parser\x1e',
                'def\x1fBob\x1fAdd docs\x1e',
            ])
        if args[-1] == 'abc':
            return 'src/parser.py\n'
        return 'README.md\nsrc/parser.py\n'

    def test_commit_range(self):
        build = BuildInfo(full_name='job', number=3,
                          environment={'GIT_COMMIT': 'def', 'GIT_PREVIOUS_COMMIT': 'aaa'})
        context = make_context(build=build, workspace=str(self.workspace))

        def fake_run(args, **kwargs):
            return subprocess.CompletedProcess(args, 0, stdout=self._git_output(args), stderr='')

        with mock.patch('buildmetrics.generators.changelog.subprocess.run', side_effect=fake_run) as run:
            points = ChangeLogPointGenerator(context).generate()

        self.assertIn('aaa..def', run.call_args_list[0].args[0])
        point = points[0]
        self.assertEqual(point.name, 'changelog_data')
        self.assertEqual(point.fields['commit_count'], 2)
        self.assertEqual(point.fields['culprits'], 'Alice, Bob')
        self.assertEqual(point.fields['commit_messages'], 'Fix parser; Add docs')
        self.assertEqual(point.fields['affected_paths'], 'README.md, src/parser.py')

    def test_empty_range_yields_no_points(self):
        def fake_run(args, **kwargs):
            return subprocess.CompletedProcess(args, 0, stdout='', stderr='')

        with mock.patch('buildmetrics.generators.changelog.subprocess.run', side_effect=fake_run):
            self.assertEqual(ChangeLogPointGenerator(self.context).generate(), [])

    def test_no_repository(self):
        self.assertFalse(ChangeLogPointGenerator(self.context).has_data())


class TestPerformancePointGenerator(ReportTestCase):

    def test_no_results(self):
        self.assertFalse(PerformancePointGenerator(self.context).has_data())

    def test_results_summary(self):
        self.write('jmeter/checkout.jtl', JMETER_CSV)
        generator = PerformancePointGenerator(self.context)
        self.assertTrue(generator.has_data())

        points = generator.generate()
        self.assertEqual(len(points), 1)
        point = points[0]
        self.assertEqual(point.name, 'performance_data')
        self.assertEqual(point.tags['report_name'], 'checkout.jtl')
        self.assertEqual(point.fields['size'], 4)
        self.assertEqual(point.fields['error_count'], 1)
        self.assertEqual(point.fields['error_percent'], 25.0)
        self.assertEqual(point.fields['average'], 250.0)
        self.assertEqual(point.fields['min'], 100)
        self.assertEqual(point.fields['max'], 400)
        self.assertEqual(point.fields['median'], 200)
        self.assertEqual(point.fields['percentile_90'], 400)
        self.assertEqual(point.fields['total_traffic'], 4.0)

    def test_empty_results_file_skipped(self):
        self.write('results.jtl', 'timeStamp,elapsed,label,success,bytes\n')
        self.assertEqual(PerformancePointGenerator(self.context).generate(), [])

    def test_wrong_format_raises(self):
        self.write('results.jtl', '<testResults version="1.2"/>\n')
        with self.assertRaises(ValueError):
            PerformancePointGenerator(self.context).generate()

    def test_percentile(self):
        self.assertEqual(percentile([5], 90), 5)
        self.assertEqual(percentile(list(range(1, 11)), 90), 9)
        self.assertEqual(percentile(list(range(1, 11)), 50), 5)

    def test_summarize_without_samples(self):
        self.assertIsNone(summarize_samples([]))


class TestPerfPublisherPointGenerator(ReportTestCase):

    def test_no_reports(self):
        self.assertFalse(PerfPublisherPointGenerator(self.context).has_data())

    def test_report_points(self):
        self.write('perfpublisher/nightly.xml', PERFPUBLISHER_XML)
        generator = PerfPublisherPointGenerator(self.context)
        self.assertTrue(generator.has_data())

        points = generator.generate()
        self.assertEqual([p.name for p in points], [
            'perfpublisher_summary',
            'perfpublisher_metric',
            'perfpublisher_test', 'perfpublisher_test', 'perfpublisher_test',
            'perfpublisher_test_metric', 'perfpublisher_test_metric',
        ])

        summary = points[0].fields
        self.assertEqual(summary['number_of_tests'], 3)
        self.assertEqual(summary['number_of_executed_tests'], 2)
        self.assertEqual(summary['number_of_not_executed_tests'], 1)
        self.assertEqual(summary['number_of_passed_tests'], 1)
        self.assertEqual(summary['number_of_failed_tests'], 1)
        self.assertEqual(summary['average_execution_time'], 15.0)
        self.assertEqual(summary['min_execution_time'], 10.0)
        self.assertEqual(summary['max_execution_time'], 20.0)
        self.assertNotIn('average_compile_time', summary)

        metric = points[1]
        self.assertEqual(metric.tags['metric_name'], 'throughput')
        self.assertEqual(metric.fields['average'], 90.0)

        parse_test = points[2]
        self.assertEqual(parse_test.tags['test_name'], 'parse')
        self.assertEqual(parse_test.tags['category'], 'benchmarks')
        self.assertTrue(parse_test.fields['successful'])
        self.assertEqual(parse_test.fields['execution_time'], 10.0)
        self.assertEqual(parse_test.fields['performance'], 92.0)
        self.assertFalse(points[4].fields['executed'])

        self.assertEqual(points[5].tags['test_name'], 'parse')
        self.assertEqual(points[5].tags['metric_name'], 'throughput')
        self.assertEqual(points[5].tags['unit'], 'MB/s')
        self.assertEqual(points[5].fields['value'], 80.0)

    def test_other_xml_skipped(self):
        self.write('perfpublisher/other.xml', '<coverage/>')
        self.assertEqual(PerfPublisherPointGenerator(self.context).generate(), [])


class TestRegistry(unittest.TestCase):

    def test_fixed_order(self):
        generators = build_generators(make_context())
        self.assertEqual([type(g) for g in generators], GENERATOR_CLASSES)
        self.assertIsInstance(generators[0], BuildBasePointGenerator)

    def test_performance_sources_in_collection_order(self):
        names = [cls.__name__ for cls in GENERATOR_CLASSES]
        self.assertEqual(names.index('PerformancePointGenerator'), names.index('JacocoPointGenerator') + 1)
        self.assertEqual(names[-1], 'PerfPublisherPointGenerator')
        self.assertLess(names.index('SonarQubePointGenerator'), names.index('ChangeLogPointGenerator'))

    def test_probe_capabilities(self):
        generators = build_generators(make_context())
        capabilities = probe_capabilities(generators)
        self.assertEqual(set(capabilities), {'robot'})
        with mock.patch('buildmetrics.generators.registry.module_available', return_value=False):
            self.assertEqual(probe_capabilities(generators), {'robot': False})


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
