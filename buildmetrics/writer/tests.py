"""
Tests for the writer module: batch publisher and InfluxDB connection.
"""
import logging
import threading
import unittest
from http.server import BaseHTTPRequestHandler, HTTPServer
from unittest import mock

from .base import TargetConnection
from .influxdb_writer import InfluxDBConnection, bucket_for, connect, to_influx_point
from .publisher import BatchPublisher, TargetWriteResult
from ..core.console import BufferConsole
from ..core.target import Target
from ..errors import InfluxReportException
from ..schema.point import Batch, ConsistencyLevel, Point


class FakeConnection(TargetConnection):
    """Records batches instead of sending them."""

    def __init__(self, fail_on_write=False):
        self.batches = []
        self.closed = False
        self.fail_on_write = fail_on_write

    def write(self, batch):
        if self.fail_on_write:
            raise ConnectionError("connection refused")
        self.batches.append(batch)

    def close(self):
        self.closed = True


class FakeConnector:
    """Connection factory that fails for unreachable URLs."""

    def __init__(self, unreachable=(), fail_on_connect=False):
        self.unreachable = set(unreachable)
        self.fail_on_connect = fail_on_connect
        self.connections = {}
        self.attempted = []

    def __call__(self, target):
        self.attempted.append(target.url)
        if self.fail_on_connect and target.url in self.unreachable:
            raise OSError(f"cannot resolve {target.url}")
        connection = FakeConnection(fail_on_write=target.url in self.unreachable)
        self.connections[target.url] = connection
        return connection


def sample_points():
    return [
        Point(name='jenkins_data', tags={'project_name': 'job'}, fields={'build_number': 1}, timestamp=1),
        Point(name='series1', fields={'k1': 11, 'k2': 12}, timestamp=1),
    ]


class _WriteHandler(BaseHTTPRequestHandler):
    """Accepts every write and records its path and headers."""

    def do_POST(self):
        self.rfile.read(int(self.headers.get('Content-Length', 0)))
        self.server.requests.append((self.path, dict(self.headers)))
        self.send_response(204)
        self.end_headers()

    def log_message(self, format, *args):
        pass


class RecordingInfluxServer:
    """Local HTTP server standing in for an InfluxDB write endpoint."""

    def __init__(self):
        self.httpd = HTTPServer(('127.0.0.1', 0), _WriteHandler)
        self.httpd.requests = []
        self.url = f"http://127.0.0.1:{self.httpd.server_port}"
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    @property
    def requests(self):
        return self.httpd.requests

    def __enter__(self):
        self.thread.start()
        return self

    def __exit__(self, *exc):
        self.httpd.shutdown()
        self.httpd.server_close()


class TestBatchPublisher(unittest.TestCase):
    """Test cases for per-target failure isolation."""

    def setUp(self):
        self.points = sample_points()
        self.bad = Target(url='http://unreachable.invalid:8086', database='db1')
        self.good = Target(url='http://influxdb:8086', database='db2', retention_policy='autogen')

    def test_lenient_failure_continues_to_next_target(self):
        connector = FakeConnector(unreachable=[self.bad.url])
        publisher = BatchPublisher(connect=connector)

        results = publisher.publish(self.points, [self.bad, self.good])

        self.assertEqual([r.success for r in results], [False, True])
        written = connector.connections[self.good.url].batches
        self.assertEqual(len(written), 1)
        self.assertEqual(written[0].points, self.points)
        self.assertEqual(written[0].database, 'db2')
        self.assertEqual(written[0].retention_policy, 'autogen')
        self.assertEqual(written[0].consistency, ConsistencyLevel.ANY)

    def test_strict_failure_raises_and_stops(self):
        strict = Target(url=self.bad.url, database='db1', expose_exceptions=True)
        connector = FakeConnector(unreachable=[strict.url])
        publisher = BatchPublisher(connect=connector)

        with self.assertRaises(InfluxReportException) as ctx:
            publisher.publish(self.points, [strict, self.good])

        self.assertEqual(connector.attempted, [strict.url])
        self.assertIs(ctx.exception.target, strict)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    def test_connect_failure_is_treated_like_write_failure(self):
        connector = FakeConnector(unreachable=[self.bad.url], fail_on_connect=True)
        publisher = BatchPublisher(connect=connector)

        results = publisher.publish(self.points, [self.bad, self.good])
        self.assertFalse(results[0].success)
        self.assertIsInstance(results[0].error, OSError)
        self.assertTrue(results[1].success)

        strict = Target(url=self.bad.url, database='db1', expose_exceptions=True)
        with self.assertRaises(InfluxReportException):
            publisher.publish(self.points, [strict])

    def test_same_points_written_to_every_target(self):
        other = Target(url='http://other:8086', database='db3')
        connector = FakeConnector()
        BatchPublisher(connect=connector).publish(self.points, [self.good, other])

        first = connector.connections[self.good.url].batches[0]
        second = connector.connections[other.url].batches[0]
        self.assertEqual(first.points, second.points)
        self.assertTrue(connector.connections[self.good.url].closed)

    def test_empty_target_list_writes_nothing(self):
        connector = FakeConnector()
        results = BatchPublisher(connect=connector).publish(self.points, [])
        self.assertEqual(results, [])
        self.assertEqual(connector.attempted, [])

    def test_write_result_expose_flag(self):
        failed_strict = TargetWriteResult(target=Target(url='http://a:1', database='d', expose_exceptions=True),
                                          success=False, error=RuntimeError('x'))
        failed_lenient = TargetWriteResult(target=self.good, success=False, error=RuntimeError('x'))
        succeeded = TargetWriteResult(target=Target(url='http://a:1', database='d', expose_exceptions=True),
                                      success=True)
        self.assertTrue(failed_strict.expose)
        self.assertFalse(failed_lenient.expose)
        self.assertFalse(succeeded.expose)

    def test_verbose_prints_target_to_console(self):
        console = BufferConsole()
        BatchPublisher(connect=FakeConnector(), console=console, verbose=True).publish(self.points, [self.good])
        self.assertEqual(console.lines, [f"[buildmetrics] Publishing data to: {self.good}"])

    def test_quiet_publisher_prints_nothing(self):
        console = BufferConsole()
        BatchPublisher(connect=FakeConnector(), console=console).publish(self.points, [self.good])
        self.assertEqual(console.lines, [])


class TestInfluxDBConnection(unittest.TestCase):
    """Test cases for the InfluxDB client wrapper."""

    def test_bucket_for(self):
        self.assertEqual(bucket_for('db'), 'db')
        self.assertEqual(bucket_for('db', 'autogen'), 'db/autogen')

    def test_to_influx_point_line_protocol(self):
        point = Point(name='jenkins_data', tags={'project_name': 'job'}, fields={'build_number': 7},
                      timestamp=1_500_000_000_000_000_000)
        line = to_influx_point(point, 'ns').to_line_protocol()
        self.assertEqual(line, 'jenkins_data,project_name=job build_number=7i 1500000000000000000')

    def test_to_influx_point_scales_timestamp(self):
        point = Point(name='m', fields={'f': 1.5}, timestamp=1_500_000_000_000_000_000)
        line = to_influx_point(point, 's').to_line_protocol()
        self.assertTrue(line.endswith(' 1500000000'))

    def test_anonymous_target_writes(self):
        with RecordingInfluxServer() as server:
            results = BatchPublisher().publish(sample_points(), [Target(url=server.url, database='jenkins')])

        self.assertTrue(results[0].success, results[0].error)
        self.assertEqual(len(server.requests), 1)
        path, headers = server.requests[0]
        self.assertIn('jenkins', path)
        self.assertIn(headers.get('Authorization', '').strip(), ('', 'Token'))

    def test_anonymous_and_credentialed_targets(self):
        with RecordingInfluxServer() as server:
            targets = [Target(url=server.url, database='jenkins'),
                       Target(url=server.url, database='jenkins', username='ci', password='secret')]
            results = BatchPublisher().publish(sample_points(), targets)

        self.assertEqual([r.success for r in results], [True, True])
        self.assertEqual([h.get('Authorization', '').strip() for _, h in server.requests][1], 'Token ci:secret')

    @mock.patch('buildmetrics.writer.influxdb_writer.InfluxDBClient3')
    def test_anonymous_connection_sends_empty_token(self, client_cls):
        connection = connect(Target(url='http://influxdb:8086', database='jenkins'))
        self.assertIsInstance(connection, InfluxDBConnection)
        kwargs = client_cls.call_args.kwargs
        self.assertEqual(kwargs['host'], 'http://influxdb:8086')
        self.assertEqual(kwargs['database'], 'jenkins')
        self.assertEqual(kwargs['token'], '')

    @mock.patch('buildmetrics.writer.influxdb_writer.InfluxDBClient3')
    def test_credentials_sent_as_token(self, client_cls):
        InfluxDBConnection(Target(url='http://influxdb:8086', database='jenkins',
                                  username='ci', password='secret', retention_policy='weekly'))
        kwargs = client_cls.call_args.kwargs
        self.assertEqual(kwargs['token'], 'ci:secret')
        self.assertEqual(kwargs['database'], 'jenkins/weekly')

    @mock.patch('buildmetrics.writer.influxdb_writer.InfluxDBClient3')
    def test_write_is_single_call(self, client_cls):
        connection = InfluxDBConnection(Target(url='http://influxdb:8086', database='jenkins'))
        batch = Batch(database='jenkins', retention_policy='autogen', points=sample_points())

        connection.write(batch)
        connection.close()

        client = client_cls.return_value
        client.write.assert_called_once()
        kwargs = client.write.call_args.kwargs
        self.assertEqual(kwargs['database'], 'jenkins/autogen')
        self.assertEqual(len(kwargs['record']), 2)
        client.close.assert_called_once()

    @mock.patch('buildmetrics.writer.influxdb_writer.InfluxDBClient3')
    def test_write_errors_propagate(self, client_cls):
        client_cls.return_value.write.side_effect = ConnectionError("refused")
        connection = InfluxDBConnection(Target(url='http://influxdb:8086', database='jenkins'))
        with self.assertRaises(ConnectionError):
            connection.write(Batch(database='jenkins', points=sample_points()))


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
