"""
Tests for the point and batch model.
"""
import logging
import unittest

from .point import Batch, ConsistencyLevel, Point
from ..errors import InvalidPointError


class TestPoint(unittest.TestCase):
    """Test cases for Point construction invariants."""

    def test_point_without_fields_is_rejected(self):
        """A point with zero fields must never be constructed."""
        with self.assertRaises(InvalidPointError):
            Point(name='jenkins_data', tags={'project_name': 'job'}, fields={})

    def test_point_with_only_none_fields_is_rejected(self):
        with self.assertRaises(InvalidPointError):
            Point(name='jenkins_data', fields={'build_time': None})

    def test_invalid_point_error_is_value_error(self):
        with self.assertRaises(ValueError):
            Point(name='series', fields={})

    def test_point_requires_name(self):
        with self.assertRaises(InvalidPointError):
            Point(name='', fields={'value': 1})

    def test_empty_and_none_tags_are_dropped(self):
        point = Point(name='m', tags={'a': 'x', 'b': '', 'c': None}, fields={'f': 1})
        self.assertEqual(point.tags, {'a': 'x'})

    def test_tag_values_become_strings(self):
        point = Point(name='m', tags={'build': 42}, fields={'f': 1})
        self.assertEqual(point.tags, {'build': '42'})

    def test_scalar_fields_are_kept_and_others_stringified(self):
        point = Point(name='m', fields={'i': 1, 'f': 1.5, 's': 'x', 'b': True, 'l': [1, 2]})
        self.assertEqual(point.fields, {'i': 1, 'f': 1.5, 's': 'x', 'b': True, 'l': '[1, 2]'})

    def test_tag_order_is_preserved(self):
        point = Point(name='m', tags={'z': '1', 'a': '2', 'm': '3'}, fields={'f': 1})
        self.assertEqual(list(point.tags), ['z', 'a', 'm'])

    def test_to_dict(self):
        point = Point(name='m', tags={'t': 'v'}, fields={'f': 2}, timestamp=10)
        self.assertEqual(point.to_dict(), {'measurement': 'm', 'tags': {'t': 'v'}, 'fields': {'f': 2}, 'time': 10})


class TestBatch(unittest.TestCase):
    """Test cases for Batch."""

    def test_defaults_to_any_consistency(self):
        batch = Batch(database='db')
        self.assertEqual(batch.consistency, ConsistencyLevel.ANY)
        self.assertEqual(batch.consistency.value, 'any')

    def test_measurements_in_order(self):
        batch = Batch(database='db', points=[
            Point(name='b', fields={'f': 1}),
            Point(name='a', fields={'f': 1}),
            Point(name='b', fields={'f': 2}),
        ])
        self.assertEqual(len(batch), 3)
        self.assertEqual(batch.measurements(), ['b', 'a'])


if __name__ == '__main__':
    logging.basicConfig(level=logging.ERROR)
    unittest.main()
