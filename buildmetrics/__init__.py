"""Build metrics publisher.

Collects build, test and quality metrics produced during a CI build and
publishes them as InfluxDB points to one or more targets.
"""

__version__ = '1.0.0'
