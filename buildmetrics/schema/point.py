"""
Point and batch model for the build metrics publisher.

A Point is one measurement sample (name, tags, fields, timestamp). A Batch is
the ordered set of points written to one target in a single call.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..errors import InvalidPointError

LOG = logging.getLogger(__name__)

FieldValue = Union[int, float, str, bool]


class ConsistencyLevel(Enum):
    """Write consistency hint attached to a batch."""
    ANY = "any"
    ONE = "one"
    QUORUM = "quorum"
    ALL = "all"


def _coerce_field_value(value: Any) -> FieldValue:
    """Keep scalars as they are, render anything else as a string."""
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


@dataclass
class Point:
    """
    One timestamped measurement.

    Tags with a None or empty value and fields with a None value are dropped
    on construction. A point left without fields is invalid and raises
    InvalidPointError.
    """
    name: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    timestamp: Optional[int] = None

    def __post_init__(self):
        if not self.name:
            raise InvalidPointError("Point requires a measurement name")

        self.tags = {
            str(key): str(value)
            for key, value in (self.tags or {}).items()
            if value is not None and str(value) != ''
        }
        self.fields = {
            str(key): _coerce_field_value(value)
            for key, value in (self.fields or {}).items()
            if value is not None
        }

        if not self.fields:
            raise InvalidPointError(f"Point '{self.name}' has no fields")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the point to a plain dictionary (debug output, logging)."""
        return {
            'measurement': self.name,
            'tags': dict(self.tags),
            'fields': dict(self.fields),
            'time': self.timestamp,
        }


@dataclass
class Batch:
    """Points submitted in one write to one target."""
    database: str
    retention_policy: Optional[str] = None
    consistency: ConsistencyLevel = ConsistencyLevel.ANY
    points: List[Point] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def measurements(self) -> List[str]:
        """Distinct measurement names in batch order."""
        seen: List[str] = []
        for point in self.points:
            if point.name not in seen:
                seen.append(point.name)
        return seen
