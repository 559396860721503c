"""Multi-series custom data: one measurement per outer map key."""

import logging
from typing import List

from ..schema.point import Point
from .base import PointGenerator

LOG = logging.getLogger(__name__)


class CustomDataMapPointGenerator(PointGenerator):
    """
    Emits one point per series in the nested custom data map.

    The series key (prefixed when a prefix is set) is the measurement name.
    Fields are exactly the series map; tags are exactly the matching entry of
    the nested tag map, or none.
    """

    name = 'Custom data map'

    def has_data(self) -> bool:
        return bool(self.context.custom_data_map)

    def generate(self) -> List[Point]:
        ctx = self.context
        points = []
        for series, values in ctx.custom_data_map.items():
            if not any(v is not None for v in (values or {}).values()):
                LOG.debug(f"Custom data map series '{series}' has no values, skipping")
                continue
            tags = ctx.custom_data_map_tags.get(series) or {}
            points.append(Point(
                name=self.measurement(series),
                tags=self.sanitize_tags(tags),
                fields=dict(values),
                timestamp=ctx.timestamp,
            ))
        return points
