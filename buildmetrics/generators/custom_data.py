"""Single-series custom data supplied by the caller."""

from typing import List

from ..core.config import DEFAULT_MEASUREMENT_NAME
from ..schema.point import Point
from .base import PointGenerator

DEFAULT_CUSTOM_MEASUREMENT = 'jenkins_custom_data'


class CustomDataPointGenerator(PointGenerator):
    """One point from the flat custom data map, tagged with the flat custom tag map."""

    name = 'Custom data'

    def has_data(self) -> bool:
        return bool(self.context.custom_data)

    def custom_measurement_name(self) -> str:
        """``jenkins_custom_data`` by default, ``custom_<name>`` for an overridden measurement name."""
        base = self.context.measurement_name
        if base == DEFAULT_MEASUREMENT_NAME:
            return self.measurement(DEFAULT_CUSTOM_MEASUREMENT)
        return self.measurement(f"custom_{base}")

    def generate(self) -> List[Point]:
        return [self.build_point(
            self.custom_measurement_name(),
            fields=self.context.custom_data,
            tags=self.context.custom_data_tags,
        )]
