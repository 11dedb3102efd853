# Copyright 2025 SUPSI
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Filter compiler.

Turns the structured filter conditions built in the editor into a single
OGC SensorThings `$filter` expression. Conditions that cannot be compiled
contribute nothing, so a half-edited filter never blocks the query.
"""

import logging

from istsos4grafana.utils.utils import (
    format_datetime,
    format_number,
    format_string,
    format_value,
    get_singular_entity_name,
    is_number,
)

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = ("eq", "ne", "gt", "ge", "lt", "le")
STRING_OPERATORS = ("startswith", "endswith", "substringof")
SPATIAL_OPERATORS = ("st_within", "st_intersects", "st_distance")
TEMPORAL_FUNCTIONS = ("year", "month", "day", "hour", "minute", "second")
TIME_FIELDS = ("phenomenonTime", "resultTime")
NUMERIC_FIELDS = ("result", "@iot.id", "id")


def _has_value(value) -> bool:
    return value is not None and value != ""


def _is_numeric_field(field: str) -> bool:
    return field.rsplit("/", 1)[-1] in NUMERIC_FIELDS


def build_filter_expression(filters) -> str:
    """
    Builds a filter expression from structured filter conditions.

    Args:
        filters (list): The filter conditions.

    Returns:
        str: The conditions joined with `and`, empty when none compiles.
    """
    expressions = []
    for condition in filters:
        builder = FILTER_BUILDERS.get(condition.type)
        expression = builder(condition) if builder else ""
        if expression:
            expressions.append(expression)
        else:
            logger.debug(f"Dropped filter condition {condition.id}")
    return " and ".join(expressions)


def build_basic_filter(condition) -> str:
    if not condition.operator or not _has_value(condition.value):
        return ""
    if condition.operator in ("startswith", "endswith"):
        return (
            f"{condition.operator}({condition.field},"
            f"{format_string(condition.value)})"
        )
    if condition.operator == "substringof":
        return (
            f"substringof({format_string(condition.value)},"
            f"{condition.field})"
        )
    numeric = _is_numeric_field(condition.field)
    return (
        f"{condition.field} {condition.operator} "
        f"{format_value(condition.value, numeric)}"
    )


def build_temporal_filter(condition) -> str:
    if condition.start_date and condition.end_date:
        return (
            f"({condition.field} ge {format_datetime(condition.start_date)}"
            f" and {condition.field} le "
            f"{format_datetime(condition.end_date)})"
        )
    if not condition.operator or not _has_value(condition.value):
        return ""
    if condition.operator in TEMPORAL_FUNCTIONS:
        if not is_number(condition.value):
            logger.warning(
                f"Invalid {condition.operator} value: {condition.value}"
            )
            return ""
        return (
            f"{condition.operator}({condition.field}) eq "
            f"{format_number(condition.value)}"
        )
    if condition.operator not in COMPARISON_OPERATORS:
        return ""
    return (
        f"{condition.field} {condition.operator} "
        f"{format_datetime(condition.value)}"
    )


def build_measurement_filter(condition) -> str:
    if condition.operator not in COMPARISON_OPERATORS:
        return ""
    if not _has_value(condition.value):
        return ""
    numeric = _is_numeric_field(condition.field)
    return (
        f"{condition.field} {condition.operator} "
        f"{format_value(condition.value, numeric)}"
    )


def build_observation_filter(condition) -> str:
    if not condition.operator or not _has_value(condition.value):
        return ""
    if condition.field in TIME_FIELDS:
        return (
            f"{condition.field} {condition.operator} "
            f"{format_datetime(condition.value)}"
        )
    numeric = _is_numeric_field(condition.field)
    return (
        f"{condition.field} {condition.operator} "
        f"{format_value(condition.value, numeric)}"
    )


def build_entity_filter(condition) -> str:
    if (
        not condition.operator
        or not condition.entity
        or not _has_value(condition.value)
    ):
        return ""
    path = f"{get_singular_entity_name(condition.entity)}/{condition.field}"
    numeric = _is_numeric_field(condition.field)
    return (
        f"{path} {condition.operator} "
        f"{format_value(condition.value, numeric)}"
    )


def build_variable_filter(condition) -> str:
    if not condition.operator:
        return ""
    path = f"{condition.entity}/{condition.field}"
    if _has_value(condition.value):
        numeric = _is_numeric_field(condition.field)
        return (
            f"{path} {condition.operator} "
            f"{format_value(condition.value, numeric)}"
        )
    if condition.variable_name:
        return f"{path} {condition.operator} ${condition.variable_name}"
    return ""


def build_complex_filter(condition) -> str:
    return (condition.expression or "").strip()


def _format_point(point) -> str:
    return f"{format_number(point[0])} {format_number(point[1])}"


def _is_point(point) -> bool:
    return (
        isinstance(point, (list, tuple))
        and len(point) >= 2
        and is_number(point[0])
        and is_number(point[1])
    )


def _format_ring(coordinates):
    """
    Formats a linear ring, closing it when needed.

    Returns:
        str: The ring coordinates, or None if the ring is malformed.
    """
    if not coordinates or not all(_is_point(p) for p in coordinates):
        return None
    points = [list(p[:2]) for p in coordinates]
    if points[0] != points[-1]:
        points.append(list(points[0]))
    # A closed ring needs at least three distinct vertices
    if len(points) < 4:
        return None
    return ", ".join(_format_point(p) for p in points)


def build_geometry(condition):
    """
    Builds the geography WKT literal of a spatial condition.

    Args:
        condition (SpatialFilter): The spatial condition.

    Returns:
        str: The geography literal, or None if the geometry is malformed.
    """
    coordinates = condition.coordinates or []
    if condition.geometry_type == "Point":
        if not _is_point(coordinates):
            logger.warning(
                "Invalid Point coordinates for spatial filter, "
                "length less than 2"
            )
            return None
        return f"geography'POINT ({_format_point(coordinates)})'"

    if condition.geometry_type == "LineString":
        if len(coordinates) < 2 or not all(
            _is_point(p) for p in coordinates
        ):
            logger.warning("Invalid LineString coordinates for spatial filter")
            return None
        points = ", ".join(_format_point(p) for p in coordinates)
        return f"geography'LINESTRING ({points})'"

    if condition.geometry_type == "Polygon":
        rings = [ring.coordinates for ring in condition.rings]
        if not rings:
            rings = coordinates
        if not rings:
            logger.warning(
                "Invalid Polygon rings for spatial filter, no rings provided"
            )
            return None
        formatted = [_format_ring(ring) for ring in rings]
        if any(ring is None for ring in formatted):
            logger.warning("Invalid Polygon ring for spatial filter")
            return None
        joined = "), (".join(formatted)
        return f"geography'POLYGON (({joined}))'"

    return None


def build_spatial_filter(condition) -> str:
    if condition.operator not in SPATIAL_OPERATORS:
        return ""
    geometry = build_geometry(condition)
    if geometry is None:
        return ""
    call = f"{condition.operator}({condition.field}, {geometry})"
    if condition.operator == "st_distance":
        if not is_number(condition.value):
            logger.warning("Missing distance for st_distance spatial filter")
            return ""
        return f"{call} le {format_number(condition.value)}"
    return call


FILTER_BUILDERS = {
    "basic": build_basic_filter,
    "temporal": build_temporal_filter,
    "measurement": build_measurement_filter,
    "spatial": build_spatial_filter,
    "observation": build_observation_filter,
    "entity": build_entity_filter,
    "variable": build_variable_filter,
    "complex": build_complex_filter,
}


class FilterExpressions:
    """Common filter expressions for the SensorThings API."""

    @staticmethod
    def equals(prop, value):
        return f"{prop} eq {format_value(value)}"

    @staticmethod
    def not_equals(prop, value):
        return f"{prop} ne {format_value(value)}"

    @staticmethod
    def greater_than(prop, value):
        return f"{prop} gt {format_value(value)}"

    @staticmethod
    def greater_than_or_equal(prop, value):
        return f"{prop} ge {format_value(value)}"

    @staticmethod
    def less_than(prop, value):
        return f"{prop} lt {format_value(value)}"

    @staticmethod
    def less_than_or_equal(prop, value):
        return f"{prop} le {format_value(value)}"

    @staticmethod
    def starts_with(prop, value):
        return f"startswith({prop},{format_string(value)})"

    @staticmethod
    def ends_with(prop, value):
        return f"endswith({prop},{format_string(value)})"

    @staticmethod
    def substringof(prop, value):
        return f"substringof({format_string(value)},{prop})"

    @staticmethod
    def date_part(function, prop, value):
        if function not in TEMPORAL_FUNCTIONS:
            raise ValueError(f"Unknown temporal function: {function}")
        return f"{function}({prop}) eq {value}"

    @staticmethod
    def time_range(prop, start, end):
        return (
            f"({prop} ge {format_datetime(start)} "
            f"and {prop} le {format_datetime(end)})"
        )

    @staticmethod
    def and_(*expressions):
        return " and ".join(e for e in expressions if e)

    @staticmethod
    def or_(*expressions):
        expressions = [e for e in expressions if e]
        joined = " or ".join(expressions)
        return f"({joined})" if len(expressions) > 1 else joined

    @staticmethod
    def not_(expression):
        return f"not ({expression})"

    @staticmethod
    def within(prop, geometry):
        return f"st_within({prop}, {geometry})"

    @staticmethod
    def intersects(prop, geometry):
        return f"st_intersects({prop}, {geometry})"

    @staticmethod
    def distance(prop, geometry, distance):
        return f"st_distance({prop}, {geometry}) le {format_number(distance)}"
