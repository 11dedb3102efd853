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

import logging
import re
from datetime import datetime, timezone

from dateutil.parser import isoparse

logger = logging.getLogger(__name__)

# Mapping from SensorThings collection names to their singular entity names
ENTITY_MAPPING = {
    "Things": "Thing",
    "Locations": "Location",
    "Sensors": "Sensor",
    "ObservedProperties": "ObservedProperty",
    "Datastreams": "Datastream",
    "Observations": "Observation",
    "FeaturesOfInterest": "FeatureOfInterest",
    "HistoricalLocations": "HistoricalLocation",
}

NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?([eE][-+]?\d+)?$")


def get_singular_entity_name(entity: str) -> str:
    """
    Converts a collection name to the name of one of its members.

    Args:
        entity (str): The entity name, plural or singular.

    Returns:
        str: The singular entity name.
    """
    if entity in ENTITY_MAPPING:
        return ENTITY_MAPPING[entity]
    if entity.endswith("s"):
        return entity[:-1]
    return entity


def compare_entity_names(first: str, second: str) -> bool:
    if not first or not second:
        return False
    return get_singular_entity_name(first) == get_singular_entity_name(
        second
    )


def is_number(value) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(NUMBER_PATTERN.match(value))


def format_number(value) -> str:
    """
    Formats a number the way it is written in a filter literal.

    Whole floats lose their fractional part, so 7.0 is written as 7.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_string(value) -> str:
    escaped = str(value).replace("'", "''")
    return f"'{escaped}'"


def format_value(value, numeric=False) -> str:
    """
    Formats a value for use in a filter expression.

    Args:
        value: The value to format.
        numeric (bool): Whether numeric strings should be written as
            number literals instead of quoted strings.

    Returns:
        str: The literal.
    """
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, datetime):
        return format_datetime(value.isoformat())
    if numeric and is_number(value):
        return str(value)
    return format_string(value)


def format_datetime(value) -> str:
    return format_string(value)


def to_utc_isoformat(value: str) -> str:
    """
    Normalizes an ISO 8601 string to UTC, naive values being local time.

    Args:
        value (str): The datetime string.

    Returns:
        str: The datetime in UTC with a trailing Z.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        local_timezone = datetime.now().astimezone().tzinfo
        parsed = parsed.replace(tzinfo=local_timezone)
    utc_datetime = parsed.astimezone(timezone.utc)
    return utc_datetime.isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_time(value):
    """
    Parses a SensorThings time value into epoch milliseconds.

    Intervals written as "start/end" resolve to their start instant.

    Args:
        value (str): The time or interval string.

    Returns:
        int: Milliseconds since the epoch, or None if the value is empty
            or cannot be parsed.
    """
    if not value:
        return None
    if isinstance(value, str) and "/" in value:
        value = value.split("/")[0]
    try:
        parsed = isoparse(value)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable time value: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def format_phenomenon_time(value) -> str:
    """
    Formats a phenomenon time or interval for display.

    Args:
        value (str): A single instant or a "start/end" interval.

    Returns:
        str: "start to end" for intervals, the instant otherwise, or an
            empty string when there is no value.
    """
    if not value:
        return ""
    try:
        if "/" in value:
            start_time, end_time = value.split("/")
            return (
                f"{isoparse(start_time).isoformat()} to "
                f"{isoparse(end_time).isoformat()}"
            )
        return isoparse(value).isoformat()
    except ValueError:
        logger.warning(f"Error formatting phenomenon time: {value}")
        return value
