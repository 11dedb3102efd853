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

"""Option sets offered by the query editor, per entity kind."""

from typing import NamedTuple


class Option(NamedTuple):
    label: str
    value: str
    description: str = ""


ENTITY_OPTIONS = (
    Option("Things", "Things", "Physical or virtual objects"),
    Option("Locations", "Locations", "Geographic positions"),
    Option("Sensors", "Sensors", "Measurement instruments"),
    Option(
        "Observed Properties", "ObservedProperties", "What is being measured"
    ),
    Option(
        "Datastreams",
        "Datastreams",
        "Links Things, Sensors, and ObservedProperties",
    ),
    Option("Observations", "Observations", "Actual measurements"),
    Option(
        "Features of Interest",
        "FeaturesOfInterest",
        "Real-world features being observed",
    ),
    Option(
        "Historical Locations",
        "HistoricalLocations",
        "Movement history of Things",
    ),
)

RESULT_FORMAT_OPTIONS = (
    Option("Default", "default"),
    Option("Data Array", "dataArray"),
)

EXPAND_OPTIONS = {
    "Things": (
        Option("Locations", "Locations", "Include related locations"),
        Option("Datastreams", "Datastreams", "Include related datastreams"),
        Option(
            "HistoricalLocations",
            "HistoricalLocations",
            "Include historical locations",
        ),
    ),
    "Datastreams": (
        Option("Observations", "Observations", "Include related observations"),
        Option("Thing", "Thing", "Include the related Thing"),
        Option("Sensor", "Sensor", "Include the related Sensor"),
        Option(
            "ObservedProperty",
            "ObservedProperty",
            "Include the related ObservedProperty",
        ),
    ),
    "Observations": (
        Option("Datastream", "Datastream", "Include the related Datastream"),
        Option(
            "FeatureOfInterest",
            "FeatureOfInterest",
            "Include the related FeatureOfInterest",
        ),
    ),
    "Locations": (
        Option("Things", "Things", "Include related things"),
        Option(
            "HistoricalLocations",
            "HistoricalLocations",
            "Include historical locations",
        ),
    ),
    "HistoricalLocations": (
        Option("Locations", "Locations", "Include related locations"),
        Option("Thing", "Thing", "Include the related Thing"),
    ),
    "Sensors": (
        Option("Datastreams", "Datastreams", "Include related datastreams"),
    ),
    "ObservedProperties": (
        Option("Datastreams", "Datastreams", "Include related datastreams"),
    ),
    "FeaturesOfInterest": (
        Option("Observations", "Observations", "Include related observations"),
    ),
}

FILTER_TYPES = (
    Option("Basic", "basic", "Filter by basic properties like name or ID"),
    Option("Temporal", "temporal", "Filter by time-related properties"),
    Option(
        "Measurement", "measurement", "Filter by measurement values or units"
    ),
    Option("Spatial", "spatial", "Filter by geographic location"),
    Option(
        "Observation", "observation", "Filter the expanded observations"
    ),
    Option("Entity", "entity", "Filter by a related entity"),
    Option("Variable", "variable", "Filter by a dashboard variable"),
    Option("Complex", "complex", "Custom OData filter expression"),
)

# Filter types other than the ones every entity supports
ENTITY_FILTER_TYPES = {
    "Things": (),
    "Locations": ("spatial",),
    "Sensors": (),
    "ObservedProperties": (),
    "Datastreams": ("temporal", "measurement", "spatial", "observation"),
    "Observations": ("temporal", "measurement"),
    "FeaturesOfInterest": ("spatial",),
    "HistoricalLocations": ("temporal",),
}

COMMON_FILTER_TYPES = ("basic", "entity", "variable", "complex")

COMMON_FIELDS = (
    Option("Name", "name", "Entity name"),
    Option("ID", "@iot.id", "Entity ID"),
    Option("Description", "description", "Entity description"),
)

OBSERVATION_FIELDS = (
    Option("ID", "@iot.id", "Observation ID"),
    Option("Result", "result", "Observation result value"),
    Option("Phenomenon Time", "phenomenonTime", "Time of phenomenon"),
    Option("Result Time", "resultTime", "Time of result"),
    Option(
        "Feature of Interest",
        "FeatureOfInterest/@iot.id",
        "Feature of interest ID",
    ),
)

MEASUREMENT_FIELDS = (
    Option("Result", "result", "Observation result value"),
    Option("Unit Name", "unitOfMeasurement/name", "Unit of measurement name"),
    Option(
        "Unit Symbol", "unitOfMeasurement/symbol", "Unit of measurement symbol"
    ),
)

TEMPORAL_FIELDS = (
    Option("Phenomenon Time", "phenomenonTime", "Time of phenomenon"),
    Option("Result Time", "resultTime", "Time of result"),
)

SPATIAL_FIELDS = {
    "Locations": (Option("Location", "location", "Location"),),
    "Datastreams": (Option("Observed Area", "observedArea", "Observed area"),),
    "FeaturesOfInterest": (
        Option("Feature", "feature", "Feature geometry"),
    ),
}

COMPARISON_OPERATORS = (
    Option("Equals", "eq", "Equal to"),
    Option("Not Equals", "ne", "Not equal to"),
    Option("Greater Than", "gt", "Greater than"),
    Option("Greater Than or Equal", "ge", "Greater than or equal to"),
    Option("Less Than", "lt", "Less than"),
    Option("Less Than or Equal", "le", "Less than or equal to"),
)

STRING_OPERATORS = (
    Option("Starts With", "startswith", "String starts with value"),
    Option("Ends With", "endswith", "String ends with value"),
    Option(
        "Substring of", "substringof", "String contains value (substringof)"
    ),
)

SPATIAL_OPERATORS = (
    Option(
        "Within", "st_within", "Location is within the specified geometry"
    ),
    Option(
        "Intersects",
        "st_intersects",
        "Location intersects with the specified geometry",
    ),
    Option(
        "Distance",
        "st_distance",
        "Distance between location and specified point",
    ),
)

TEMPORAL_FUNCTIONS = (
    Option("Year", "year", "Year component of date"),
    Option("Month", "month", "Month component of date"),
    Option("Day", "day", "Day component of date"),
    Option("Hour", "hour", "Hour component of time"),
    Option("Minute", "minute", "Minute component of time"),
    Option("Second", "second", "Second component of time"),
)

GEOMETRY_TYPES = (
    Option("Point", "Point", "A single point (x, y)"),
    Option("Polygon", "Polygon", "A polygon defined by points"),
    Option("LineString", "LineString", "A line defined by points"),
)


def get_entity_options():
    return ENTITY_OPTIONS


def get_result_format_options():
    return RESULT_FORMAT_OPTIONS


def get_expand_options(entity):
    return EXPAND_OPTIONS.get(entity, ())


def get_filter_types(entity):
    """
    Lists the filter types available for an entity kind.

    Args:
        entity (str): The entity kind.

    Returns:
        tuple: The filter type options, in display order.
    """
    allowed = COMMON_FILTER_TYPES + ENTITY_FILTER_TYPES.get(entity, ())
    return tuple(o for o in FILTER_TYPES if o.value in allowed)


def get_field_options(entity, filter_type):
    if filter_type == "temporal":
        return TEMPORAL_FIELDS
    if filter_type == "measurement":
        return MEASUREMENT_FIELDS
    if filter_type == "observation":
        return OBSERVATION_FIELDS
    if filter_type == "spatial":
        return SPATIAL_FIELDS.get(entity, ())
    if entity == "Observations":
        return OBSERVATION_FIELDS
    return COMMON_FIELDS


def get_operator_options(filter_type):
    if filter_type == "spatial":
        return SPATIAL_OPERATORS
    if filter_type in ("basic", "entity"):
        return COMPARISON_OPERATORS + STRING_OPERATORS
    return COMPARISON_OPERATORS


def get_options(entity):
    """
    Collects every option set of an entity kind.

    Args:
        entity (str): The entity kind.

    Returns:
        dict: The option sets as lists of dicts, keyed by name.
    """

    def as_dicts(options):
        return [o._asdict() for o in options]

    filter_types = get_filter_types(entity)
    return {
        "entities": as_dicts(get_entity_options()),
        "resultFormats": as_dicts(get_result_format_options()),
        "expand": as_dicts(get_expand_options(entity)),
        "filterTypes": as_dicts(filter_types),
        "fields": {
            o.value: as_dicts(get_field_options(entity, o.value))
            for o in filter_types
        },
        "operators": {
            o.value: as_dicts(get_operator_options(o.value))
            for o in filter_types
        },
        "temporalFunctions": as_dicts(TEMPORAL_FUNCTIONS),
        "geometryTypes": as_dicts(GEOMETRY_TYPES),
    }
