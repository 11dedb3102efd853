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

"""Layouts shared by several entity kinds."""

import logging

import ujson
from istsos4grafana.frame import FieldType, create_frame
from istsos4grafana.reprojection import transform_geometry
from istsos4grafana.utils.utils import get_singular_entity_name, parse_time

logger = logging.getLogger(__name__)

DEFAULT_NAMES = {
    "Things": "Things",
    "Locations": "Locations",
    "Sensors": "Sensors",
    "ObservedProperties": "Observed Properties",
    "Datastreams": "Datastreams",
    "Observations": "Observations",
    "FeaturesOfInterest": "Features of Interest",
    "HistoricalLocations": "Historical Locations",
}

GEOSPATIAL_META = {"isGeospatialData": True}


def default_name(query) -> str:
    return DEFAULT_NAMES.get(query.entity, query.entity or "")


def frame_name(query, fallback) -> str:
    return query.alias or fallback


def empty_frame(query, name=None):
    return create_frame(
        name=frame_name(query, name or default_name(query)),
        ref_id=query.ref_id,
    )


def entity_type_prefix(entity: str) -> str:
    """Column prefix of an entity kind, e.g. "observedProperty"."""
    singular = get_singular_entity_name(entity)
    return singular[:1].lower() + singular[1:]


def geometry_to_geojson(geometry):
    """
    Reprojects a geometry and encodes it as a GeoJSON string.

    Args:
        geometry (dict): A GeoJSON geometry or Feature.

    Returns:
        tuple: The GeoJSON string and the geometry type, or None when the
            geometry cannot be reprojected.
    """
    if isinstance(geometry, dict) and geometry.get("type") == "Feature":
        geometry = geometry.get("geometry")
    transformed = transform_geometry(geometry)
    if transformed is None:
        return None
    return (
        ujson.dumps(transformed, escape_forward_slashes=False),
        transformed["type"],
    )


def build_time_series(observations):
    """
    Extracts the (time, result) pairs of a list of observations.

    Observations without a usable phenomenon time are left out.

    Returns:
        tuple: The time values in epoch milliseconds and the results.
    """
    times = []
    values = []
    for observation in observations or []:
        time = parse_time(observation.get("phenomenonTime"))
        if time is None:
            continue
        times.append(time)
        values.append(observation.get("result"))
    return times, values


def transform_generic(entities, query, payload=None):
    if not entities:
        return empty_frame(query)

    first = entities[0]
    fields = []
    if "@iot.id" in first:
        fields.append(
            {
                "name": "id",
                "type": FieldType.NUMBER,
                "values": [e.get("@iot.id") for e in entities],
            }
        )
    if "name" in first:
        fields.append(
            {
                "name": "name",
                "type": FieldType.STRING,
                "values": [e.get("name") or "" for e in entities],
            }
        )
    if "description" in first:
        fields.append(
            {
                "name": "description",
                "type": FieldType.STRING,
                "values": [e.get("description") or "" for e in entities],
            }
        )
    if not fields:
        fields.append(
            {
                "name": "data",
                "type": FieldType.STRING,
                "values": [
                    ujson.dumps(e, escape_forward_slashes=False)
                    for e in entities
                ],
            }
        )

    meta = {}
    if isinstance(payload, dict):
        meta["custom"] = {
            "count": payload.get("@iot.count"),
            "nextLink": payload.get("@iot.nextLink"),
        }
    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=fields,
        meta=meta,
    )


def transform_basic_entity(entities, query):
    """
    One row per entity with its id, name and description.

    The column names carry the entity kind, e.g. `sensor_id`.
    """
    prefix = entity_type_prefix(query.entity)
    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=[
            {
                "name": f"{prefix}_id",
                "type": FieldType.NUMBER,
                "values": [e.get("@iot.id") for e in entities],
            },
            {
                "name": f"{prefix}_name",
                "type": FieldType.STRING,
                "values": [e.get("name") or "" for e in entities],
            },
            {
                "name": f"{prefix}_description",
                "type": FieldType.STRING,
                "values": [e.get("description") or "" for e in entities],
            },
        ],
    )


def transform_entity_with_datastreams(entities, query):
    """One row per (entity, expanded datastream) pair."""
    prefix = entity_type_prefix(query.entity)
    columns = {
        f"{prefix}_id": [],
        f"{prefix}_name": [],
        f"{prefix}_description": [],
        "datastream_id": [],
        "datastream_name": [],
        "datastream_description": [],
        "datastream_resultTime": [],
    }
    for entity in entities:
        for datastream in entity.get("Datastreams") or []:
            columns[f"{prefix}_id"].append(entity.get("@iot.id"))
            columns[f"{prefix}_name"].append(entity.get("name") or "")
            columns[f"{prefix}_description"].append(
                entity.get("description") or ""
            )
            columns["datastream_id"].append(datastream.get("@iot.id"))
            columns["datastream_name"].append(datastream.get("name") or "")
            columns["datastream_description"].append(
                datastream.get("description") or ""
            )
            columns["datastream_resultTime"].append(
                datastream.get("resultTime") or ""
            )

    number_columns = (f"{prefix}_id", "datastream_id")
    return create_frame(
        name=frame_name(query, f"{default_name(query)} Datastreams"),
        ref_id=query.ref_id,
        fields=[
            {
                "name": name,
                "type": (
                    FieldType.NUMBER
                    if name in number_columns
                    else FieldType.STRING
                ),
                "values": values,
            }
            for name, values in columns.items()
        ],
    )


def make_field(name, field_type, values, display_name=None):
    field = {"name": name, "type": field_type, "values": values}
    if display_name:
        field["config"] = {"displayName": display_name}
    return field
