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

from istsos4grafana.frame import FieldType, create_frame
from istsos4grafana.utils.utils import parse_time

from .generic import GEOSPATIAL_META, frame_name, geometry_to_geojson


def first_location_geometry(locations):
    """
    Returns the first location whose geometry can be reprojected.

    Returns:
        tuple: The location, its GeoJSON string and geometry type, or
            None when no location has a supported geometry.
    """
    for location in locations or []:
        geojson = geometry_to_geojson(location.get("location"))
        if geojson is not None:
            return (location, *geojson)
    return None


def transform_things_locations(entities, query):
    """One row per (thing, location) pair with a supported geometry."""
    columns = {
        "geojson": [],
        "thing_id": [],
        "thing_name": [],
        "thing_description": [],
        "location_name": [],
        "location_type": [],
    }
    for thing in entities:
        for location in thing.get("Locations") or []:
            geojson = geometry_to_geojson(location.get("location"))
            if geojson is None:
                continue
            columns["geojson"].append(geojson[0])
            columns["thing_id"].append(thing.get("@iot.id"))
            columns["thing_name"].append(thing.get("name") or "")
            columns["thing_description"].append(
                thing.get("description") or ""
            )
            columns["location_name"].append(location.get("name") or "")
            columns["location_type"].append(geojson[1])

    return create_frame(
        name=frame_name(query, "Things Locations"),
        ref_id=query.ref_id,
        fields=[
            {
                "name": "geojson",
                "type": FieldType.STRING,
                "values": columns["geojson"],
                "config": {"displayName": "Geometry"},
            },
            {
                "name": "thing_id",
                "type": FieldType.NUMBER,
                "values": columns["thing_id"],
                "config": {"displayName": "Thing ID"},
            },
            {
                "name": "thing_name",
                "type": FieldType.STRING,
                "values": columns["thing_name"],
                "config": {"displayName": "Thing Name"},
            },
            {
                "name": "thing_description",
                "type": FieldType.STRING,
                "values": columns["thing_description"],
                "config": {"displayName": "Description"},
            },
            {
                "name": "location_name",
                "type": FieldType.STRING,
                "values": columns["location_name"],
                "config": {"displayName": "Location Name"},
            },
            {
                "name": "location_type",
                "type": FieldType.STRING,
                "values": columns["location_type"],
                "config": {"displayName": "Geometry Type"},
            },
        ],
        meta=dict(GEOSPATIAL_META),
    )


def transform_things_historical_locations(entities, query):
    """
    One row per historical location of each thing.

    A historical location is placed at the first of its locations with a
    supported geometry. Entries without such a location or without a
    valid time are left out.
    """
    columns = {
        "time": [],
        "geojson": [],
        "thing_id": [],
        "thing_name": [],
        "thing_description": [],
        "historical_location_id": [],
        "location_name": [],
        "location_type": [],
    }
    for thing in entities:
        for historical in thing.get("HistoricalLocations") or []:
            time = parse_time(historical.get("time"))
            found = first_location_geometry(historical.get("Locations"))
            if time is None or found is None:
                continue
            location, geojson, geometry_type = found
            columns["time"].append(time)
            columns["geojson"].append(geojson)
            columns["thing_id"].append(thing.get("@iot.id"))
            columns["thing_name"].append(thing.get("name") or "")
            columns["thing_description"].append(
                thing.get("description") or ""
            )
            columns["historical_location_id"].append(
                historical.get("@iot.id")
            )
            columns["location_name"].append(location.get("name") or "")
            columns["location_type"].append(geometry_type)

    return create_frame(
        name=frame_name(query, "Things Historical Locations"),
        ref_id=query.ref_id,
        fields=[
            {
                "name": "time",
                "type": FieldType.TIME,
                "values": columns["time"],
                "config": {"displayName": "Time"},
            },
            {
                "name": "geojson",
                "type": FieldType.STRING,
                "values": columns["geojson"],
                "config": {"displayName": "Geometry"},
            },
            {
                "name": "thing_id",
                "type": FieldType.NUMBER,
                "values": columns["thing_id"],
                "config": {"displayName": "Thing ID"},
            },
            {
                "name": "thing_name",
                "type": FieldType.STRING,
                "values": columns["thing_name"],
                "config": {"displayName": "Thing Name"},
            },
            {
                "name": "thing_description",
                "type": FieldType.STRING,
                "values": columns["thing_description"],
                "config": {"displayName": "Description"},
            },
            {
                "name": "historical_location_id",
                "type": FieldType.NUMBER,
                "values": columns["historical_location_id"],
                "config": {"displayName": "Historical Location ID"},
            },
            {
                "name": "location_name",
                "type": FieldType.STRING,
                "values": columns["location_name"],
                "config": {"displayName": "Location Name"},
            },
            {
                "name": "location_type",
                "type": FieldType.STRING,
                "values": columns["location_type"],
                "config": {"displayName": "Geometry Type"},
            },
        ],
        meta=dict(GEOSPATIAL_META),
    )
