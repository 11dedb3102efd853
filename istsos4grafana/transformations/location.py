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

from .generic import (
    GEOSPATIAL_META,
    default_name,
    frame_name,
    geometry_to_geojson,
    make_field,
)


def transform_locations(entities, query):
    """
    Builds the geometry frame of a list of locations.

    Locations are reprojected to WGS84 and skipped when their geometry is
    not supported. When the locations carry expanded Things there is one
    row per (location, thing) pair, plus the thing columns.

    Args:
        entities (list): The locations.
        query (Query): The query.

    Returns:
        Frame: The geospatial frame.
    """
    with_things = any(location.get("Things") for location in entities)
    columns = {
        "geojson": [],
        "location_id": [],
        "location_name": [],
        "location_description": [],
        "location_type": [],
        "thing_id": [],
        "thing_name": [],
        "thing_description": [],
    }
    for location in entities:
        geojson = geometry_to_geojson(location.get("location"))
        if geojson is None:
            continue
        things = location.get("Things") or [{}]
        for thing in things if with_things else [{}]:
            columns["geojson"].append(geojson[0])
            columns["location_id"].append(location.get("@iot.id"))
            columns["location_name"].append(location.get("name") or "")
            columns["location_description"].append(
                location.get("description") or ""
            )
            columns["location_type"].append(geojson[1])
            columns["thing_id"].append(thing.get("@iot.id"))
            columns["thing_name"].append(thing.get("name") or "")
            columns["thing_description"].append(
                thing.get("description") or ""
            )

    fields = [
        make_field(
            "geojson", FieldType.STRING, columns["geojson"], "Geometry"
        ),
        make_field(
            "location_id",
            FieldType.NUMBER,
            columns["location_id"],
            "Location ID",
        ),
        make_field(
            "location_name",
            FieldType.STRING,
            columns["location_name"],
            "Location Name",
        ),
        make_field(
            "location_description",
            FieldType.STRING,
            columns["location_description"],
            "Description",
        ),
        make_field(
            "location_type",
            FieldType.STRING,
            columns["location_type"],
            "Geometry Type",
        ),
    ]
    if with_things:
        fields += [
            make_field(
                "thing_id", FieldType.NUMBER, columns["thing_id"], "Thing ID"
            ),
            make_field(
                "thing_name",
                FieldType.STRING,
                columns["thing_name"],
                "Thing Name",
            ),
            make_field(
                "thing_description",
                FieldType.STRING,
                columns["thing_description"],
                "Thing Description",
            ),
        ]
    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=fields,
        meta=dict(GEOSPATIAL_META),
    )
