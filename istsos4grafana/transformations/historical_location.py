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

from .generic import GEOSPATIAL_META, default_name, frame_name, make_field
from .thing import first_location_geometry


def transform_historical_locations(entities, query):
    """One row per historical location placed at its first location."""
    columns = {
        "time": [],
        "geojson": [],
        "historical_location_id": [],
        "location_name": [],
        "location_type": [],
    }
    for historical in entities:
        time = parse_time(historical.get("time"))
        found = first_location_geometry(historical.get("Locations"))
        if time is None or found is None:
            continue
        location, geojson, geometry_type = found
        columns["time"].append(time)
        columns["geojson"].append(geojson)
        columns["historical_location_id"].append(historical.get("@iot.id"))
        columns["location_name"].append(location.get("name") or "")
        columns["location_type"].append(geometry_type)

    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=[
            make_field("time", FieldType.TIME, columns["time"], "Time"),
            make_field(
                "geojson", FieldType.STRING, columns["geojson"], "Geometry"
            ),
            make_field(
                "historical_location_id",
                FieldType.NUMBER,
                columns["historical_location_id"],
                "Historical Location ID",
            ),
            make_field(
                "location_name",
                FieldType.STRING,
                columns["location_name"],
                "Location Name",
            ),
            make_field(
                "location_type",
                FieldType.STRING,
                columns["location_type"],
                "Geometry Type",
            ),
        ],
        meta=dict(GEOSPATIAL_META),
    )
