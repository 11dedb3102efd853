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
    build_time_series,
    default_name,
    frame_name,
    geometry_to_geojson,
    make_field,
)


def transform_feature_observations(entities, query):
    feature = entities[0]
    name = feature.get("name") or "Feature of Interest"
    times, values = build_time_series(feature.get("Observations"))
    return create_frame(
        name=frame_name(query, name),
        ref_id=query.ref_id,
        fields=[
            make_field("time", FieldType.TIME, times),
            make_field("value", FieldType.NUMBER, values, name),
        ],
    )


def transform_features_of_interest(entities, query):
    columns = {
        "geojson": [],
        "feature_id": [],
        "feature_name": [],
        "feature_description": [],
        "feature_type": [],
    }
    for feature in entities:
        geojson = geometry_to_geojson(feature.get("feature"))
        if geojson is None:
            continue
        columns["geojson"].append(geojson[0])
        columns["feature_id"].append(feature.get("@iot.id"))
        columns["feature_name"].append(feature.get("name") or "")
        columns["feature_description"].append(
            feature.get("description") or ""
        )
        columns["feature_type"].append(geojson[1])

    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=[
            make_field(
                "geojson", FieldType.STRING, columns["geojson"], "Geometry"
            ),
            make_field(
                "feature_id",
                FieldType.NUMBER,
                columns["feature_id"],
                "Feature ID",
            ),
            make_field(
                "feature_name",
                FieldType.STRING,
                columns["feature_name"],
                "Feature Name",
            ),
            make_field(
                "feature_description",
                FieldType.STRING,
                columns["feature_description"],
                "Description",
            ),
            make_field(
                "feature_type",
                FieldType.STRING,
                columns["feature_type"],
                "Geometry Type",
            ),
        ],
        meta=dict(GEOSPATIAL_META),
    )
