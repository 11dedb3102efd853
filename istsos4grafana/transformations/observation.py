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

from istsos4grafana.frame import FieldType, create_frame

from .generic import build_time_series, default_name, frame_name

logger = logging.getLogger(__name__)


def unfold_data_array(entities):
    """
    Expands `dataArray` formatted results into observation objects.

    Args:
        entities (list): The `value` of a dataArray response, one entry
            per datastream with its `components` and `dataArray`.

    Returns:
        list: The observations, as dicts keyed by component name.
    """
    observations = []
    for entity in entities:
        components = entity.get("components")
        if not components or "dataArray" not in entity:
            observations.append(entity)
            continue
        for row in entity.get("dataArray") or []:
            observations.append(dict(zip(components, row)))
    return observations


def transform_observations(entities, query):
    if query.result_format == "dataArray":
        entities = unfold_data_array(entities)
    times, values = build_time_series(entities)
    if len(times) < len(entities):
        logger.debug(
            f"Skipped {len(entities) - len(times)} observations "
            "without phenomenon time"
        )
    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=[
            {"name": "time", "type": FieldType.TIME, "values": times},
            {"name": "value", "type": FieldType.NUMBER, "values": values},
        ],
    )


def transform_observations_with_datastream(entities, query):
    """One row per observation carrying its expanded datastream."""
    rows = [e for e in entities if isinstance(e.get("Datastream"), dict)]
    return create_frame(
        name=frame_name(query, "Observations Datastreams"),
        ref_id=query.ref_id,
        fields=[
            {
                "name": "observation_id",
                "type": FieldType.NUMBER,
                "values": [e.get("@iot.id") for e in rows],
            },
            {
                "name": "datastream_id",
                "type": FieldType.NUMBER,
                "values": [e["Datastream"].get("@iot.id") for e in rows],
            },
            {
                "name": "datastream_name",
                "type": FieldType.STRING,
                "values": [e["Datastream"].get("name") or "" for e in rows],
            },
            {
                "name": "datastream_description",
                "type": FieldType.STRING,
                "values": [
                    e["Datastream"].get("description") or "" for e in rows
                ],
            },
            {
                "name": "datastream_resultTime",
                "type": FieldType.STRING,
                "values": [
                    e["Datastream"].get("resultTime") or "" for e in rows
                ],
            },
        ],
    )
