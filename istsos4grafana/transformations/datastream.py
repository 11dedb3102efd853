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
from istsos4grafana.utils.utils import format_phenomenon_time

from .generic import build_time_series, default_name, frame_name

logger = logging.getLogger(__name__)


def get_unit(datastream):
    unit = datastream.get("unitOfMeasurement") or {}
    return (
        unit.get("name") or "Unknown",
        unit.get("symbol") or "",
        unit.get("definition") or "",
    )


def datastream_custom_meta(datastream):
    unit_name, unit_symbol, unit_definition = get_unit(datastream)
    return {
        "datastreamId": datastream.get("@iot.id"),
        "datastreamName": datastream.get("name"),
        "unitOfMeasurement": {
            "name": unit_name,
            "symbol": unit_symbol,
            "definition": unit_definition,
        },
        "phenomenonTime": datastream.get("phenomenonTime"),
        "observationType": datastream.get("observationType"),
    }


def build_datastream_series(datastream, query):
    """
    Builds the time series of a datastream's expanded observations.

    Args:
        datastream (dict): The datastream with its `Observations`.
        query (Query): The query.

    Returns:
        Frame: The (time, value) frame, or None when no observation has
            a phenomenon time.
    """
    times, values = build_time_series(datastream.get("Observations"))
    if not times:
        return None
    _, unit_symbol, _ = get_unit(datastream)
    entity_id = datastream.get("@iot.id")
    name = datastream.get("name") or f"Datastream {entity_id}"
    meta = datastream_custom_meta(datastream)
    meta["observationCount"] = len(times)
    return create_frame(
        name=frame_name(query, name),
        ref_id=query.ref_id,
        fields=[
            {"name": "time", "type": FieldType.TIME, "values": times},
            {
                "name": unit_symbol or "value",
                "type": FieldType.NUMBER,
                "values": values,
                "config": {
                    "displayName": f"{name} ({unit_symbol})",
                    "unit": unit_symbol,
                },
            },
        ],
        meta={"custom": meta},
    )


def transform_datastreams_table(entities, query):
    columns = {
        "id": [],
        "name": [],
        "description": [],
        "unit_symbol": [],
        "unit_name": [],
        "unit_definition": [],
        "phenomenon_time": [],
    }
    for datastream in entities:
        unit = datastream.get("unitOfMeasurement") or {}
        columns["id"].append(datastream.get("@iot.id"))
        columns["name"].append(datastream.get("name") or "")
        columns["description"].append(datastream.get("description") or "")
        columns["unit_symbol"].append(unit.get("symbol") or "")
        columns["unit_name"].append(unit.get("name") or "")
        columns["unit_definition"].append(unit.get("definition") or "")
        columns["phenomenon_time"].append(
            format_phenomenon_time(datastream.get("phenomenonTime"))
        )

    fields = [
        {
            "name": name,
            "type": FieldType.NUMBER if name == "id" else FieldType.STRING,
            "values": values,
        }
        for name, values in columns.items()
    ]
    fields[-1]["config"] = {"displayName": "Phenomenon Time"}
    return create_frame(
        name=frame_name(query, default_name(query)),
        ref_id=query.ref_id,
        fields=fields,
        meta={
            "custom": {
                "expandedEntities": [d.entity for d in query.expand],
            }
        },
    )


def transform_datastream_properties(entities, query):
    """Property/value table describing a single datastream."""
    datastream = entities[0]
    unit_name, unit_symbol, unit_definition = get_unit(datastream)
    entity_id = datastream.get("@iot.id")
    return create_frame(
        name=frame_name(
            query, datastream.get("name") or f"Datastream {entity_id}"
        ),
        ref_id=query.ref_id,
        fields=[
            {
                "name": "property",
                "type": FieldType.STRING,
                "values": [
                    "ID",
                    "Name",
                    "Description",
                    "Unit Name",
                    "Unit Symbol",
                    "Unit Definition",
                    "Observation Type",
                    "Phenomenon Time",
                ],
            },
            {
                "name": "value",
                "type": FieldType.STRING,
                "values": [
                    "" if entity_id is None else str(entity_id),
                    datastream.get("name") or "",
                    datastream.get("description") or "",
                    unit_name,
                    unit_symbol,
                    unit_definition,
                    datastream.get("observationType") or "",
                    format_phenomenon_time(datastream.get("phenomenonTime")),
                ],
            },
        ],
        meta={"custom": datastream_custom_meta(datastream)},
    )


def transform_datastreams_observations(entities, query):
    """
    One time series frame per datastream with at least one observation.

    Datastreams without observations are left out. When none is left,
    the datastreams are returned as a table instead.
    """
    frames = []
    for datastream in entities:
        frame = build_datastream_series(datastream, query)
        if frame is None:
            logger.debug(
                f"Datastream {datastream.get('@iot.id')} has no observations"
            )
            continue
        frames.append(frame)
    if not frames:
        return transform_datastreams_table(entities, query)
    return frames


def transform_datastream_observations(entities, query):
    frame = build_datastream_series(entities[0], query)
    if frame is None:
        return transform_datastream_properties(entities, query)
    return frame
