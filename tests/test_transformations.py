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

"""Tests for the response transformations."""

import pytest
import ujson

from istsos4grafana.frame import Frame
from istsos4grafana.models import (
    ExpandDirective,
    ObservationFilter,
    Query,
)
from istsos4grafana.transformations import (
    TRANSFORM_RULES,
    get_expanded_relations,
    select_transform,
    transform_response,
)

JAN_1 = 1704067200000
HOUR = 3600 * 1000


def expanded(entity, *relations, **kwargs):
    return Query(
        entity=entity,
        expand=[ExpandDirective(entity=r) for r in relations],
        **kwargs,
    )


def values(frame, name):
    return frame.get_field(name).values


class TestEmptyPayloads:
    @pytest.mark.parametrize(
        "entity, name",
        [
            ("Things", "Things"),
            ("Locations", "Locations"),
            ("Sensors", "Sensors"),
            ("ObservedProperties", "Observed Properties"),
            ("Datastreams", "Datastreams"),
            ("Observations", "Observations"),
            ("FeaturesOfInterest", "Features of Interest"),
            ("HistoricalLocations", "Historical Locations"),
        ],
    )
    def test_empty_collection(self, entity, name):
        frame = transform_response({"value": []}, Query(entity=entity))
        assert isinstance(frame, Frame)
        assert frame.length == 0
        assert frame.name == name

    @pytest.mark.parametrize("payload", [None, {}, {"value": None}])
    def test_absent_value(self, payload):
        frame = transform_response(payload, Query(entity="Observations"))
        assert frame.length == 0

    def test_alias_names_the_frame(self):
        query = Query(entity="Things", alias="My things", ref_id="B")
        frame = transform_response({"value": []}, query)
        assert frame.name == "My things"
        assert frame.ref_id == "B"


class TestObservations:
    def test_time_series_skips_missing_time(self, observations_page):
        frame = transform_response(
            {"value": observations_page}, Query(entity="Observations")
        )
        assert frame.field_names() == ["time", "value"]
        assert values(frame, "time") == [JAN_1, JAN_1 + 2 * HOUR]
        assert values(frame, "value") == [1.5, 3.5]

    def test_data_array(self):
        payload = {
            "value": [
                {
                    "Datastream@iot.navigationLink": "Datastreams(1)",
                    "components": ["id", "phenomenonTime", "result"],
                    "dataArray": [
                        [1, "2024-01-01T00:00:00Z", 3],
                        [2, "2024-01-01T01:00:00Z", 4],
                    ],
                }
            ]
        }
        query = Query(entity="Observations", result_format="dataArray")
        frame = transform_response(payload, query)
        assert values(frame, "time") == [JAN_1, JAN_1 + HOUR]
        assert values(frame, "value") == [3, 4]

    def test_with_datastream(self, observations_page):
        observations_page[0]["Datastream"] = {
            "@iot.id": 7,
            "name": "Air temperature",
            "description": "Temperature at 2m",
            "resultTime": "2024-01-01T00:00:00Z/2024-01-02T00:00:00Z",
        }
        frame = transform_response(
            {"value": observations_page},
            expanded("Observations", "Datastream"),
        )
        assert frame.name == "Observations Datastreams"
        assert values(frame, "observation_id") == [100]
        assert values(frame, "datastream_id") == [7]
        assert values(frame, "datastream_name") == ["Air temperature"]


class TestDatastreams:
    def test_one_frame_per_datastream(self, datastreams_with_observations):
        frames = transform_response(
            datastreams_with_observations,
            expanded("Datastreams", "Observations"),
        )
        assert isinstance(frames, list)
        assert len(frames) == 1
        frame = frames[0]
        assert frame.name == "Air temperature"
        series = frame.get_field("°C")
        assert series.config["displayName"] == "Air temperature (°C)"
        assert series.values == [1.5, 2.5]
        assert values(frame, "time") == [JAN_1, JAN_1 + HOUR]

    def test_observation_filter_implies_expand(
        self, datastreams_with_observations
    ):
        query = Query(
            entity="Datastreams",
            filters=[
                ObservationFilter(field="result", operator="gt", value="1")
            ],
        )
        frames = transform_response(datastreams_with_observations, query)
        assert len(frames) == 1

    def test_falls_back_to_table(self, datastreams_with_observations):
        for datastream in datastreams_with_observations["value"]:
            datastream["Observations"] = []
        frame = transform_response(
            datastreams_with_observations,
            expanded("Datastreams", "Observations"),
        )
        assert frame.name == "Datastreams"
        assert values(frame, "id") == [1, 2]
        assert values(frame, "unit_symbol") == ["°C", "%"]

    def test_table(self, datastreams_with_observations):
        payload = datastreams_with_observations
        payload["value"][0]["phenomenonTime"] = (
            "2024-01-01T00:00:00Z/2024-01-02T00:00:00Z"
        )
        frame = transform_response(payload, Query(entity="Datastreams"))
        assert frame.field_names() == [
            "id",
            "name",
            "description",
            "unit_symbol",
            "unit_name",
            "unit_definition",
            "phenomenon_time",
        ]
        assert values(frame, "phenomenon_time") == [
            "2024-01-01T00:00:00+00:00 to 2024-01-02T00:00:00+00:00",
            "",
        ]

    def test_single_datastream_series(self, datastreams_with_observations):
        datastream = datastreams_with_observations["value"][0]
        frame = transform_response(
            datastream,
            expanded("Datastreams", "Observations", entity_id=1),
        )
        assert isinstance(frame, Frame)
        assert frame.name == "Air temperature"
        assert frame.meta["custom"]["observationCount"] == 2

    def test_single_datastream_properties(
        self, datastreams_with_observations
    ):
        datastream = datastreams_with_observations["value"][1]
        frame = transform_response(
            datastream, Query(entity="Datastreams", entity_id=2)
        )
        assert frame.field_names() == ["property", "value"]
        assert values(frame, "value")[:2] == ["2", "Humidity"]
        assert values(frame, "value")[4] == "%"


class TestEntitiesWithDatastreams:
    @pytest.mark.parametrize(
        "entity, prefix, name",
        [
            ("Things", "thing", "Things Datastreams"),
            ("Sensors", "sensor", "Sensors Datastreams"),
            (
                "ObservedProperties",
                "observedProperty",
                "Observed Properties Datastreams",
            ),
        ],
    )
    def test_join(self, entity, prefix, name):
        payload = {
            "value": [
                {
                    "@iot.id": 1,
                    "name": "A",
                    "Datastreams": [
                        {"@iot.id": 10, "name": "D1"},
                        {"@iot.id": 11, "name": "D2"},
                    ],
                },
                {"@iot.id": 2, "name": "B", "Datastreams": []},
            ]
        }
        frame = transform_response(payload, expanded(entity, "Datastreams"))
        assert frame.name == name
        assert values(frame, f"{prefix}_id") == [1, 1]
        assert values(frame, "datastream_id") == [10, 11]
        assert values(frame, "datastream_name") == ["D1", "D2"]

    def test_basic_entity(self):
        payload = {"value": [{"@iot.id": 3, "name": "Sensor"}]}
        frame = transform_response(payload, Query(entity="Sensors"))
        assert frame.field_names() == [
            "sensor_id",
            "sensor_name",
            "sensor_description",
        ]
        assert values(frame, "sensor_description") == [""]


class TestGeospatial:
    def test_things_locations(self, thing_with_locations):
        frame = transform_response(
            thing_with_locations, expanded("Things", "Locations", entity_id=1)
        )
        assert frame.meta["isGeospatialData"] is True
        # The MultiPoint location is skipped
        assert frame.length == 1
        geometry = ujson.loads(values(frame, "geojson")[0])
        lon, lat = geometry["coordinates"]
        assert -180 <= lon <= 180
        assert -90 <= lat <= 90
        assert lon == pytest.approx(7.44, abs=0.01)
        assert values(frame, "location_type") == ["Point"]
        assert values(frame, "thing_name") == ["Station Bern"]

    def test_expression_expand_is_detected(self, thing_with_locations):
        query = Query(
            entity="Things",
            expression="$expand=Locations($select=name,location)&$top=5",
        )
        frame = transform_response({"value": [thing_with_locations]}, query)
        assert "geojson" in frame.field_names()

    def test_things_historical_locations(self, thing_with_locations):
        location = thing_with_locations["Locations"][0]
        thing = {
            "@iot.id": 1,
            "name": "Rover",
            "HistoricalLocations": [
                {
                    "@iot.id": 5,
                    "time": "2024-01-01T00:00:00Z",
                    "Locations": [
                        thing_with_locations["Locations"][1],
                        location,
                    ],
                },
                {"@iot.id": 6, "time": "2024-01-02T00:00:00Z"},
            ],
        }
        frame = transform_response(
            {"value": [thing]}, expanded("Things", "HistoricalLocations")
        )
        assert frame.meta["isGeospatialData"] is True
        assert values(frame, "time") == [JAN_1]
        assert values(frame, "historical_location_id") == [5]
        assert values(frame, "location_name") == ["Bern"]

    def test_locations_with_things(self, thing_with_locations):
        locations = thing_with_locations["Locations"]
        locations[0]["Things"] = [
            {"@iot.id": 1, "name": "A"},
            {"@iot.id": 2, "name": "B"},
        ]
        frame = transform_response(
            {"value": locations}, expanded("Locations", "Things")
        )
        assert values(frame, "location_id") == [10, 10]
        assert values(frame, "thing_id") == [1, 2]

    def test_locations(self, thing_with_locations):
        frame = transform_response(
            {"value": thing_with_locations["Locations"]},
            Query(entity="Locations"),
        )
        assert "thing_id" not in frame.field_names()
        assert values(frame, "location_id") == [10]

    def test_historical_locations(self, thing_with_locations):
        payload = {
            "value": [
                {
                    "@iot.id": 5,
                    "time": "2024-01-01T00:00:00Z",
                    "Locations": thing_with_locations["Locations"],
                }
            ]
        }
        frame = transform_response(
            payload, expanded("HistoricalLocations", "Locations")
        )
        assert frame.name == "Historical Locations"
        assert values(frame, "historical_location_id") == [5]

    def test_features_of_interest(self):
        payload = {
            "value": [
                {
                    "@iot.id": 4,
                    "name": "Lake",
                    "feature": {
                        "type": "Feature",
                        "geometry": {
                            "type": "Point",
                            "coordinates": [2600000, 1200000],
                        },
                    },
                }
            ]
        }
        frame = transform_response(
            payload, Query(entity="FeaturesOfInterest")
        )
        assert frame.meta["isGeospatialData"] is True
        assert values(frame, "feature_type") == ["Point"]

    def test_feature_observations(self, observations_page):
        feature = {
            "@iot.id": 4,
            "name": "Lake",
            "Observations": observations_page,
        }
        frame = transform_response(
            feature,
            expanded("FeaturesOfInterest", "Observations", entity_id=4),
        )
        assert frame.name == "Lake"
        assert values(frame, "value") == [1.5, 3.5]


class TestDispatch:
    def test_generic_fallback(self):
        payload = {"@iot.count": 1, "value": [{"@iot.id": 5, "time": "x"}]}
        query = Query(entity="HistoricalLocations")
        frame = transform_response(payload, query)
        assert frame.field_names() == ["id"]
        assert frame.meta["custom"]["count"] == 1

    def test_generic_data_column(self):
        payload = {"value": [{"a": 1}]}
        query = Query(entity="HistoricalLocations")
        frame = transform_response(payload, query)
        assert values(frame, "data") == ['{"a":1}']

    def test_rules_cover_entities(self):
        entities = {rule.entity for rule in TRANSFORM_RULES}
        assert entities == {
            "Things",
            "Locations",
            "Sensors",
            "ObservedProperties",
            "Datastreams",
            "Observations",
            "FeaturesOfInterest",
            "HistoricalLocations",
        }

    def test_first_matching_rule_wins(self):
        query = expanded("Things", "Locations", "Datastreams")
        transform = select_transform(
            query, get_expanded_relations(query), False
        )
        assert transform.__name__ == "transform_entity_with_datastreams"

    def test_relations_from_expression(self):
        query = Query(
            entity="Things",
            expression="$expand=Datastreams($top=1),Locations",
        )
        assert get_expanded_relations(query) == ["Datastreams", "Locations"]
