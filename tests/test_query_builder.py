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

"""Tests for the query compiler."""

import pytest

from istsos4grafana.models import (
    BasicFilter,
    ExpandDirective,
    FromTo,
    ObservationFilter,
    Query,
    SubQuery,
    VariableFilter,
)
from istsos4grafana.sta_query import (
    apply_observation_filters,
    build_api_url,
    build_query_preview,
    create_query_builder,
)
from istsos4grafana.sta_query.builder import encode_value

BASE_URL = "http://sta.test/istsos4/v1.1"


class TestEntityPath:
    def test_collection(self):
        query = Query(entity="Things")
        assert build_api_url(BASE_URL, query) == f"{BASE_URL}/Things"

    def test_single_entity(self):
        query = Query(entity="Datastreams", entity_id=5)
        assert build_api_url(BASE_URL + "/", query) == (
            f"{BASE_URL}/Datastreams(5)"
        )


class TestEncoding:
    def test_filter_value_is_encoded(self):
        query = Query(
            entity="Things",
            filters=[BasicFilter(field="name", operator="eq", value="Bern")],
        )
        assert build_api_url(BASE_URL, query) == (
            f"{BASE_URL}/Things?$filter=name%20eq%20'Bern'"
        )

    def test_preview_is_not_encoded(self):
        query = Query(
            entity="Things",
            filters=[BasicFilter(field="name", operator="eq", value="Bern")],
        )
        assert build_query_preview(query) == "/Things?$filter=name eq 'Bern'"

    def test_encode_value(self):
        assert encode_value("a b/c:d") == "a%20b%2Fc%3Ad"
        assert encode_value("(x)!*~'") == "(x)!*~'"
        assert encode_value("a b", encode=False) == "a b"


class TestQueryOptions:
    def test_all_options(self):
        query = (
            create_query_builder()
            .entity("Observations")
            .select("result", "phenomenonTime")
            .order_by("phenomenonTime", "desc")
            .top(10)
            .skip(20)
            .count()
            .result_format("dataArray")
            .build()
        )
        assert build_query_preview(query) == (
            "/Observations?$select=result,phenomenonTime"
            "&$orderby=phenomenonTime desc&$top=10&$skip=20"
            "&$count=true&$resultFormat=dataArray"
        )
        assert "$orderby=phenomenonTime%20desc" in build_api_url(
            BASE_URL, query
        )

    def test_builder_requires_entity(self):
        with pytest.raises(ValueError):
            create_query_builder().top(5).build()

    def test_self_variable_filter_is_left_out(self):
        query = Query(
            entity="Things",
            filters=[
                VariableFilter(
                    entity="Things", variable_name="thing", value="3"
                )
            ],
        )
        assert build_query_preview(query) == "/Things"


class TestExpand:
    def test_historical_locations_expand_locations(self):
        query = (
            create_query_builder()
            .entity("Things")
            .expand("HistoricalLocations", SubQuery(top=5))
            .build()
        )
        assert build_query_preview(query) == (
            "/Things?$expand=HistoricalLocations($expand=Locations;$top=5)"
        )

    def test_sub_query_options(self):
        query = Query(
            entity="Things",
            expand=[
                ExpandDirective(
                    entity="Datastreams",
                    sub_query=SubQuery(
                        filter="name eq 'T'", select=["name"], skip=2
                    ),
                )
            ],
        )
        assert build_query_preview(query) == (
            "/Things?$expand=Datastreams($filter=name eq 'T';"
            "$select=name;$skip=2)"
        )


class TestObservationFilters:
    def test_observation_filter_moves_to_expand(self):
        query = Query(
            entity="Datastreams",
            filters=[
                BasicFilter(field="name", operator="eq", value="T"),
                ObservationFilter(field="result", operator="gt", value="10"),
            ],
        )
        assert build_query_preview(query) == (
            "/Datastreams?$filter=name eq 'T'"
            "&$expand=Observations($filter=result gt 10)"
        )

    def test_encoded_observation_filter(self):
        query = Query(
            entity="Datastreams",
            filters=[
                ObservationFilter(field="result", operator="gt", value="10")
            ],
        )
        url = build_api_url(BASE_URL, query)
        assert url == (
            f"{BASE_URL}/Datastreams"
            "?$expand=Observations($filter=result%20gt%2010)"
        )
        assert "?$filter=" not in url
        assert "&$filter=" not in url

    def test_existing_expand_keeps_its_options(self):
        query = Query(
            entity="Datastreams",
            filters=[
                ObservationFilter(field="result", operator="gt", value="10")
            ],
            expand=[
                ExpandDirective(
                    entity="Observations", sub_query=SubQuery(top=5)
                )
            ],
        )
        assert build_query_preview(query) == (
            "/Datastreams?$expand=Observations($filter=result gt 10;$top=5)"
        )

    def test_stale_filter_is_removed(self):
        query = Query(
            entity="Datastreams",
            expand=[
                ExpandDirective(
                    entity="Observations",
                    sub_query=SubQuery(filter="result gt 10"),
                )
            ],
        )
        assert build_query_preview(query) == (
            "/Datastreams?$expand=Observations"
        )
        assert apply_observation_filters(query).expand[0].sub_query is None

    def test_stale_filter_keeps_other_options(self):
        query = Query(
            entity="Datastreams",
            expand=[
                ExpandDirective(
                    entity="Observations",
                    sub_query=SubQuery(filter="result gt 10", top=5),
                )
            ],
        )
        assert build_query_preview(query) == (
            "/Datastreams?$expand=Observations($top=5)"
        )

    def test_query_is_not_modified(self):
        query = Query(
            entity="Datastreams",
            filters=[
                ObservationFilter(field="result", operator="gt", value="10")
            ],
        )
        build_api_url(BASE_URL, query)
        assert query.expand == []

    def test_other_entities_keep_observation_filters(self):
        query = Query(
            entity="Observations",
            filters=[
                ObservationFilter(field="result", operator="gt", value="10")
            ],
        )
        assert build_query_preview(query) == (
            "/Observations?$filter=result gt 10"
        )


class TestVersioning:
    def test_as_of(self):
        query = Query(entity="Things", as_of="2024-01-01T00:00:00Z")
        assert build_api_url(BASE_URL, query) == (
            f"{BASE_URL}/Things?asOf=2024-01-01T00%3A00%3A00Z"
        )

    def test_as_of_wins_over_from_to(self):
        query = Query(
            entity="Things",
            as_of="2024-01-01T00:00:00Z",
            from_to=FromTo(
                from_="2023-01-01T00:00:00Z", to="2023-02-01T00:00:00Z"
            ),
        )
        assert build_query_preview(query) == (
            "/Things?asOf=2024-01-01T00:00:00Z"
        )

    def test_from_to(self):
        query = Query.model_validate(
            {
                "entity": "Things",
                "fromTo": {
                    "from": "2023-01-01T00:00:00Z",
                    "to": "2023-02-01T00:00:00+01:00",
                },
            }
        )
        assert build_query_preview(query) == (
            "/Things?from=2023-01-01T00:00:00Z&to=2023-01-31T23:00:00Z"
        )

    def test_inverted_interval_is_dropped(self):
        query = Query(
            entity="Things",
            from_to=FromTo(
                from_="2024-02-01T00:00:00Z", to="2024-01-01T00:00:00Z"
            ),
        )
        assert build_query_preview(query) == "/Things"

    def test_unparseable_date_is_dropped(self):
        query = Query(entity="Things", as_of="yesterday")
        assert build_query_preview(query) == "/Things"


class TestExpression:
    def test_query_string_expression(self):
        query = Query(
            entity="Things",
            expression="$filter=name eq 'x'&$top=5",
            filters=[BasicFilter(field="name", operator="eq", value="y")],
        )
        assert build_api_url(BASE_URL, query) == (
            f"{BASE_URL}/Things?$filter=name eq 'x'&$top=5"
        )

    def test_path_expression(self):
        query = Query(
            entity="Things",
            expression="/Datastreams(1)/Observations?$top=3",
        )
        assert build_api_url(BASE_URL, query) == (
            f"{BASE_URL}/Datastreams(1)/Observations?$top=3"
        )

    def test_expression_on_single_entity(self):
        query = Query(
            entity="Datastreams", entity_id=1, expression="?$expand=Thing"
        )
        assert build_query_preview(query) == "/Datastreams(1)?$expand=Thing"
