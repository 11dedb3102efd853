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

"""Tests for template variable substitution."""

from istsos4grafana.models import (
    BasicFilter,
    ComplexFilter,
    Query,
    TemporalFilter,
    VariableFilter,
)
from istsos4grafana.sta_query import build_query_preview
from istsos4grafana.templating import TemplateSrv, apply_template_variables


class TestTemplateSrv:
    def test_reference_syntaxes(self):
        srv = TemplateSrv({"station": "Bern"})
        assert srv.replace("$station") == "Bern"
        assert srv.replace("${station}-1") == "Bern-1"
        assert srv.replace("${station:csv}") == "Bern"
        assert srv.replace("[[station]]") == "Bern"

    def test_scoped_variables_win(self):
        srv = TemplateSrv({"station": "Bern"})
        scoped = {"station": {"text": "Lugano", "value": "2"}}
        assert srv.replace("$station", scoped) == "2"

    def test_multi_value(self):
        srv = TemplateSrv({"ids": ["1", "2", "3"]})
        assert srv.replace("$ids") == "1,2,3"

    def test_unknown_variable_is_kept(self):
        assert TemplateSrv().replace("$top=5 and $other") == (
            "$top=5 and $other"
        )

    def test_non_text(self):
        assert TemplateSrv().replace(None) is None


class TestApplyTemplateVariables:
    def test_alias_expression_and_filters(self):
        query = Query(
            entity="Things",
            alias="Thing $station",
            expression="$filter=name eq '$station'",
            filters=[
                BasicFilter(field="name", operator="eq", value="$station"),
                TemporalFilter(
                    field="phenomenonTime",
                    start_date="$start",
                    end_date="2024-02-01T00:00:00Z",
                ),
                ComplexFilter(expression="name ne '$station'"),
            ],
        )
        scoped = {"station": "Bern", "start": "2024-01-01T00:00:00Z"}
        resolved = apply_template_variables(query, scoped)

        assert resolved.alias == "Thing Bern"
        assert resolved.expression == "$filter=name eq 'Bern'"
        assert resolved.filters[0].value == "Bern"
        assert resolved.filters[1].start_date == "2024-01-01T00:00:00Z"
        assert resolved.filters[2].expression == "name ne 'Bern'"
        # The input query is left untouched
        assert query.alias == "Thing $station"

    def test_self_variable_becomes_entity_id(self):
        query = Query(
            entity="Datastreams",
            filters=[
                VariableFilter(entity="Datastream", variable_name="ds")
            ],
        )
        resolved = apply_template_variables(query, {"ds": "12"})
        assert resolved.entity_id == 12
        assert resolved.filters == []
        assert build_query_preview(resolved) == "/Datastreams(12)"

    def test_self_variable_with_text_value(self):
        query = Query(
            entity="Things",
            filters=[VariableFilter(entity="Things", variable_name="thing")],
        )
        resolved = apply_template_variables(query, {"thing": "abc"})
        assert resolved.entity_id is None
        assert resolved.filters[0].value == "abc"

    def test_related_variable(self):
        query = Query(
            entity="Datastreams",
            filters=[VariableFilter(entity="Thing", variable_name="thing")],
        )
        resolved = apply_template_variables(query, {"thing": "3"})
        assert resolved.entity_id is None
        assert build_query_preview(resolved) == (
            "/Datastreams?$filter=Thing/id eq 3"
        )

    def test_unresolved_variable(self):
        query = Query(
            entity="Datastreams",
            filters=[
                VariableFilter(
                    entity="Thing", variable_name="thing", value="old"
                )
            ],
        )
        resolved = apply_template_variables(query, {})
        assert resolved.filters[0].value is None
        assert build_query_preview(resolved) == (
            "/Datastreams?$filter=Thing/id eq $thing"
        )

    def test_template_srv_variables(self):
        query = Query(entity="Things", alias="$name")
        srv = TemplateSrv({"name": "Stations"})
        resolved = apply_template_variables(query, None, srv)
        assert resolved.alias == "Stations"
