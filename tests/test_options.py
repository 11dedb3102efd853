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

"""Tests for the editor option sets."""

import pytest

from istsos4grafana.options import (
    ENTITY_OPTIONS,
    get_expand_options,
    get_field_options,
    get_filter_types,
    get_operator_options,
    get_options,
)


class TestOptions:
    def test_option_sets_are_immutable(self):
        assert isinstance(ENTITY_OPTIONS, tuple)
        assert isinstance(get_expand_options("Things"), tuple)

    def test_expand_options(self):
        values = [o.value for o in get_expand_options("Things")]
        assert values == ["Locations", "Datastreams", "HistoricalLocations"]
        assert get_expand_options("Unknown") == ()

    @pytest.mark.parametrize(
        "entity, expected",
        [
            ("Things", {"basic", "entity", "variable", "complex"}),
            (
                "Datastreams",
                {
                    "basic",
                    "temporal",
                    "measurement",
                    "spatial",
                    "observation",
                    "entity",
                    "variable",
                    "complex",
                },
            ),
        ],
    )
    def test_filter_types(self, entity, expected):
        assert {o.value for o in get_filter_types(entity)} == expected

    def test_field_options(self):
        spatial = get_field_options("Locations", "spatial")
        assert [o.value for o in spatial] == ["location"]
        fields = get_field_options("Observations", "basic")
        assert "result" in [o.value for o in fields]

    def test_operator_options(self):
        spatial = [o.value for o in get_operator_options("spatial")]
        assert spatial == ["st_within", "st_intersects", "st_distance"]
        assert "startswith" in [o.value for o in get_operator_options("basic")]

    def test_get_options(self):
        options = get_options("Observations")
        assert options["expand"][0] == {
            "label": "Datastream",
            "value": "Datastream",
            "description": "Include the related Datastream",
        }
        assert set(options["fields"]) == {
            o.value for o in get_filter_types("Observations")
        }
