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

from .query import (
    BasicFilter,
    ComplexFilter,
    EntityFilter,
    EntityType,
    ExpandDirective,
    FilterCondition,
    FromTo,
    MeasurementFilter,
    MetricFindValue,
    ObservationFilter,
    OrderBy,
    Query,
    Ring,
    SpatialFilter,
    SubQuery,
    TemporalFilter,
    VariableFilter,
)
from .request import QueryRequest, VariableRequest

__all__ = [
    "BasicFilter",
    "ComplexFilter",
    "EntityFilter",
    "EntityType",
    "ExpandDirective",
    "FilterCondition",
    "FromTo",
    "MeasurementFilter",
    "MetricFindValue",
    "ObservationFilter",
    "OrderBy",
    "Query",
    "QueryRequest",
    "Ring",
    "SpatialFilter",
    "SubQuery",
    "TemporalFilter",
    "VariableFilter",
    "VariableRequest",
]
