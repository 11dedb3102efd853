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

from typing import Any, Dict, List

from pydantic import Field

from .query import Query, StaModel


class QueryRequest(StaModel):
    targets: List[Query] = Field(default_factory=list)
    scoped_vars: Dict[str, Any] = Field(
        default_factory=dict, alias="scopedVars"
    )
    transform_response: bool = Field(True, alias="transformResponse")


class VariableRequest(StaModel):
    query: Query
    scoped_vars: Dict[str, Any] = Field(
        default_factory=dict, alias="scopedVars"
    )
