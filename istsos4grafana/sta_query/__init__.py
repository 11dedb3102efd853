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

from .builder import (
    QueryBuilder,
    apply_observation_filters,
    build_api_url,
    build_odata_query,
    build_query_preview,
    create_query_builder,
)
from .expression import (
    get_expanded_entities,
    get_query_options,
    search_expand_entity,
)
from .filters import FilterExpressions, build_filter_expression

__all__ = [
    "FilterExpressions",
    "QueryBuilder",
    "apply_observation_filters",
    "build_api_url",
    "build_filter_expression",
    "build_odata_query",
    "build_query_preview",
    "create_query_builder",
    "get_expanded_entities",
    "get_query_options",
    "search_expand_entity",
]
