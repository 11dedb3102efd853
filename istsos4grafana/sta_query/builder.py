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

"""
Query compiler.

Builds SensorThings request URLs from the structured query model,
following the Query Builder pattern of the Grafana editor.
"""

import logging
import urllib.parse

from dateutil.parser import isoparse
from istsos4grafana.models import (
    ExpandDirective,
    FromTo,
    OrderBy,
    Query,
    SubQuery,
)
from istsos4grafana.utils.utils import compare_entity_names, to_utc_isoformat

from .filters import build_filter_expression

logger = logging.getLogger(__name__)

# Characters left untouched by JavaScript's encodeURIComponent
ENCODE_SAFE = "-_.!~*'()"


def encode_value(value, encode=True) -> str:
    if not encode:
        return str(value)
    return urllib.parse.quote(str(value), safe=ENCODE_SAFE)


class QueryBuilder:
    """Fluent builder for `Query` objects."""

    def __init__(self):
        self.query = {}

    def entity(self, entity_type):
        self.query["entity"] = entity_type
        return self

    def with_id(self, entity_id):
        self.query["entity_id"] = entity_id
        return self

    def expand(self, entity_type, sub_query=None):
        self.query.setdefault("expand", []).append(
            ExpandDirective(entity=entity_type, sub_query=sub_query)
        )
        return self

    def filter(self, *conditions):
        self.query.setdefault("filters", []).extend(conditions)
        return self

    def select(self, *properties):
        self.query["select"] = list(properties)
        return self

    def order_by(self, prop, direction="asc"):
        self.query.setdefault("orderby", []).append(
            OrderBy(property=prop, direction=direction)
        )
        return self

    def top(self, count):
        self.query["top"] = count
        return self

    def skip(self, count):
        self.query["skip"] = count
        return self

    def count(self, include=True):
        self.query["count"] = include
        return self

    def as_of(self, timestamp):
        self.query["as_of"] = timestamp
        return self

    def from_to(self, start, end):
        self.query["from_to"] = FromTo(from_=start, to=end)
        return self

    def alias(self, alias):
        self.query["alias"] = alias
        return self

    def result_format(self, result_format):
        self.query["result_format"] = result_format
        return self

    def build(self) -> Query:
        if not self.query.get("entity"):
            raise ValueError("Entity type is required")
        return Query(**self.query)


def create_query_builder() -> QueryBuilder:
    return QueryBuilder()


def _find_expand(query: Query, entity: str):
    for directive in query.expand:
        if compare_entity_names(directive.entity, entity):
            return directive
    return None


def _is_self_variable(condition, query: Query) -> bool:
    return condition.type == "variable" and compare_entity_names(
        condition.entity, query.entity
    )


def _is_datastream_observation(condition, query: Query) -> bool:
    return condition.type == "observation" and query.entity == "Datastreams"


def apply_observation_filters(query: Query) -> Query:
    """
    Moves observation filters of a Datastreams query into its expand.

    Observation conditions become the `$filter` of the Observations
    expand, created when missing. Without observation conditions a filter
    left on that expand is removed, and so is its sub query once empty.

    Args:
        query (Query): The query, left untouched.

    Returns:
        Query: A copy of the query with the expand rewritten.
    """
    query = query.model_copy(deep=True)
    if query.entity != "Datastreams":
        return query

    observation_filters = [
        f for f in query.filters if _is_datastream_observation(f, query)
    ]
    expression = build_filter_expression(observation_filters)
    observations = _find_expand(query, "Observations")

    if expression:
        if observations is None:
            observations = ExpandDirective(entity="Observations")
            query.expand.append(observations)
        if observations.sub_query is None:
            observations.sub_query = SubQuery()
        observations.sub_query.filter = expression
        logger.debug(f"Applied observation filter to expand: {expression}")
    elif observations is not None and observations.sub_query is not None:
        if observations.sub_query.filter:
            observations.sub_query.filter = None
            if observations.sub_query.is_empty():
                observations.sub_query = None
    return query


def build_expand(directive: ExpandDirective, encode=True) -> str:
    options = []
    # Locations of historical locations are only returned when expanded
    if compare_entity_names(directive.entity, "HistoricalLocations"):
        options.append("$expand=Locations")
    sub_query = directive.sub_query
    if sub_query is not None:
        if sub_query.filter:
            options.append(
                f"$filter={encode_value(sub_query.filter, encode)}"
            )
        if sub_query.select:
            select = ",".join(
                encode_value(prop, encode) for prop in sub_query.select
            )
            options.append(f"$select={select}")
        if sub_query.orderby:
            options.append(
                f"$orderby={build_orderby(sub_query.orderby, encode)}"
            )
        if sub_query.top is not None:
            options.append(f"$top={sub_query.top}")
        if sub_query.skip is not None:
            options.append(f"$skip={sub_query.skip}")
    if options:
        return f"{directive.entity}({';'.join(options)})"
    return directive.entity


def build_orderby(orderby, encode=True) -> str:
    return ",".join(
        encode_value(f"{o.property} {o.direction}", encode) for o in orderby
    )


def _normalize_time(value, name):
    try:
        return to_utc_isoformat(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unparseable {name} value: {value}")
        return None


def build_versioning_params(query: Query, encode=True) -> list:
    """
    Builds the `asOf` and `from`/`to` temporal versioning parameters.

    Values are normalized to UTC. Unparseable values, an inverted
    interval or an interval combined with `asOf` are left out.
    """
    params = []
    if query.as_of:
        as_of = _normalize_time(query.as_of, "asOf")
        if as_of:
            params.append(f"asOf={encode_value(as_of, encode)}")
        if query.from_to:
            logger.warning("asOf and fromTo cannot be used together")
        return params

    if query.from_to:
        start = _normalize_time(query.from_to.from_, "from")
        end = _normalize_time(query.from_to.to, "to")
        if start and end:
            if isoparse(start) > isoparse(end):
                logger.warning("Ignoring fromTo: from is greater than to")
            else:
                params.append(f"from={encode_value(start, encode)}")
                params.append(f"to={encode_value(end, encode)}")
    return params


def build_odata_query(query: Query, encode=True) -> str:
    """
    Builds the query string of a structured query.

    Args:
        query (Query): The query.
        encode (bool): Percent-encode parameter values. Disabled only for
            human readable previews.

    Returns:
        str: The query string with its leading "?", or an empty string.
    """
    query = apply_observation_filters(query)
    params = []

    filters = [
        f
        for f in query.filters
        if not _is_datastream_observation(f, query)
        and not _is_self_variable(f, query)
    ]
    expression = build_filter_expression(filters)
    if expression:
        params.append(f"$filter={encode_value(expression, encode)}")

    if query.expand:
        expand = ",".join(build_expand(d, encode) for d in query.expand)
        params.append(f"$expand={expand}")

    if query.select:
        select = ",".join(encode_value(p, encode) for p in query.select)
        params.append(f"$select={select}")

    if query.orderby:
        params.append(f"$orderby={build_orderby(query.orderby, encode)}")

    if query.top is not None:
        params.append(f"$top={query.top}")

    if query.skip is not None:
        params.append(f"$skip={query.skip}")

    if query.count:
        params.append("$count=true")

    if query.result_format and query.result_format != "default":
        params.append(f"$resultFormat={query.result_format}")

    params.extend(build_versioning_params(query, encode))

    return f"?{'&'.join(params)}" if params else ""


def build_entity_path(query: Query) -> str:
    path = f"/{query.entity}"
    if query.entity_id is not None:
        path += f"({query.entity_id})"
    return path


def build_expression_path(query: Query) -> str:
    """
    Builds the path of a query written as a free-form expression.

    An expression starting with "/" is a complete resource path, anything
    else is the query string of the selected entity.
    """
    expression = query.expression.strip()
    if expression.startswith("/"):
        return expression
    expression = expression.lstrip("?")
    path = build_entity_path(query)
    return f"{path}?{expression}" if expression else path


def build_api_url(base_url: str, query: Query, encode=True) -> str:
    """
    Builds the complete API URL for the query.

    Args:
        base_url (str): The API base URL, path prefix included.
        query (Query): The query.
        encode (bool): Percent-encode parameter values.

    Returns:
        str: The request URL.
    """
    base_url = base_url.rstrip("/")
    if query.expression and query.expression.strip():
        return f"{base_url}{build_expression_path(query)}"
    return (
        f"{base_url}{build_entity_path(query)}"
        f"{build_odata_query(query, encode)}"
    )


def build_query_preview(query: Query) -> str:
    return build_api_url("", query, encode=False)
