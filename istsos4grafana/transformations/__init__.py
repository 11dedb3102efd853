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
Response transformations.

A payload is turned into frames by the first rule of `TRANSFORM_RULES`
matching the queried entity kind, the relations expanded by the query and
whether a single entity was returned. Payloads matching no rule get the
generic layout.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from istsos4grafana.paginator import is_collection, is_entity
from istsos4grafana.sta_query import (
    apply_observation_filters,
    get_expanded_entities,
)
from istsos4grafana.utils.utils import compare_entity_names

from .datastream import (
    transform_datastream_observations,
    transform_datastream_properties,
    transform_datastreams_observations,
    transform_datastreams_table,
)
from .feature_of_interest import (
    transform_feature_observations,
    transform_features_of_interest,
)
from .generic import (
    empty_frame,
    transform_basic_entity,
    transform_entity_with_datastreams,
    transform_generic,
)
from .historical_location import transform_historical_locations
from .location import transform_locations
from .observation import (
    transform_observations,
    transform_observations_with_datastream,
)
from .thing import (
    transform_things_historical_locations,
    transform_things_locations,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformRule:
    entity: str
    relation: Optional[str]
    transform: Callable
    single: Optional[bool] = None

    def matches(self, entity, relations, single) -> bool:
        if self.entity != entity:
            return False
        if self.single is not None and self.single != single:
            return False
        if self.relation is None:
            return True
        return any(compare_entity_names(self.relation, r) for r in relations)


TRANSFORM_RULES = (
    TransformRule(
        "Observations", "Datastream", transform_observations_with_datastream
    ),
    TransformRule("Observations", None, transform_observations),
    TransformRule(
        "Datastreams",
        "Observations",
        transform_datastream_observations,
        single=True,
    ),
    TransformRule(
        "Datastreams",
        "Observations",
        transform_datastreams_observations,
        single=False,
    ),
    TransformRule(
        "Datastreams", None, transform_datastream_properties, single=True
    ),
    TransformRule("Datastreams", None, transform_datastreams_table),
    TransformRule("Things", "Datastreams", transform_entity_with_datastreams),
    TransformRule("Things", "Locations", transform_things_locations),
    TransformRule(
        "Things",
        "HistoricalLocations",
        transform_things_historical_locations,
    ),
    TransformRule("Things", None, transform_basic_entity),
    TransformRule("Sensors", "Datastreams", transform_entity_with_datastreams),
    TransformRule("Sensors", None, transform_basic_entity),
    TransformRule(
        "ObservedProperties", "Datastreams", transform_entity_with_datastreams
    ),
    TransformRule("ObservedProperties", None, transform_basic_entity),
    TransformRule("Locations", None, transform_locations),
    TransformRule(
        "HistoricalLocations", "Locations", transform_historical_locations
    ),
    TransformRule(
        "FeaturesOfInterest",
        "Observations",
        transform_feature_observations,
        single=True,
    ),
    TransformRule("FeaturesOfInterest", None, transform_features_of_interest),
)


def get_expanded_relations(query) -> list:
    """
    Lists the relations expanded by a query.

    Free-form expressions are scanned for their `$expand` option. For
    structured queries the expand list is read after observation filters
    have been moved into it, as the request does.
    """
    if query.expression and query.expression.strip():
        return get_expanded_entities(query.expression)
    return [d.entity for d in apply_observation_filters(query).expand]


def extract_entities(payload):
    """
    Returns the entities of a payload and whether it is a single entity.
    """
    if is_entity(payload):
        return [payload], True
    if is_collection(payload):
        return payload["value"], False
    if isinstance(payload, list):
        return payload, False
    return [], False


def select_transform(query, relations, single):
    for rule in TRANSFORM_RULES:
        if rule.matches(query.entity, relations, single):
            return rule.transform
    return None


def transform_response(payload, query):
    """
    Transforms a decoded API response into frames.

    Args:
        payload (dict): A single entity or a collection envelope.
        query (Query): The query that produced the payload.

    Returns:
        Frame | list: One frame, or a list of frames for layouts producing
            one frame per entity.
    """
    entities, single = extract_entities(payload)
    if not entities:
        return empty_frame(query)

    relations = get_expanded_relations(query)
    transform = select_transform(query, relations, single)
    if transform is None:
        logger.debug(f"No layout for {query.entity}, using generic frame")
        return transform_generic(entities, query, payload)
    logger.debug(
        f"Transforming {len(entities)} {query.entity} "
        f"with {transform.__name__}"
    )
    return transform(entities, query)


__all__ = [
    "TRANSFORM_RULES",
    "TransformRule",
    "extract_entities",
    "get_expanded_relations",
    "select_transform",
    "transform_generic",
    "transform_response",
]
