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
Paginated fetching of SensorThings collections.

Continuation links are followed one page at a time, since the link to
page N+1 is only known once page N has been received. Expanded
Observations carrying their own continuation link are drained before the
page holding them is accepted.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from istsos4grafana import TOP_VALUE
from istsos4grafana.models import Query
from istsos4grafana.sta_query import build_api_url, get_query_options
from istsos4grafana.transport import get

logger = logging.getLogger(__name__)

NESTED_COLLECTIONS = ("Observations",)


@dataclass
class PagedResult:
    items: List[dict] = field(default_factory=list)
    total_count: int = 0
    single: bool = False

    def to_payload(self):
        """
        Rebuilds the response shape the transformations expect.

        Returns:
            dict: The entity itself for a single entity result, a
                collection envelope otherwise.
        """
        if self.single:
            return self.items[0] if self.items else None
        return {"value": self.items, "@iot.count": self.total_count}


def is_entity(payload) -> bool:
    return isinstance(payload, dict) and "@iot.id" in payload


def is_collection(payload) -> bool:
    return isinstance(payload, dict) and isinstance(payload.get("value"), list)


async def drain_nested_collections(client, entity: dict):
    """
    Follows the continuation links of an entity's expanded collections.

    The pages are appended in place to the expanded collection and the
    continuation link is removed.

    Args:
        client (httpx.AsyncClient): The client used for the requests.
        entity (dict): The entity holding the expanded collections.
    """
    for relation in NESTED_COLLECTIONS:
        next_link = entity.pop(f"{relation}@iot.nextLink", None)
        if not next_link:
            continue
        values = entity.setdefault(relation, [])
        while next_link:
            page = (await get(client, next_link))["data"]
            if not is_collection(page):
                break
            values.extend(page["value"])
            next_link = page.get("@iot.nextLink")
        logger.debug(
            f"Drained {len(values)} {relation} of entity {entity['@iot.id']}"
        )


def has_explicit_top(query: Query) -> bool:
    if query.expression:
        return "$top" in get_query_options(query.expression)
    return query.top is not None


async def fetch_all(
    client, base_url: str, query: Query, default_top=TOP_VALUE
):
    """
    Fetches every page of a query.

    A single entity is fetched with one request. A collection follows
    its continuation links until none is left, unless the query sets
    `$top` itself, in which case only the first page is fetched. Without
    an explicit `$top` the default page size is requested.

    Args:
        client (httpx.AsyncClient): The client used for the requests.
        base_url (str): The API base URL.
        query (Query): The query.
        default_top (int): The page size used when the query has none.

    Returns:
        PagedResult: The merged result, with no continuation link left.
    """
    explicit_top = has_explicit_top(query)
    if (
        not explicit_top
        and query.entity_id is None
        and not query.expression
    ):
        query = query.model_copy(update={"top": default_top})

    payload = (await get(client, build_api_url(base_url, query)))["data"]

    if is_entity(payload):
        await drain_nested_collections(client, payload)
        return PagedResult(items=[payload], total_count=1, single=True)

    items = []
    total_count = None
    while is_collection(payload):
        if total_count is None:
            total_count = payload.get("@iot.count")
        page = payload["value"]
        for entity in page:
            if is_entity(entity):
                await drain_nested_collections(client, entity)
        items.extend(page)

        next_link = payload.get("@iot.nextLink")
        if explicit_top or not next_link or not page:
            break
        payload = (await get(client, next_link))["data"]

    if total_count is None:
        total_count = len(items)
    return PagedResult(items=items, total_count=total_count)
