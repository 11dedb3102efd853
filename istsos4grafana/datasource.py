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
Data source facade.

Runs the query pipeline for each target of a request: template variables
are applied, the query is compiled and fetched page by page, and the
merged response is transformed into frames.
"""

import asyncio
import logging

import httpx
from istsos4grafana import transformations
from istsos4grafana.frame import FieldType, create_frame, error_frame
from istsos4grafana.models import MetricFindValue, Query
from istsos4grafana.paginator import fetch_all
from istsos4grafana.settings import InstanceSettings, validate_settings
from istsos4grafana.templating import TemplateSrv, apply_template_variables
from istsos4grafana.transport import get, get_client, refresh_client

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGES = {
    400: (
        "Authentication to data source failed. "
        "Please verify your OAuth2 configuration."
    ),
    401: "OAuth2 authentication failed. Please check your credentials.",
}

NOT_FOUND_MESSAGE = (
    "API endpoint not found. Please check your API URL and path."
)


def _as_query(target) -> Query:
    if isinstance(target, Query):
        return target
    return Query.model_validate(target)


def _metric_text(entity, query):
    entity_id = entity.get("@iot.id")
    entity_id = "" if entity_id is None else str(entity_id)
    if query.entity == "Observations":
        return (
            entity.get("resultTime")
            or entity.get("phenomenonTime")
            or entity_id
        )
    return entity.get("name") or entity_id


class DataSource:
    """
    SensorThings data source.

    Args:
        settings (InstanceSettings): The data source settings.
        client (httpx.AsyncClient): The HTTP client. When omitted, the
            shared authorized client is created on first use.
        template_srv (TemplateSrv): The template variable resolver.
    """

    def __init__(self, settings, client=None, template_srv=None):
        self.settings = settings
        self.client = client
        self.shared = client is None
        self.template_srv = template_srv or TemplateSrv()

    async def get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = await get_client(self.settings)
        return self.client

    async def call(self, request):
        """
        Runs a request against the API, authorizing again once when the
        access token of the shared client has expired.

        Args:
            request (Callable): Coroutine function taking the client.

        Returns:
            The result of the request.
        """
        client = await self.get_client()
        try:
            return await request(client)
        except httpx.HTTPStatusError as e:
            if not self.shared or e.response.status_code != 401:
                raise
            logger.warning("Access token rejected, authorizing again")
        except RuntimeError:
            # Another request replaced the shared client meanwhile
            if not self.shared or not client.is_closed:
                raise
        self.client = await refresh_client(self.settings, client)
        return await request(self.client)

    async def fetch(self, query):
        return await self.call(
            lambda client: fetch_all(
                client,
                self.settings.base_url,
                query,
                self.settings.default_top,
            )
        )


    def raw_frame(self, result, query):
        return create_frame(
            name=query.alias or query.entity,
            ref_id=query.ref_id,
            fields=[
                {
                    "name": "entities",
                    "type": FieldType.OTHER,
                    "values": [result.items],
                }
            ],
            meta={
                "custom": {
                    "count": result.total_count,
                    "nextLink": None,
                }
            },
        )

    async def run_target(self, target, scoped_vars, transform_response):
        if not target.entity:
            return [create_frame(name="", ref_id=target.ref_id)]
        try:
            query = apply_template_variables(
                target, scoped_vars, self.template_srv
            )
            result = await self.fetch(query)
            if not transform_response:
                return [self.raw_frame(result, query)]
            frames = transformations.transform_response(
                result.to_payload(), query
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Query {target.ref_id} failed with {status}: {e}")
            message = AUTH_ERROR_MESSAGES.get(status, f"Query failed: {e}")
            return [error_frame(target.ref_id, message)]
        except Exception as e:
            logger.exception(f"Query {target.ref_id} failed")
            return [error_frame(target.ref_id, f"Query failed: {e}")]
        return frames if isinstance(frames, list) else [frames]

    async def query(
        self, targets, scoped_vars=None, transform_response=True
    ) -> list:
        """
        Runs the query of every target concurrently.

        A failing target yields an error frame and never affects the other
        targets.

        Args:
            targets (list): The queries, as `Query` objects or dicts.
            scoped_vars (dict): The request scoped variables.
            transform_response (bool): Transform responses into frames.
                When False each target returns one frame holding the raw
                entities.

        Returns:
            list: The frames of all targets, in target order.
        """
        targets = [_as_query(t) for t in targets]
        error = validate_settings(self.settings)
        if error:
            return [error_frame(t.ref_id, error["message"]) for t in targets]

        results = await asyncio.gather(
            *[
                self.run_target(t, scoped_vars, transform_response)
                for t in targets
            ]
        )
        return [frame for frames in results for frame in frames]

    async def test_connection(self) -> dict:
        error = validate_settings(self.settings)
        if error:
            return error
        try:
            response = await self.call(
                lambda client: get(client, f"{self.settings.base_url}/Things")
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"Connection test failed with {status}")
            if status == 404:
                message = NOT_FOUND_MESSAGE
            else:
                message = AUTH_ERROR_MESSAGES.get(
                    status, f"Connection failed: {e}"
                )
            return {"status": "error", "message": message}
        except httpx.HTTPError as e:
            logger.error(f"Connection test failed: {e}")
            return {"status": "error", "message": f"Connection failed: {e}"}
        return {
            "status": "success",
            "message": (
                "Successfully connected to SensorThings API! "
                f"Response status: {response['status']}"
            ),
        }

    async def metric_find_query(self, query, scoped_vars=None) -> list:
        """
        Lists the entities of a query as template variable values.

        Args:
            query (Query): The variable query.
            scoped_vars (dict): The request scoped variables.

        Returns:
            list: The MetricFindValue of each entity, empty on failure.
        """
        query = apply_template_variables(
            _as_query(query), scoped_vars, self.template_srv
        )
        if not query.entity:
            return []
        try:
            result = await self.fetch(query)
        except httpx.HTTPError as e:
            logger.error(f"Variable query failed: {e}")
            return []
        return [
            MetricFindValue(
                text=_metric_text(entity, query),
                value=str(entity.get("@iot.id", "")),
            )
            for entity in result.items
            if isinstance(entity, dict)
        ]


def get_datasource() -> DataSource:
    return DataSource(InstanceSettings.from_env())
