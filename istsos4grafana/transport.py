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

import asyncio
import logging

import httpx
import ujson
from istsos4grafana import HTTP_TIMEOUT
from istsos4grafana.oauth import get_access_token

logger = logging.getLogger(__name__)

client: httpx.AsyncClient | None = None
lock: asyncio.Lock | None = None


def create_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=HTTP_TIMEOUT,
        headers={"Accept": "application/json"},
    )


def get_lock() -> asyncio.Lock:
    global lock
    if lock is None:
        lock = asyncio.Lock()
    return lock


async def _authorize(settings) -> httpx.AsyncClient:
    new_client = create_client()
    try:
        token = await get_access_token(new_client, settings)
    except httpx.HTTPError:
        await new_client.aclose()
        raise
    if token:
        new_client.headers["Authorization"] = f"Bearer {token}"
    return new_client


async def get_client(settings) -> httpx.AsyncClient:
    """
    Returns the shared HTTP client, creating and authorizing it once.

    Concurrent callers wait for the first one to finish, so a single
    token exchange takes place.

    Args:
        settings (InstanceSettings): The data source settings.

    Returns:
        httpx.AsyncClient: The client.
    """
    global client
    async with get_lock():
        if client is None:
            client = await _authorize(settings)
        return client


async def refresh_client(settings, stale) -> httpx.AsyncClient:
    """
    Replaces a shared client whose access token has been rejected.

    The client is only replaced when it is still the shared one, so
    callers failing with the same token trigger a single new exchange.

    Args:
        settings (InstanceSettings): The data source settings.
        stale (httpx.AsyncClient): The client whose token was rejected.

    Returns:
        httpx.AsyncClient: The authorized shared client.
    """
    global client
    async with get_lock():
        if client is stale or client is None:
            if client is not None:
                await client.aclose()
                client = None
            client = await _authorize(settings)
            logger.info("Access token renewed")
        return client


async def close_client():
    global client
    if client:
        await client.aclose()
        client = None


async def get(http_client: httpx.AsyncClient, url: str) -> dict:
    """
    Issues a GET request and decodes the JSON body.

    Args:
        http_client (httpx.AsyncClient): The client used for the request.
        url (str): The request URL.

    Returns:
        dict: The response `status` and decoded `data`, None when the
            body is empty or not JSON.

    Raises:
        httpx.HTTPStatusError: If the response is not successful.
        httpx.HTTPError: If the request fails.
    """
    response = await http_client.get(url)
    logger.info(f"query_api request: {response.url}")
    response.raise_for_status()
    data = None
    if response.content:
        try:
            data = ujson.loads(response.content)
        except ValueError:
            logger.warning(f"Invalid JSON response from {response.url}")
    return {"status": response.status_code, "data": data}
