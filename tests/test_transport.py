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

"""Tests for the shared HTTP client."""

import asyncio

import httpx
import pytest

from istsos4grafana import transport
from istsos4grafana.transport import (
    close_client,
    get,
    get_client,
    refresh_client,
)

PATH = "/istsos4/v1.1"
BASE_URL = "http://sta.test/istsos4/v1.1"


class TestSharedClient:
    def test_concurrent_callers_share_one_client(
        self, settings, shared_client
    ):
        async def main():
            return await asyncio.gather(
                get_client(settings), get_client(settings)
            )

        first, second = asyncio.run(main())

        assert first is second
        assert shared_client == ["token-1"]
        assert first.headers["Authorization"] == "Bearer token-1"

    def test_stale_client_is_replaced_once(self, settings, shared_client):
        async def main():
            stale = await get_client(settings)
            renewed = await asyncio.gather(
                refresh_client(settings, stale),
                refresh_client(settings, stale),
            )
            return stale, renewed

        stale, (first, second) = asyncio.run(main())

        assert first is second
        assert first is not stale
        assert stale.is_closed
        assert first.headers["Authorization"] == "Bearer token-2"
        assert shared_client == ["token-1", "token-2"]

    def test_close_client(self, settings, shared_client):
        async def main():
            created = await get_client(settings)
            await close_client()
            return created

        created = asyncio.run(main())

        assert created.is_closed
        assert transport.client is None


class TestGet:
    def test_decodes_json(self, sta):
        sta.add(f"{PATH}/Things", {"value": []})

        async def main():
            async with sta.client() as client:
                return await get(client, f"{BASE_URL}/Things")

        assert asyncio.run(main()) == {"status": 200, "data": {"value": []}}

    def test_error_status_is_raised(self, sta):
        sta.fail(f"{PATH}/Things", 503)

        async def main():
            async with sta.client() as client:
                return await get(client, f"{BASE_URL}/Things")

        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(main())
