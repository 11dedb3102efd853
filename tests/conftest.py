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

"""Pytest fixtures for the istSOS4 Grafana data source tests."""

import asyncio

import httpx
import pytest

from istsos4grafana import transport
from istsos4grafana.settings import InstanceSettings


class FakeSensorThings:
    """
    In-memory SensorThings API served through `httpx.MockTransport`.

    Responses are registered per path and `$skip` value, so paginated
    collections can be served page by page.
    """

    def __init__(self):
        self.routes = {}
        self.failures = {}
        self.requests = []

    def add(self, path, payload, status=200, skip=None):
        self.routes[(path, skip)] = (status, payload)

    def fail(self, path, status, times=1):
        """Answers the next `times` requests to `path` with `status`."""
        self.failures.setdefault(path, []).extend([status] * times)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.failures.get(request.url.path):
            status = self.failures[request.url.path].pop(0)
            return httpx.Response(status, json={"code": status})
        key = (request.url.path, request.url.params.get("$skip"))
        if key not in self.routes:
            return httpx.Response(
                404,
                json={"code": 404, "type": "error", "message": "Not Found"},
            )
        status, payload = self.routes[key]
        return httpx.Response(status, json=payload)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def urls(self):
        return [str(r.url) for r in self.requests]


@pytest.fixture
def sta() -> FakeSensorThings:
    return FakeSensorThings()


@pytest.fixture
def settings() -> InstanceSettings:
    return InstanceSettings(
        api_url="http://sta.test",
        path="/istsos4/v1.1",
        oauth2_token_url="http://sta.test/istsos4/v1.1/Login",
        oauth2_username="grafana",
        oauth2_client_id="grafana-client",
        default_top=100,
    )


@pytest.fixture
def thing_with_locations() -> dict:
    return {
        "@iot.id": 1,
        "name": "Station Bern",
        "description": "Weather station",
        "Locations": [
            {
                "@iot.id": 10,
                "name": "Bern",
                "description": "Station location",
                "encodingType": "application/geo+json",
                "location": {
                    "type": "Point",
                    "coordinates": [2600000, 1200000],
                },
            },
            {
                "@iot.id": 11,
                "name": "Broken",
                "description": "Unsupported geometry",
                "encodingType": "application/geo+json",
                "location": {
                    "type": "MultiPoint",
                    "coordinates": [[2600000, 1200000]],
                },
            },
        ],
    }


@pytest.fixture
def datastreams_with_observations() -> dict:
    return {
        "value": [
            {
                "@iot.id": 1,
                "name": "Air temperature",
                "description": "Temperature at 2m",
                "unitOfMeasurement": {
                    "name": "Degree Celsius",
                    "symbol": "°C",
                    "definition": "http://unitsofmeasure.org/ucum.html",
                },
                "Observations": [
                    {
                        "@iot.id": 100,
                        "phenomenonTime": "2024-01-01T00:00:00Z",
                        "result": 1.5,
                    },
                    {
                        "@iot.id": 101,
                        "phenomenonTime": "2024-01-01T01:00:00Z",
                        "result": 2.5,
                    },
                ],
            },
            {
                "@iot.id": 2,
                "name": "Humidity",
                "description": "Relative humidity",
                "unitOfMeasurement": {
                    "name": "Percent",
                    "symbol": "%",
                    "definition": "http://unitsofmeasure.org/ucum.html",
                },
                "Observations": [],
            },
        ]
    }


@pytest.fixture
def observations_page() -> list:
    return [
        {
            "@iot.id": 100,
            "phenomenonTime": "2024-01-01T00:00:00Z",
            "resultTime": "2024-01-01T00:00:05Z",
            "result": 1.5,
        },
        {
            "@iot.id": 101,
            "phenomenonTime": None,
            "resultTime": None,
            "result": 9.9,
        },
        {
            "@iot.id": 102,
            "phenomenonTime": "2024-01-01T02:00:00Z",
            "resultTime": "2024-01-01T02:00:05Z",
            "result": 3.5,
        },
    ]


@pytest.fixture
def shared_client(sta, monkeypatch):
    """
    Routes the shared client through the fake API with counted token
    exchanges. The issued tokens are listed in the returned list.
    """
    tokens = []

    async def exchange(client, settings):
        await asyncio.sleep(0)
        tokens.append(f"token-{len(tokens) + 1}")
        return tokens[-1]

    monkeypatch.setattr(transport, "client", None)
    monkeypatch.setattr(transport, "lock", None)
    monkeypatch.setattr(transport, "create_client", sta.client)
    monkeypatch.setattr(transport, "get_access_token", exchange)
    return tokens
