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

import logging

from fastapi import FastAPI
from istsos4grafana import DEBUG, ROUTE_PATH
from istsos4grafana.settings import InstanceSettings, tables
from istsos4grafana.transport import close_client
from istsos4grafana.v1 import api

logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="istSOS4 Grafana data source",
    description="Grafana data source for the OGC SensorThings API.",
    openapi_tags=[
        {
            "name": "Read root",
        }
    ],
)


def __handle_root():
    # List the collections of the configured API
    base_url = InstanceSettings.from_env().base_url
    value = []
    for table in tables:
        value.append(
            {
                "name": table,
                "url": f"{base_url}/{table}",
            }
        )
    return {"value": value, "routePath": ROUTE_PATH}


@app.on_event("shutdown")
async def shutdown_event():
    await close_client()


@app.get("/", tags=["Read root"])
async def read_root():
    return __handle_root()


app.mount(ROUTE_PATH, api.v1)
