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

from fastapi import FastAPI
from istsos4grafana.v1.endpoints import (
    health,
    options,
    preview,
    query,
    variable,
)

tags_metadata = [
    {
        "name": "Query",
        "description": "Queries compiled and run against SensorThings.",
    },
    {
        "name": "Variables",
        "description": "Values of dashboard template variables.",
    },
    {
        "name": "Health",
        "description": "Connection test of the data source.",
    },
    {
        "name": "Options",
        "description": "Option sets of the query editor.",
    },
]

v1 = FastAPI(
    title="istSOS4 Grafana data source",
    description="Grafana data source for the OGC SensorThings API.",
    version="1.1",
    openapi_tags=tags_metadata,
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)

v1.include_router(query.v1)
v1.include_router(variable.v1)
v1.include_router(health.v1)
v1.include_router(preview.v1)
v1.include_router(options.v1)
