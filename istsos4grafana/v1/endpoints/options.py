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

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from istsos4grafana.options import get_options
from istsos4grafana.settings import tables

v1 = APIRouter()


@v1.api_route(
    "/options/{entity}",
    methods=["GET"],
    tags=["Options"],
    summary="Get editor options",
    description="Returns the option sets of the query editor for an entity",
    status_code=status.HTTP_200_OK,
)
async def get_entity_options(entity: str):
    if entity not in tables:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "code": 404,
                "type": "error",
                "message": "Not Found",
            },
        )
    return get_options(entity)
