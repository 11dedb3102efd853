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
from istsos4grafana.models import Query
from istsos4grafana.sta_query import build_query_preview

v1 = APIRouter()


@v1.api_route(
    "/preview",
    methods=["POST"],
    tags=["Query"],
    summary="Preview a query",
    description="Returns the unencoded request path of a query",
    status_code=status.HTTP_200_OK,
)
async def preview_query(query: Query):
    try:
        return {"url": build_query_preview(query)}
    except ValueError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "code": 400,
                "type": "error",
                "message": str(e),
            },
        )
