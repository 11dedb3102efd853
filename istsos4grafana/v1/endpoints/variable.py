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

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from istsos4grafana.datasource import get_datasource
from istsos4grafana.models import VariableRequest

v1 = APIRouter()


@v1.api_route(
    "/variable",
    methods=["POST"],
    tags=["Variables"],
    summary="Resolve template variable values",
    description="Returns the text/value pairs of a variable query",
    status_code=status.HTTP_200_OK,
)
async def find_variable_values(
    request: VariableRequest,
    datasource=Depends(get_datasource),
):
    try:
        values = await datasource.metric_find_query(
            request.query, request.scoped_vars
        )
        return [value.model_dump() for value in values]
    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "code": 400,
                "type": "error",
                "message": str(e),
            },
        )
