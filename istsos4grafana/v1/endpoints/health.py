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
from istsos4grafana.datasource import get_datasource

v1 = APIRouter()


@v1.api_route(
    "/health",
    methods=["GET"],
    tags=["Health"],
    summary="Test the connection",
    description="Checks the settings and reaches the Things collection",
    status_code=status.HTTP_200_OK,
)
async def health(datasource=Depends(get_datasource)):
    return await datasource.test_connection()
