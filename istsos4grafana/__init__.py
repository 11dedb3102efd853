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

import os

API_URL = os.getenv("API_URL", "http://localhost:8018")
SUBPATH = os.getenv("SUBPATH", "/istsos4/v1.1")
ROUTE_PATH = os.getenv("ROUTE_PATH", "/sensorapi")
DEBUG = int(os.getenv("DEBUG", 0))
TOP_VALUE = int(os.getenv("TOP_VALUE", 100))
EPSG = int(os.getenv("EPSG", 2056))
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", 30))
OAUTH2_TOKEN_URL = os.getenv("OAUTH2_TOKEN_URL")
OAUTH2_USERNAME = os.getenv("OAUTH2_USERNAME")
OAUTH2_PASSWORD = os.getenv("OAUTH2_PASSWORD")
OAUTH2_CLIENT_ID = os.getenv("OAUTH2_CLIENT_ID")
OAUTH2_CLIENT_SECRET = os.getenv("OAUTH2_CLIENT_SECRET")
