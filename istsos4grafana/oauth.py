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

import ujson

logger = logging.getLogger(__name__)


def _secret(value):
    return value.get_secret_value() if value is not None else None


async def get_access_token(client, settings):
    """
    Exchanges the configured OAuth2 credentials for an access token.

    Uses the resource owner password grant against the token URL of the
    data source.

    Args:
        client (httpx.AsyncClient): The client used for the request.
        settings (InstanceSettings): The data source settings.

    Returns:
        str: The access token, or None when no credentials are configured.

    Raises:
        httpx.HTTPStatusError: If the token endpoint rejects the request.
    """
    password = _secret(settings.oauth2_password)
    if not settings.oauth2_token_url or not settings.oauth2_username:
        return None
    if password is None:
        return None

    data = {
        "grant_type": "password",
        "username": settings.oauth2_username,
        "password": password,
    }
    if settings.oauth2_client_id:
        data["client_id"] = settings.oauth2_client_id
    client_secret = _secret(settings.oauth2_client_secret)
    if client_secret:
        data["client_secret"] = client_secret

    response = await client.post(settings.oauth2_token_url, data=data)
    response.raise_for_status()
    token = ujson.loads(response.content).get("access_token")
    if token is None:
        logger.warning("Token response does not contain an access token")
    return token
