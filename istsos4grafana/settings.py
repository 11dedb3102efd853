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

from typing import Optional

from istsos4grafana import (
    API_URL,
    OAUTH2_CLIENT_ID,
    OAUTH2_CLIENT_SECRET,
    OAUTH2_PASSWORD,
    OAUTH2_TOKEN_URL,
    OAUTH2_USERNAME,
    SUBPATH,
    TOP_VALUE,
)
from pydantic import BaseModel, ConfigDict, Field, SecretStr

tables = [
    "Datastreams",
    "FeaturesOfInterest",
    "HistoricalLocations",
    "Locations",
    "Observations",
    "ObservedProperties",
    "Sensors",
    "Things",
]


class InstanceSettings(BaseModel):
    """
    Options configured for each data source instance.

    The plain fields are stored by the host as regular JSON data, the
    OAuth2 password and client secret are kept in its secret store and
    never sent back to the editor.
    """

    model_config = ConfigDict(populate_by_name=True)

    api_url: Optional[str] = Field(None, alias="apiUrl")
    path: str = ""
    oauth2_token_url: Optional[str] = Field(None, alias="oauth2TokenUrl")
    oauth2_username: Optional[str] = Field(None, alias="oauth2Username")
    oauth2_client_id: Optional[str] = Field(None, alias="oauth2ClientId")
    oauth2_password: Optional[SecretStr] = Field(None, alias="oauth2Password")
    oauth2_client_secret: Optional[SecretStr] = Field(
        None, alias="oauth2ClientSecret"
    )
    default_top: int = Field(TOP_VALUE, alias="defaultTop")

    @classmethod
    def from_env(cls):
        return cls(
            api_url=API_URL,
            path=SUBPATH,
            oauth2_token_url=OAUTH2_TOKEN_URL,
            oauth2_username=OAUTH2_USERNAME,
            oauth2_client_id=OAUTH2_CLIENT_ID,
            oauth2_password=OAUTH2_PASSWORD,
            oauth2_client_secret=OAUTH2_CLIENT_SECRET,
            default_top=TOP_VALUE,
        )

    @property
    def base_url(self) -> str:
        return f"{(self.api_url or '').rstrip('/')}{self.path or ''}"


REQUIRED_SETTINGS = [
    ("api_url", "API URL is required"),
    ("oauth2_token_url", "OAuth2 token URL is required"),
    ("oauth2_username", "OAuth2 username is required"),
    ("oauth2_client_id", "OAuth2 client ID is required"),
]


def validate_settings(settings: InstanceSettings):
    """
    Check that the settings needed to reach the API are present.

    Args:
        settings (InstanceSettings): The data source settings.

    Returns:
        dict: A status/message pair for the first missing field, or None
            when the settings are complete.
    """
    for attribute, message in REQUIRED_SETTINGS:
        if not getattr(settings, attribute):
            return {"status": "error", "message": message}
    return None
