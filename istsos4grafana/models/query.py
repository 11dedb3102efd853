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

"""Query model handed by the editor to the query pipeline."""

import uuid
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EntityType = Literal[
    "Things",
    "Locations",
    "Sensors",
    "ObservedProperties",
    "Datastreams",
    "Observations",
    "FeaturesOfInterest",
    "HistoricalLocations",
]

GeometryType = Literal["Point", "LineString", "Polygon"]


def _new_id():
    return str(uuid.uuid4())


class StaModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OrderBy(StaModel):
    property: str
    direction: Literal["asc", "desc"] = "asc"


class SubQuery(StaModel):
    """Reduced query applied to an expanded relation."""

    filter: Optional[str] = None
    select: Optional[List[str]] = None
    orderby: Optional[List[OrderBy]] = None
    top: Optional[int] = None
    skip: Optional[int] = None

    def is_empty(self) -> bool:
        return all(
            getattr(self, name) is None for name in type(self).model_fields
        )


class ExpandDirective(StaModel):
    entity: str
    sub_query: Optional[SubQuery] = Field(None, alias="subQuery")


class FromTo(StaModel):
    from_: str = Field(alias="from")
    to: str


class BaseFilter(StaModel):
    id: str = Field(default_factory=_new_id)
    field: str = ""
    operator: Optional[str] = None
    value: Any = None


class BasicFilter(BaseFilter):
    type: Literal["basic"] = "basic"


class TemporalFilter(BaseFilter):
    type: Literal["temporal"] = "temporal"
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")


class MeasurementFilter(BaseFilter):
    type: Literal["measurement"] = "measurement"


class Ring(StaModel):
    coordinates: List[List[float]] = Field(default_factory=list)


class SpatialFilter(BaseFilter):
    """
    Spatial predicate against a WKT geometry.

    `coordinates` holds a pair for a Point, a list of pairs for a
    LineString and, when `rings` is empty, a list of rings for a Polygon.
    """

    type: Literal["spatial"] = "spatial"
    field: str = "observedArea"
    operator: Optional[str] = "st_within"
    geometry_type: Optional[GeometryType] = Field(None, alias="geometryType")
    coordinates: List[Any] = Field(default_factory=list)
    rings: List[Ring] = Field(default_factory=list)


class ObservationFilter(BaseFilter):
    type: Literal["observation"] = "observation"


class EntityFilter(BaseFilter):
    type: Literal["entity"] = "entity"
    entity: Optional[str] = None


class VariableFilter(BaseFilter):
    type: Literal["variable"] = "variable"
    field: str = "id"
    operator: Optional[str] = "eq"
    entity: str
    variable_name: str = Field(alias="variableName")


class ComplexFilter(BaseFilter):
    type: Literal["complex"] = "complex"
    expression: str = ""


FilterCondition = Annotated[
    Union[
        BasicFilter,
        TemporalFilter,
        MeasurementFilter,
        SpatialFilter,
        ObservationFilter,
        EntityFilter,
        VariableFilter,
        ComplexFilter,
    ],
    Field(discriminator="type"),
]


class Query(StaModel):
    ref_id: str = Field("A", alias="refId")
    entity: Optional[EntityType] = None
    entity_id: Optional[int] = Field(None, alias="entityId")
    filters: List[FilterCondition] = Field(default_factory=list)
    expand: List[ExpandDirective] = Field(default_factory=list)
    select: List[str] = Field(default_factory=list)
    orderby: List[OrderBy] = Field(default_factory=list)
    top: Optional[int] = None
    skip: Optional[int] = None
    count: bool = False
    result_format: Literal["default", "dataArray"] = Field(
        "default", alias="resultFormat"
    )
    expression: Optional[str] = None
    alias: Optional[str] = None
    as_of: Optional[str] = Field(None, alias="asOf")
    from_to: Optional[FromTo] = Field(None, alias="fromTo")


class MetricFindValue(StaModel):
    text: str
    value: str
