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

"""
Columnar data frames returned to the dashboard.

A frame is a named list of typed fields of equal length, plus per-field
display configuration and frame level metadata.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd


class FieldType:
    TIME = "time"
    NUMBER = "number"
    STRING = "string"
    OTHER = "other"


@dataclass
class Field:
    name: str
    type: str
    values: List[Any] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        data = {"name": self.name, "type": self.type, "values": self.values}
        if self.config:
            data["config"] = self.config
        return data


@dataclass
class Frame:
    name: str
    ref_id: Optional[str] = None
    fields: List[Field] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def length(self) -> int:
        if not self.fields:
            return 0
        return len(self.fields[0].values)

    def field_names(self):
        return [f.name for f in self.fields]

    def get_field(self, name):
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def to_dict(self):
        data = {
            "refId": self.ref_id,
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
            "length": self.length,
        }
        if self.meta:
            data["meta"] = self.meta
        return data

    def to_pandas(self) -> pd.DataFrame:
        """
        Converts the frame to a pandas DataFrame.

        Time fields become timezone aware UTC datetimes, the frame name,
        reference id and metadata are kept in `DataFrame.attrs`.
        """
        columns = {}
        for f in self.fields:
            if f.type == FieldType.TIME:
                columns[f.name] = pd.to_datetime(f.values, unit="ms", utc=True)
            else:
                columns[f.name] = f.values
        df = pd.DataFrame(columns)
        df.attrs["name"] = self.name
        df.attrs["refId"] = self.ref_id
        df.attrs["meta"] = self.meta
        return df


def create_frame(name, ref_id=None, fields=None, meta=None) -> Frame:
    """
    Creates a frame from field definitions.

    Args:
        name (str): The frame name.
        ref_id (str): The query reference id.
        fields (list): Field objects or dicts with name, type, values and
            an optional config.
        meta (dict): Frame level metadata.

    Returns:
        Frame: The frame.
    """
    built = []
    for f in fields or []:
        if isinstance(f, Field):
            built.append(f)
        else:
            built.append(
                Field(
                    name=f["name"],
                    type=f["type"],
                    values=list(f.get("values", [])),
                    config=dict(f.get("config") or {}),
                )
            )
    lengths = {len(f.values) for f in built}
    if len(lengths) > 1:
        raise ValueError(f"Fields of frame {name} differ in length")
    return Frame(name=name, ref_id=ref_id, fields=built, meta=meta or {})


def error_frame(ref_id, message) -> Frame:
    return create_frame(
        name=ref_id or "error",
        ref_id=ref_id,
        meta={"notices": [{"severity": "error", "text": message}]},
    )
