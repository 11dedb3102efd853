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
from functools import lru_cache

from istsos4grafana import EPSG
from pyproj import Transformer

logger = logging.getLogger(__name__)

WGS84 = 4326


@lru_cache(maxsize=None)
def get_transformer(src_epsg: int, dst_epsg: int = WGS84) -> Transformer:
    return Transformer.from_crs(
        f"EPSG:{src_epsg}", f"EPSG:{dst_epsg}", always_xy=True
    )


def reproject(x, y, src_epsg=EPSG):
    """
    Converts projected coordinates to WGS84 longitude and latitude.

    Args:
        x (float): Easting in the source CRS.
        y (float): Northing in the source CRS.
        src_epsg (int): EPSG code of the source CRS. Defaults to the
            configured EPSG (CH1903+ / LV95).

    Returns:
        tuple: The (lon, lat) pair.
    """
    if src_epsg == WGS84:
        return x, y
    lon, lat = get_transformer(src_epsg).transform(x, y)
    return lon, lat


def _reproject_points(points, src_epsg):
    return [list(reproject(p[0], p[1], src_epsg)) for p in points]


def transform_geometry(geometry, src_epsg=EPSG):
    """
    Reprojects a GeoJSON geometry to WGS84.

    Args:
        geometry (dict): A GeoJSON Point, LineString or Polygon.
        src_epsg (int): EPSG code of the source CRS.

    Returns:
        dict: The reprojected geometry, or None for unsupported or
            malformed geometries.
    """
    if not isinstance(geometry, dict):
        return None
    geometry_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    try:
        if geometry_type == "Point":
            lon, lat = reproject(coordinates[0], coordinates[1], src_epsg)
            return {"type": "Point", "coordinates": [lon, lat]}
        if geometry_type == "LineString":
            return {
                "type": "LineString",
                "coordinates": _reproject_points(coordinates, src_epsg),
            }
        if geometry_type == "Polygon":
            return {
                "type": "Polygon",
                "coordinates": [
                    _reproject_points(ring, src_epsg) for ring in coordinates
                ],
            }
    except (IndexError, KeyError, TypeError):
        logger.warning(f"Malformed {geometry_type} geometry: {coordinates}")
        return None
    logger.warning(f"Unsupported geometry type: {geometry_type}")
    return None
