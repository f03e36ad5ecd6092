"""
Shared fixtures: small GeoDataFrames with one or two geometry columns.
"""

import geopandas as gpd
import pytest
from shapely.geometry import LineString, Point, Polygon


@pytest.fixture
def points_gdf():
    return gpd.GeoDataFrame(
        {
            "id": [1, 2, 3, 4],
            "name": ["a", "b", "c", "d"],
            "region": ["north", "south", "north", "south"],
            "geometry": [Point(0, 0), Point(1, 2), Point(-3, 5), Point(10, -1)],
        },
        crs="EPSG:4326",
    )


@pytest.fixture
def two_geom_gdf():
    gdf = gpd.GeoDataFrame(
        {
            "id": [1, 2],
            "geom": [
                Polygon([(0, 0), (1, 0), (1, 1), (0, 1)]),
                Polygon([(2, 2), (4, 2), (4, 5), (2, 5)]),
            ],
        },
        geometry="geom",
        crs="EPSG:4326",
    )
    gdf["centerline"] = gpd.GeoSeries(
        [LineString([(100, 200), (300, 400)]), LineString([(500, 600), (700, 800)])],
        crs="EPSG:3857",
    )
    return gdf


@pytest.fixture
def valid_geo():
    return {
        "primary_column": "geom",
        "columns": {
            "geom": {"crs": "EPSG:4326", "encoding": "WKB", "bbox": [0, 0, 1, 1]},
        },
    }
