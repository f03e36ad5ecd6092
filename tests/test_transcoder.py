"""
WKB encoding of geometry columns and reconstruction of GeoDataFrames.
"""

import json

import geopandas as gpd
import numpy as np
import pyarrow as pa
import pytest
from shapely.geometry import Point

from sf_geoparquet import GeoMetadataWarning, ReconstructionError
from sf_geoparquet.assembler import arrow_to_geodataframe
from sf_geoparquet.metadata import create_metadata
from sf_geoparquet.transcoder import decode_wkb, encode_wkb, encode_wkb_grouped


def _metadata(gdf):
    with pytest.warns(GeoMetadataWarning):
        return json.loads(create_metadata(gdf))


class TestEncodeWkb:

    def test_geometry_becomes_binary(self, points_gdf):
        tbl = encode_wkb(points_gdf)
        assert tbl.column_names == ["id", "name", "region", "geometry"]
        assert tbl.schema.field("geometry").type == pa.binary()
        assert tbl["geometry"][0].as_py() == Point(0, 0).wkb

    def test_multiple_geometry_columns(self, two_geom_gdf):
        tbl = encode_wkb(two_geom_gdf)
        assert tbl.schema.field("geom").type == pa.binary()
        assert tbl.schema.field("centerline").type == pa.binary()

    def test_nulls_are_preserved(self):
        gdf = gpd.GeoDataFrame({"geometry": [Point(0, 0), None]}, crs="EPSG:4326")
        tbl = encode_wkb(gdf)
        assert tbl["geometry"].null_count == 1

    def test_all_null_column_stays_binary(self):
        gdf = gpd.GeoDataFrame({"geometry": gpd.GeoSeries([None, None], crs="EPSG:4326")})
        tbl = encode_wkb(gdf)
        assert tbl.schema.field("geometry").type == pa.binary()

    def test_input_is_not_modified(self, points_gdf):
        before = points_gdf.copy()
        encode_wkb(points_gdf)
        assert points_gdf.geometry.geom_equals(before.geometry).all()
        assert points_gdf.crs == before.crs


class TestEncodeWkbGrouped:

    def test_preserves_row_order(self, points_gdf):
        tbl = encode_wkb_grouped(points_gdf.groupby("region"))
        assert tbl["id"].to_pylist() == [1, 2, 3, 4]
        assert tbl["region"].to_pylist() == ["north", "south", "north", "south"]
        assert tbl.schema.field("geometry").type == pa.binary()

    def test_matches_ungrouped_encoding(self, points_gdf):
        grouped = encode_wkb_grouped(points_gdf.groupby("region"))
        plain = encode_wkb(points_gdf)
        assert grouped["geometry"].to_pylist() == plain["geometry"].to_pylist()

    def test_null_keys_are_kept(self, points_gdf):
        gdf = points_gdf.copy()
        gdf.loc[1, "region"] = None
        tbl = encode_wkb_grouped(gdf.groupby("region"))
        assert tbl.num_rows == 4
        assert tbl["id"].to_pylist() == [1, 2, 3, 4]


class TestDecodeWkb:

    def test_uses_given_crs(self):
        values = pa.array([Point(1, 2).wkb, None], type=pa.binary())
        geoms = decode_wkb(values, crs="EPSG:3857")
        assert geoms.crs.to_epsg() == 3857
        assert geoms.iloc[0].equals(Point(1, 2))
        assert geoms.iloc[1] is None

    def test_without_crs(self):
        geoms = decode_wkb([Point(1, 2).wkb])
        assert geoms.crs is None


class TestArrowToGeoDataFrame:

    def test_round_trip(self, points_gdf):
        geo = _metadata(points_gdf)
        out = arrow_to_geodataframe(encode_wkb(points_gdf), geo)

        assert isinstance(out, gpd.GeoDataFrame)
        assert out.active_geometry_name == "geometry"
        assert out.crs.to_epsg() == 4326
        assert out.geometry.geom_equals(points_gdf.geometry).all()
        np.testing.assert_allclose(out.total_bounds, geo["columns"]["geometry"]["bbox"])

    def test_two_geometry_columns_keep_their_crs(self, two_geom_gdf):
        geo = _metadata(two_geom_gdf)
        out = arrow_to_geodataframe(encode_wkb(two_geom_gdf), geo)

        assert out.active_geometry_name == "geom"
        assert out["geom"].crs.to_epsg() == 4326
        assert out["centerline"].crs.to_epsg() == 3857
        assert out["centerline"].geom_equals(two_geom_gdf["centerline"]).all()

    def test_accepts_pandas_frame(self, points_gdf):
        geo = _metadata(points_gdf)
        out = arrow_to_geodataframe(encode_wkb(points_gdf).to_pandas(), geo)
        assert out.active_geometry_name == "geometry"

    def test_primary_column_fallback(self, points_gdf):
        tbl = encode_wkb(points_gdf).rename_columns(["id", "name", "region", "geom"])
        geo = {
            "primary_column": "missing_col",
            "columns": {"geom": {"crs": "EPSG:4326", "encoding": "WKB"}},
        }
        with pytest.warns(GeoMetadataWarning, match="Primary geometry column"):
            out = arrow_to_geodataframe(tbl, geo)
        assert out.active_geometry_name == "geom"
        assert out.crs.to_epsg() == 4326

    def test_fallback_picks_first_present_column(self, two_geom_gdf):
        geo = _metadata(two_geom_gdf)
        tbl = encode_wkb(two_geom_gdf).drop_columns(["geom"])
        with pytest.warns(GeoMetadataWarning):
            out = arrow_to_geodataframe(tbl, geo)
        assert out.active_geometry_name == "centerline"
        assert out.crs.to_epsg() == 3857

    def test_no_declared_column_present(self, points_gdf):
        tbl = encode_wkb(points_gdf)
        geo = {
            "primary_column": "a",
            "columns": {
                "a": {"crs": None, "encoding": "WKB"},
                "b": {"crs": None, "encoding": "WKB"},
            },
        }
        with pytest.raises(ReconstructionError, match="Malformed file and geo metadata"):
            arrow_to_geodataframe(tbl, geo)

    def test_metadata_not_mutated(self, points_gdf):
        geo = _metadata(points_gdf)
        before = json.dumps(geo, sort_keys=True)
        arrow_to_geodataframe(encode_wkb(points_gdf), geo)
        assert json.dumps(geo, sort_keys=True) == before
