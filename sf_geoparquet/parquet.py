"""
Single-file GeoParquet read/write.

Geometry columns are stored as WKB ``binary`` columns and described by the
``geo`` entry of the Parquet key-value metadata (see ``metadata.py``).
"""
from __future__ import annotations

import logging
import os
import warnings
from typing import Any, Dict, List, Optional, Sequence, Union

import pyarrow as pa
import pyarrow.parquet as pq
from geopandas import GeoDataFrame

from .assembler import arrow_to_geodataframe
from .constants import (
    DEFAULT_COMPRESSION,
    DEFAULT_LICENSE,
    DEFAULT_SOURCE,
    DEFAULT_VERSION,
    GEO_KEY,
)
from .errors import TypeMismatchError, UsageError
from .metadata import create_metadata, read_geo_metadata
from .transcoder import encode_wkb

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def with_geo_metadata(tbl: pa.Table, geo_metadata: str) -> pa.Table:
    """Return ``tbl`` with the geo JSON merged into its schema metadata."""
    meta = dict(tbl.schema.metadata or {})
    meta[GEO_KEY] = geo_metadata.encode("utf-8")
    return tbl.replace_schema_metadata(meta)


# ------------------------- Write ------------------------- #
def write_geoparquet(
    gdf: GeoDataFrame,
    path: Optional[PathLike] = None,
    version: str = DEFAULT_VERSION,
    license: str = DEFAULT_LICENSE,
    source: str = DEFAULT_SOURCE,
    compression: str = DEFAULT_COMPRESSION,
    **kwargs: Any,
) -> GeoDataFrame:
    """
    Write ``gdf`` to a single Parquet file with WKB geometry and geo metadata.

    Extra keyword arguments go to ``pyarrow.parquet.write_table``. The input
    frame is returned untouched.
    """
    if not isinstance(gdf, GeoDataFrame):
        raise TypeMismatchError(f"Must be a GeoDataFrame, got {type(gdf).__name__}")
    if not path:
        raise UsageError("Missing output file")

    geo_metadata = create_metadata(gdf, version=version, license=license, source=source)
    tbl = with_geo_metadata(encode_wkb(gdf), geo_metadata)

    logger.info("Writing %d rows to %s", tbl.num_rows, path)
    pq.write_table(tbl, path, compression=compression, **kwargs)
    return gdf


# ------------------------- Read ------------------------- #
def _resolve_columns(
    schema: pa.Schema, columns: Union[str, Sequence[str]], geo: Dict[str, Any]
) -> List[str]:
    if isinstance(columns, str):
        columns = [columns]
    requested = set(columns)
    unknown = [c for c in columns if c not in schema.names]
    if unknown:
        logger.warning("Ignoring columns not present in file: %s", unknown)

    selected = [name for name in schema.names if name in requested]

    declared = geo["columns"]
    if not any(name in declared for name in selected):
        present = [name for name in schema.names if name in declared]
        if present:
            geom = geo["primary_column"] if geo["primary_column"] in present else present[0]
            logger.info("No geometry column selected; adding %s", geom)
            selected = [name for name in schema.names if name in requested or name == geom]
    return selected


def read_geo_metadata_from_file(path: PathLike, **kwargs: Any) -> Dict[str, Any]:
    """Validated geo document of a Parquet file, without reading any data."""
    if not path:
        raise UsageError("Please provide a data source")
    pf = pq.ParquetFile(path, **kwargs)
    return read_geo_metadata(pf.schema_arrow.metadata)


def read_geoparquet(
    path: Optional[PathLike] = None,
    columns: Optional[Union[str, Sequence[str]]] = None,
    props: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> GeoDataFrame:
    """
    Read a GeoParquet file into a GeoDataFrame.

    ``columns`` restricts the columns read; a geometry column is added when
    none is selected. Extra keyword arguments go to ``pyarrow.parquet.ParquetFile``.
    ``props`` is deprecated: pass its entries as keyword arguments instead.
    """
    if not path:
        raise UsageError("Please provide a data source")

    if props is not None:
        warnings.warn(
            "'props' is deprecated; pass reader options as keyword arguments.",
            FutureWarning,
            stacklevel=2,
        )
        kwargs = {**props, **kwargs}

    pf = pq.ParquetFile(path, **kwargs)
    schema = pf.schema_arrow
    geo = read_geo_metadata(schema.metadata)
    logger.info("Opened %s with %d row groups", path, pf.num_row_groups)

    if columns is not None:
        tbl = pf.read(columns=_resolve_columns(schema, columns, geo))
    else:
        tbl = pf.read()

    return arrow_to_geodataframe(tbl, geo)
