"""
Geo metadata codec.

Builds the JSON document stored under the ``geo`` key of a Parquet schema and
validates documents read back from files written by any producer.

Document layout::

    {
      "primary_column": "geometry",
      "columns": {"geometry": {"crs": "<WKT>", "encoding": "WKB", "bbox": [xmin, ymin, xmax, ymax]}},
      "version": "2.2", "licence": "ODbL", "source": "lynker-spatial",
      "schema_version": "0.1.0", "creator": {"library": "lynker-spatial"}
    }
"""
from __future__ import annotations

import json
import logging
import warnings
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from geopandas.array import GeometryDtype

from .constants import (
    DEFAULT_LICENSE,
    DEFAULT_SOURCE,
    DEFAULT_VERSION,
    GEO_KEY,
    SCHEMA_VERSION,
    WKB,
)
from .errors import (
    GeoMetadataWarning,
    MalformedMetadataError,
    MissingColumnItemError,
    MissingGeoMetadataError,
    MissingKeyError,
    UnsupportedEncodingError,
)

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("primary_column", "columns")
REQUIRED_COLUMN_KEYS = ("crs", "encoding")

# Slots that hold a scalar; some JSON writers box these as one-element arrays
_SCALAR_KEYS = ("primary_column", "version", "licence", "source", "schema_version")
_SCALAR_COLUMN_KEYS = ("crs", "encoding")


# ------------------------- Writing ------------------------- #
def geometry_columns(df: pd.DataFrame) -> List[str]:
    """Names of the geometry-typed columns of ``df``, in column order."""
    return [name for name, dtype in df.dtypes.items() if isinstance(dtype, GeometryDtype)]


def _bbox(values) -> List[Optional[float]]:
    bounds = values.total_bounds
    return [float(v) if np.isfinite(v) else None for v in bounds]


def create_metadata(
    df: pd.DataFrame,
    version: str = DEFAULT_VERSION,
    license: str = DEFAULT_LICENSE,
    source: str = DEFAULT_SOURCE,
) -> str:
    """
    Build the geo metadata document for ``df`` and return it as JSON text.

    A frame without geometry columns yields an empty ``columns`` mapping and a
    null ``primary_column``; that is rejected later on the read side, not here.
    """
    warnings.warn(
        f"This is writing {source} supported metadata for dataset version {version}. "
        f"Use of the data follows an {license} license.",
        GeoMetadataWarning,
        stacklevel=2,
    )

    col_meta: Dict[str, Dict[str, Any]] = {}
    for col in geometry_columns(df):
        values = df[col].values
        crs = values.crs
        col_meta[col] = {
            "crs": crs.to_wkt() if crs is not None else None,
            "encoding": WKB,
            "bbox": _bbox(values),
        }
        logger.debug("Geometry column %s: bbox=%s crs=%s", col, col_meta[col]["bbox"],
                     crs.name if crs is not None else None)

    geo = {
        "primary_column": getattr(df, "active_geometry_name", None),
        "columns": col_meta,
        "version": version,
        "licence": license,
        "source": source,
        "schema_version": SCHEMA_VERSION,
        "creator": {"library": source},
    }
    return json.dumps(geo, separators=(",", ":"))


# ------------------------- Reading ------------------------- #
def validate_metadata(metadata: Any) -> None:
    """
    Check the structure of a decoded geo document. Raises a MetadataError
    subclass on the first problem found; returns None otherwise.
    """
    if metadata is None or not isinstance(metadata, Mapping):
        raise MalformedMetadataError("empty or malformed geo metadata")

    for key in REQUIRED_KEYS:
        if key not in metadata:
            raise MissingKeyError(key)

    columns = metadata["columns"]
    if not isinstance(columns, Mapping):
        raise MalformedMetadataError("empty or malformed geo metadata: 'columns' must be a mapping")

    for name, geo_col in columns.items():
        if not isinstance(geo_col, Mapping):
            raise MalformedMetadataError(f"empty or malformed geo metadata for column {name}")
        for item in REQUIRED_COLUMN_KEYS:
            if item not in geo_col:
                raise MissingColumnItemError(item, name)
        if geo_col["encoding"] != WKB:
            raise UnsupportedEncodingError(
                f"Only WKB encoding is currently supported (column {name} uses {geo_col['encoding']!r})"
            )


def _unbox(value: Any) -> Any:
    if isinstance(value, list) and len(value) == 1:
        return value[0]
    return value


def _unbox_document(doc: Any) -> Any:
    if not isinstance(doc, dict):
        return doc
    out = dict(doc)
    for key in _SCALAR_KEYS:
        if key in out:
            out[key] = _unbox(out[key])
    columns = out.get("columns")
    if isinstance(columns, dict):
        out["columns"] = {
            name: (
                {k: (_unbox(v) if k in _SCALAR_COLUMN_KEYS else v) for k, v in col.items()}
                if isinstance(col, dict) else col
            )
            for name, col in columns.items()
        }
    return out


def parse_metadata(raw: Union[str, bytes, None]) -> Dict[str, Any]:
    """Decode geo metadata JSON text and return the validated document."""
    if raw is None:
        raise MalformedMetadataError("empty or malformed geo metadata")
    try:
        doc = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedMetadataError(f"empty or malformed geo metadata: {e}") from e

    doc = _unbox_document(doc)
    validate_metadata(doc)
    return doc


def read_geo_metadata(schema_metadata: Optional[Mapping]) -> Dict[str, Any]:
    """Pull the ``geo`` entry out of Arrow key-value metadata and validate it."""
    md = schema_metadata or {}
    raw = md.get(GEO_KEY)
    if raw is None:
        raw = md.get(GEO_KEY.decode("utf-8"))
    if raw is None:
        raise MissingGeoMetadataError(
            "No geometry metadata found. Use pyarrow.parquet.read_table for plain Parquet"
        )
    geo = parse_metadata(raw)
    logger.debug("Geo metadata: primary_column=%s columns=%s",
                 geo["primary_column"], list(geo["columns"]))
    return geo
