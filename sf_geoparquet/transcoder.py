from __future__ import annotations

import logging
from typing import Any, Hashable, List, Optional

import numpy as np
import pandas as pd
import pyarrow as pa
from geopandas import GeoSeries
from pandas.core.groupby import DataFrameGroupBy

from .metadata import geometry_columns

logger = logging.getLogger(__name__)


def encode_wkb(df: pd.DataFrame) -> pa.Table:
    """
    Convert a (Geo)DataFrame into an Arrow table where every geometry column
    holds WKB bytes typed as ``binary``. Other columns go through
    ``pa.Table.from_pandas`` unchanged; the index is not written.
    """
    geom_cols = geometry_columns(df)

    plain = pd.DataFrame(df, copy=False)
    plain = plain.assign(**{col: GeoSeries(df[col]).to_wkb() for col in geom_cols})
    tbl = pa.Table.from_pandas(plain, preserve_index=False)

    # An all-null column is inferred as the null type; WKB must stay binary
    for col in geom_cols:
        idx = tbl.column_names.index(col)
        if not pa.types.is_binary(tbl.schema.field(idx).type):
            tbl = tbl.set_column(idx, col, tbl[col].cast(pa.binary()))

    logger.debug("Encoded %d geometry column(s) to WKB: %s", len(geom_cols), geom_cols)
    return tbl


def encode_wkb_grouped(grouped: DataFrameGroupBy) -> pa.Table:
    """
    Encode each group of ``grouped`` on its own, then stitch the pieces back
    together in the row order of the underlying frame.
    """
    df = grouped.obj
    pieces: List[pa.Table] = []
    positions: List[np.ndarray] = []

    for key, idx in grouped.indices.items():
        logger.debug("Encoding group %s (%d rows)", key, len(idx))
        pieces.append(encode_wkb(df.iloc[idx]))
        positions.append(np.asarray(idx, dtype=np.int64))

    # pandas leaves rows with a null group key out of .indices
    covered = np.concatenate(positions) if positions else np.empty(0, dtype=np.int64)
    rest = np.setdiff1d(np.arange(len(df), dtype=np.int64), covered)
    if len(rest):
        logger.debug("Encoding %d row(s) with null group keys", len(rest))
        pieces.append(encode_wkb(df.iloc[rest]))
        positions.append(rest)

    if not pieces:
        return encode_wkb(df)

    tbl = pa.concat_tables(pieces, promote_options="default")
    order = np.argsort(np.concatenate(positions), kind="stable")
    return tbl.take(pa.array(order, type=pa.int64()))


def decode_wkb(
    values: Any,
    crs: Any = None,
    index: Optional[pd.Index] = None,
    name: Optional[Hashable] = None,
) -> GeoSeries:
    """WKB bytes -> GeoSeries. The CRS comes from the metadata, WKB carries none."""
    if isinstance(values, (pa.Array, pa.ChunkedArray)):
        values = values.to_numpy(zero_copy_only=False)
    data = np.asarray(values, dtype=object)
    return GeoSeries.from_wkb(data, index=index, crs=crs, name=name)
