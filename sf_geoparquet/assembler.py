from __future__ import annotations

import logging
import warnings
from typing import Any, Dict, Union

import pandas as pd
import pyarrow as pa
from geopandas import GeoDataFrame

from .errors import GeoMetadataWarning, ReconstructionError
from .transcoder import decode_wkb

logger = logging.getLogger(__name__)


def arrow_to_geodataframe(table: Union[pa.Table, pd.DataFrame], metadata: Dict[str, Any]) -> GeoDataFrame:
    """
    Rebuild a GeoDataFrame from a plain table and a validated geo document.

    Every declared geometry column present in ``table`` is decoded from WKB
    with its own CRS. The declared primary column becomes the active
    geometry; if it was not read, the first decoded column is used instead
    and a GeoMetadataWarning is emitted.
    """
    df = table.to_pandas() if isinstance(table, pa.Table) else pd.DataFrame(table)

    declared = metadata["columns"]
    geom_cols = [c for c in df.columns if c in declared]
    if not geom_cols:
        raise ReconstructionError(
            f"Malformed file and geo metadata: none of the geometry columns "
            f"{list(declared)} are present in the table"
        )

    primary = metadata["primary_column"]
    if primary not in geom_cols:
        warnings.warn(
            f"Primary geometry column {primary!r} not found, using next available ({geom_cols[0]!r}).",
            GeoMetadataWarning,
            stacklevel=2,
        )
        primary = geom_cols[0]

    decoded = {
        col: decode_wkb(df[col], crs=declared[col]["crs"], index=df.index, name=col)
        for col in geom_cols
    }
    df = df.assign(**decoded)
    logger.debug("Decoded geometry columns %s; primary=%s", geom_cols, primary)

    return GeoDataFrame(df, geometry=primary)
