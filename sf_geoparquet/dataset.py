"""
Multi-file (partitioned) GeoParquet datasets on top of ``pyarrow.dataset``.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union

import pyarrow as pa
import pyarrow.dataset as ds
from geopandas import GeoDataFrame
from pandas.core.groupby import DataFrameGroupBy

from .assembler import arrow_to_geodataframe
from .constants import DEFAULT_FORMAT, DEFAULT_LICENSE, DEFAULT_SOURCE, DEFAULT_VERSION
from .errors import TypeMismatchError, UsageError
from .metadata import create_metadata, read_geo_metadata
from .parquet import PathLike, with_geo_metadata
from .transcoder import encode_wkb, encode_wkb_grouped

logger = logging.getLogger(__name__)


def open_geodataset(
    path: Optional[PathLike] = None,
    format: str = DEFAULT_FORMAT,
    partitioning: Optional[Union[str, ds.Partitioning]] = "hive",
    **kwargs: Any,
) -> ds.Dataset:
    if not path:
        raise UsageError("Must provide a path to a dataset")
    return ds.dataset(path, format=format, partitioning=partitioning, **kwargs)


# ------------------------- Lazy query ------------------------- #
@dataclass(frozen=True)
class GeoDatasetQuery:
    """
    Column selection and row filter over a dataset, evaluated on ``collect()``.

    ``select`` and ``filter`` return new queries; the dataset is not scanned
    until ``collect`` is called.
    """
    dataset: ds.Dataset
    columns: Optional[List[str]] = None
    predicate: Optional[ds.Expression] = None

    @property
    def metadata(self):
        return self.dataset.schema.metadata

    @property
    def column_names(self) -> List[str]:
        if self.columns is None:
            return list(self.dataset.schema.names)
        return list(self.columns)

    def select(self, columns: Sequence[str]) -> "GeoDatasetQuery":
        return dataclasses.replace(self, columns=list(columns))

    def filter(self, expression: ds.Expression) -> "GeoDatasetQuery":
        if self.predicate is not None:
            expression = self.predicate & expression
        return dataclasses.replace(self, predicate=expression)

    def collect(self) -> pa.Table:
        logger.debug("Scanning dataset: columns=%s filter=%s", self.columns, self.predicate)
        return self.dataset.to_table(columns=self.columns, filter=self.predicate)


# ------------------------- Read ------------------------- #
def read_geodataset(
    dataset: Optional[Union[ds.Dataset, GeoDatasetQuery]] = None,
    find_geom: bool = False,
) -> GeoDataFrame:
    """
    Materialise a dataset or query as a GeoDataFrame.

    With ``find_geom=True`` every declared geometry column present in the
    dataset is added to the selection, so a query selecting only attribute
    columns still yields geometries.
    """
    if dataset is None:
        raise UsageError("Must provide an Arrow dataset or GeoDatasetQuery")

    if isinstance(dataset, GeoDatasetQuery):
        query = dataset
    elif isinstance(dataset, ds.Dataset):
        query = GeoDatasetQuery(dataset)
    else:
        raise TypeMismatchError(
            f"Expected a pyarrow Dataset or GeoDatasetQuery, got {type(dataset).__name__}"
        )

    geo = read_geo_metadata(query.metadata)

    if find_geom:
        names = query.column_names
        available = query.dataset.schema.names
        extra = [c for c in geo["columns"] if c in available and c not in names]
        if extra:
            logger.info("Adding geometry column(s) to selection: %s", extra)
            query = query.select(names + extra)

    tbl = query.collect()
    logger.info("Collected %d rows from dataset", tbl.num_rows)
    return arrow_to_geodataframe(tbl, geo)


# ------------------------- Write ------------------------- #
def _group_keys(grouped: DataFrameGroupBy) -> List[str]:
    keys = grouped.keys
    if isinstance(keys, str):
        return [keys]
    if isinstance(keys, (list, tuple)) and all(isinstance(k, str) for k in keys):
        return list(keys)
    raise UsageError("Cannot derive partitioning from the grouping; pass 'partitioning' explicitly")


def write_geodataset(
    obj: Union[GeoDataFrame, DataFrameGroupBy],
    path: Optional[PathLike] = None,
    format: str = DEFAULT_FORMAT,
    partitioning: Optional[Union[str, Sequence[str], ds.Partitioning]] = None,
    version: str = DEFAULT_VERSION,
    license: str = DEFAULT_LICENSE,
    source: str = DEFAULT_SOURCE,
    **kwargs: Any,
) -> Union[GeoDataFrame, DataFrameGroupBy]:
    """
    Write a GeoDataFrame, or a groupby over one, as a partitioned dataset.

    For grouped input the group keys are the default partition columns and
    geometry is encoded group by group. Column-name partitioning uses the
    hive directory layout unless ``partitioning_flavor`` is passed. Extra
    keyword arguments go to ``pyarrow.dataset.write_dataset``.
    """
    grouped = obj if isinstance(obj, DataFrameGroupBy) else None
    gdf = grouped.obj if grouped is not None else obj

    if not isinstance(gdf, GeoDataFrame):
        raise TypeMismatchError(
            "Must be a GeoDataFrame. Use pyarrow.dataset.write_dataset instead"
        )
    if not path:
        raise UsageError("Must provide a file path for output dataset")

    geo_metadata = create_metadata(gdf, version=version, license=license, source=source)

    if grouped is not None:
        if partitioning is None:
            partitioning = _group_keys(grouped)
        tbl = encode_wkb_grouped(grouped)
    else:
        tbl = encode_wkb(gdf)
    tbl = with_geo_metadata(tbl, geo_metadata)

    if isinstance(partitioning, str):
        partitioning = [partitioning]
    if partitioning is not None and not isinstance(partitioning, ds.Partitioning):
        kwargs.setdefault("partitioning_flavor", "hive")

    logger.info("Writing %d rows to dataset %s (format=%s, partitioning=%s)",
                tbl.num_rows, path, format, partitioning)
    ds.write_dataset(tbl, path, format=format, partitioning=partitioning, **kwargs)
    return obj
