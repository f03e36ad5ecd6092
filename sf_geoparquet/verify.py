"""
Inspection helpers: summarise a GeoParquet file and check the bbox stored in
its geo metadata against the bbox computed from the geometries themselves.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np
import pyarrow.parquet as pq
from shapely import from_wkb

from .metadata import read_geo_metadata
from .parquet import PathLike

logger = logging.getLogger(__name__)

GeomBBox = Tuple[float, float, float, float]


@dataclass
class BBoxReport:
    path: str
    column: str
    metadata_bbox: Optional[GeomBBox]
    computed_bbox: Optional[GeomBBox]
    matches: bool
    num_files: int = 1


def _metadata_bbox(col_meta: Dict[str, Any]) -> Optional[GeomBBox]:
    bbox = col_meta.get("bbox")
    if isinstance(bbox, list) and len(bbox) == 4 and all(v is not None for v in bbox):
        return (float(bbox[0]), float(bbox[1]), float(bbox[2]), float(bbox[3]))
    return None


def _iter_geoms(pf: pq.ParquetFile, geom_col: str) -> Iterator:
    """Yield shapely geometries, reading only the geometry column row group by row group."""
    for rg in range(pf.num_row_groups):
        logger.debug("Reading row group %d/%d of %s", rg, pf.num_row_groups, geom_col)
        tbl = pf.read_row_group(rg, columns=[geom_col]).combine_chunks()
        yield from from_wkb(tbl[geom_col].to_numpy(zero_copy_only=False))


def compute_bbox(geoms) -> Optional[GeomBBox]:
    minx = miny = np.inf
    maxx = maxy = -np.inf
    any_geom = False
    for g in geoms:
        if g is None or g.is_empty:
            continue
        any_geom = True
        x0, y0, x1, y1 = g.bounds
        minx, miny = min(minx, x0), min(miny, y0)
        maxx, maxy = max(maxx, x1), max(maxy, y1)
    return (float(minx), float(miny), float(maxx), float(maxy)) if any_geom else None


def union_bbox(bboxes: Iterable[Optional[GeomBBox]]) -> Optional[GeomBBox]:
    boxes = [b for b in bboxes if b is not None]
    if not boxes:
        return None
    arr = np.asarray(boxes, dtype=np.float64)
    return (float(arr[:, 0].min()), float(arr[:, 1].min()),
            float(arr[:, 2].max()), float(arr[:, 3].max()))


def _bbox_matches(meta_bbox: Optional[GeomBBox], comp_bbox: Optional[GeomBBox], rtol: float) -> bool:
    if meta_bbox is None or comp_bbox is None:
        return meta_bbox is None and comp_bbox is None
    return bool(np.allclose(meta_bbox, comp_bbox, rtol=rtol, atol=0.0))


def compare_bbox(path: PathLike, rtol: float = 1e-9) -> List[BBoxReport]:
    """One report per geometry column declared in the file's geo metadata."""
    pf = pq.ParquetFile(path)
    geo = read_geo_metadata(pf.schema_arrow.metadata)

    reports = []
    for col, col_meta in geo["columns"].items():
        if col not in pf.schema_arrow.names:
            logger.warning("%s: declared geometry column %s not in file", path, col)
            continue
        meta_bbox = _metadata_bbox(col_meta)
        comp_bbox = compute_bbox(_iter_geoms(pf, col))
        reports.append(BBoxReport(str(path), col, meta_bbox, comp_bbox,
                                  _bbox_matches(meta_bbox, comp_bbox, rtol)))
    return reports


def compare_bbox_dir(path: PathLike, rtol: float = 1e-9) -> List[BBoxReport]:
    """
    Check every ``*.parquet`` file below ``path``.

    Files of one dataset all carry the bbox of the whole dataset, so files
    are grouped by (column, stored bbox) and the union of their computed
    bboxes is compared against the stored one.
    """
    files = sorted(p for p in Path(path).rglob("*.parquet") if p.is_file())
    groups: Dict[Tuple[str, Optional[GeomBBox]], List[BBoxReport]] = defaultdict(list)
    for p in files:
        for r in compare_bbox(p, rtol=rtol):
            groups[(r.column, r.metadata_bbox)].append(r)

    reports = []
    for (col, meta_bbox), members in groups.items():
        comp_bbox = union_bbox(m.computed_bbox for m in members)
        label = members[0].path if len(members) == 1 else str(path)
        logger.debug("%s [%s]: %d file(s) share bbox %s", label, col, len(members), meta_bbox)
        reports.append(BBoxReport(label, col, meta_bbox, comp_bbox,
                                  _bbox_matches(meta_bbox, comp_bbox, rtol),
                                  num_files=len(members)))
    return reports


def describe(path: PathLike) -> Dict[str, Any]:
    pf = pq.ParquetFile(path)
    schema = pf.schema_arrow
    return {
        "path": str(path),
        "num_rows": pf.metadata.num_rows,
        "num_row_groups": pf.num_row_groups,
        "schema": {f.name: str(f.type) for f in schema},
        "geo": read_geo_metadata(schema.metadata),
    }
