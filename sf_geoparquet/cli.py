from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .constants import DEFAULT_LICENSE, DEFAULT_SOURCE, DEFAULT_VERSION
from .errors import GeoParquetError, MetadataError
from .parquet import read_geo_metadata_from_file, read_geoparquet, write_geoparquet
from .dataset import write_geodataset
from .verify import compare_bbox, compare_bbox_dir, describe

logger = logging.getLogger(__name__)


def is_parquet_path(path: str) -> bool:
    p = path.lower()
    return p.endswith(".parquet") or p.endswith(".geoparquet")


def cmd_info(args) -> int:
    print(json.dumps(describe(args.path), indent=2))
    return 0


def cmd_validate(args) -> int:
    try:
        geo = read_geo_metadata_from_file(args.path)
    except MetadataError as e:
        print(f"{args.path}: invalid geo metadata: {e}", file=sys.stderr)
        return 1
    print(f"{args.path}: OK (primary_column={geo['primary_column']}, "
          f"columns={', '.join(geo['columns'])})")
    return 0


def cmd_verify(args) -> int:
    if Path(args.path).is_dir():
        reports = compare_bbox_dir(args.path, rtol=args.rtol)
    else:
        reports = compare_bbox(args.path, rtol=args.rtol)
    if not reports:
        logger.warning("No geometry columns checked under %s", args.path)
        return 0

    status = 0
    for r in reports:
        flag = "OK" if r.matches else "MISMATCH"
        print(f"{flag} {r.path} [{r.column}] files={r.num_files} "
              f"meta={r.metadata_bbox} computed={r.computed_bbox}")
        if not r.matches:
            status = 1
    return status


def cmd_convert(args) -> int:
    if is_parquet_path(args.input):
        logger.info("Reading GeoParquet %s", args.input)
        gdf = read_geoparquet(args.input)
    else:
        import geopandas as gpd
        logger.info("Reading vector file %s", args.input)
        gdf = gpd.read_file(args.input)
    logger.info("Loaded %d rows", len(gdf))

    meta = dict(version=args.version, license=args.license, source=args.source)
    if args.partition:
        write_geodataset(gdf, args.output, partitioning=args.partition,
                         existing_data_behavior="overwrite_or_ignore", **meta)
    else:
        write_geoparquet(gdf, args.output, compression=args.compression, **meta)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="sf-geoparquet",
        description="Read, write and check GeoParquet files carrying WKB geometry and 'geo' metadata.",
    )
    ap.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("info", help="Print schema, row count and geo metadata of a file.")
    p.add_argument("path")
    p.set_defaults(func=cmd_info)

    p = sub.add_parser("validate", help="Validate the geo metadata of a file.")
    p.add_argument("path")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("verify", help="Compare stored bbox with the bbox computed from geometries.")
    p.add_argument("path", help="A .parquet file or a directory of them.")
    p.add_argument("--rtol", type=float, default=1e-9, help="Relative tolerance (default: 1e-9).")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("convert", help="Convert a vector file (or GeoParquet) to GeoParquet.")
    p.add_argument("input")
    p.add_argument("output", help="Output file, or dataset directory with --partition.")
    p.add_argument("--partition", nargs="+", default=None,
                   help="Write a hive-partitioned dataset split on these columns.")
    p.add_argument("--compression", default="zstd", help="Parquet compression codec (default: zstd).")
    p.add_argument("--version", default=DEFAULT_VERSION, help=f"Dataset version (default: {DEFAULT_VERSION}).")
    p.add_argument("--license", default=DEFAULT_LICENSE, help=f"Data license (default: {DEFAULT_LICENSE}).")
    p.add_argument("--source", default=DEFAULT_SOURCE, help=f"Data source (default: {DEFAULT_SOURCE}).")
    p.set_defaults(func=cmd_convert)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        return args.func(args)
    except GeoParquetError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
