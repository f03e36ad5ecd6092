from .version import __version__
from .errors import (
    GeoParquetError,
    UsageError,
    TypeMismatchError,
    MetadataError,
    MissingGeoMetadataError,
    MalformedMetadataError,
    MissingKeyError,
    MissingColumnItemError,
    UnsupportedEncodingError,
    ReconstructionError,
    GeoMetadataWarning,
)
from .metadata import create_metadata, validate_metadata, parse_metadata, read_geo_metadata, geometry_columns
from .transcoder import encode_wkb, encode_wkb_grouped, decode_wkb
from .assembler import arrow_to_geodataframe
from .parquet import read_geoparquet, write_geoparquet, read_geo_metadata_from_file
from .dataset import GeoDatasetQuery, open_geodataset, read_geodataset, write_geodataset

__all__ = [
    "__version__",
    "GeoParquetError", "UsageError", "TypeMismatchError", "MetadataError",
    "MissingGeoMetadataError", "MalformedMetadataError", "MissingKeyError",
    "MissingColumnItemError", "UnsupportedEncodingError", "ReconstructionError",
    "GeoMetadataWarning",
    "create_metadata", "validate_metadata", "parse_metadata", "read_geo_metadata", "geometry_columns",
    "encode_wkb", "encode_wkb_grouped", "decode_wkb",
    "arrow_to_geodataframe",
    "read_geoparquet", "write_geoparquet", "read_geo_metadata_from_file",
    "GeoDatasetQuery", "open_geodataset", "read_geodataset", "write_geodataset",
]
