"""
Exception hierarchy for reading and writing GeoParquet files and datasets.

Usage and type errors are raised before any I/O happens. Metadata errors are
raised before any geometry is decoded, and reconstruction errors never leave a
partially built GeoDataFrame behind.
"""


class GeoParquetError(Exception):
    """Base class for all sf_geoparquet failures."""


class UsageError(GeoParquetError, ValueError):
    """A required argument (path, table, dataset) was not supplied."""


class TypeMismatchError(GeoParquetError, TypeError):
    """The object handed to a write path is not a GeoDataFrame."""


class MetadataError(GeoParquetError, ValueError):
    """Geo metadata is absent, malformed or describes an unsupported layout."""


class MissingGeoMetadataError(MetadataError):
    pass


class MalformedMetadataError(MetadataError):
    pass


class MissingKeyError(MetadataError):
    def __init__(self, key: str):
        super().__init__(f"Required name '{key}' not found in geo metadata")
        self.key = key


class MissingColumnItemError(MetadataError):
    def __init__(self, item: str, column: str):
        super().__init__(f"Required geo metadata item '{item}' not found in {column}")
        self.item = item
        self.column = column


class UnsupportedEncodingError(MetadataError):
    pass


class ReconstructionError(GeoParquetError, ValueError):
    """Declared geometry columns are not present in the data that was read."""


class GeoMetadataWarning(UserWarning):
    """Advisory emitted while writing or assembling; never stops processing."""
