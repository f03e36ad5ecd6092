# Reserved key in Parquet/Arrow schema metadata
GEO_KEY = b"geo"

SCHEMA_VERSION = "0.1.0"
WKB = "WKB"

# Defaults written into the geo metadata when the caller does not override them
DEFAULT_VERSION = "2.2"
DEFAULT_LICENSE = "ODbL"
DEFAULT_SOURCE = "lynker-spatial"

DEFAULT_COMPRESSION = "zstd"
DEFAULT_FORMAT = "parquet"
