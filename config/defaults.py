"""
Configuration Defaults - Single source of truth for all default values.

Every default here is safe for a local deployment against the public
drift-trajectory bucket. Override through environment variables.

Usage:
    from config.defaults import ServiceDefaults, parse_bool

    # In Pydantic Field definitions:
    default_limit: int = Field(default=ServiceDefaults.DEFAULT_LIMIT, ...)
"""

from typing import List


# =============================================================================
# PARTITION CATALOG DEFAULTS
# =============================================================================

class CatalogDefaults:
    """
    Partition catalog defaults.

    One GeoParquet file per release date: 5 years of drift simulated from
    each of days 1, 8, 15 and 22 of every month of 2010.
    """

    YEARS: List[int] = [2010]
    MONTHS: List[int] = list(range(1, 13))
    DAYS: List[int] = [1, 8, 15, 22]

    LOCATION_TEMPLATE = (
        "https://minio.dive.edito.eu/project-plastic-marine-debris-drift/"
        "RUN_{year}_5YEARS_GEOPARQUET/"
        "Trajectories_smoc_{year}-{month}-{day}_1825days_coastalrepel.parquet"
    )


# =============================================================================
# ANALYTICS DEFAULTS (DuckDB)
# =============================================================================

class AnalyticsDefaults:
    """
    DuckDB defaults.

    Controls DuckDB connection, extensions, and performance tuning.
    """

    CONNECTION_TYPE = "memory"
    ENABLE_SPATIAL = True
    ENABLE_HTTPFS = True
    MEMORY_LIMIT = "4GB"
    THREADS = 4


# =============================================================================
# SERVICE DEFAULTS (query orchestration)
# =============================================================================

class ServiceDefaults:
    """
    Request handling defaults.
    """

    DEFAULT_LIMIT = 100000
    MAX_CONCURRENT_QUERIES = 8
    QUERY_TIMEOUT_SECONDS = 120
    ORIGIN_WINDOW_YEARS = 5
    PLASTIC_RISK_THRESHOLD = 0.1

    CHECK_PARTITIONS = True
    PROBE_TIMEOUT_SECONDS = 10
    ALLOW_PARTIAL_RESULTS = False
    EXPOSE_ERROR_DETAILS = False

    CACHE_ENABLED = False
    CACHE_DIR = "/cache"

    PORT = 3002


# =============================================================================
# HELPERS
# =============================================================================

def parse_bool(value: str) -> bool:
    """Parse boolean from environment variable."""
    return value.strip().lower() in ("true", "1", "yes")


def parse_int_list(value: str) -> List[int]:
    """
    Parse a comma-separated list of integers from an environment variable.

    Empty entries are skipped, so "" yields [].
    """
    return [int(part) for part in value.split(",") if part.strip()]
