"""
Config test fixtures - clean environment via monkeypatch.
"""

import pytest

import config


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "PARTITION_YEARS", "PARTITION_MONTHS", "PARTITION_DAYS",
        "PARTITION_LOCATION_TEMPLATE", "DEFAULT_PARTITION",
        "DUCKDB_CONNECTION_TYPE", "DUCKDB_DATABASE_PATH",
        "DUCKDB_ENABLE_SPATIAL", "DUCKDB_ENABLE_HTTPFS",
        "DUCKDB_MEMORY_LIMIT", "DUCKDB_THREADS",
        "DEFAULT_LIMIT", "MAX_CONCURRENT_QUERIES", "QUERY_TIMEOUT_SECONDS",
        "ORIGIN_WINDOW_YEARS", "PLASTIC_RISK_THRESHOLD", "CHECK_PARTITIONS",
        "PROBE_TIMEOUT_SECONDS", "ALLOW_PARTIAL_RESULTS", "EXPOSE_ERROR_DETAILS",
        "CACHE_ENABLED", "CACHE_DIR", "PORT",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    config.reset_config()
    yield monkeypatch
    config.reset_config()
