"""
Root conftest.py - sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without network access or DuckDB extensions.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'config', 'trajectories', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import CatalogConfig, ServiceConfig  # noqa: E402
from trajectories.catalog import build_catalog  # noqa: E402
from tests.factories.fakes import FakeProbe, FakeRepository, make_partition_rows  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables so nothing reaches the network.
    """
    defaults = {
        "DUCKDB_ENABLE_SPATIAL": "false",
        "DUCKDB_ENABLE_HTTPFS": "false",
        "CHECK_PARTITIONS": "false",
        "CACHE_ENABLED": "false",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture
def monthly_catalog():
    """2009-2010 monthly catalog with local-looking locations."""
    return build_catalog(CatalogConfig(
        years=[2009, 2010],
        months=list(range(1, 13)),
        days=[],
        location_template="/data/{key}.parquet",
    ))


@pytest.fixture
def daily_catalog():
    """2010 catalog with releases on days 1, 8, 15, 22 of every month."""
    return build_catalog(CatalogConfig(
        years=[2010],
        location_template="/data/{year}-{month}-{day}.parquet",
    ))


@pytest.fixture
def service_config():
    return ServiceConfig(max_concurrent_queries=4, query_timeout_seconds=5)


@pytest.fixture
def fake_repository():
    return FakeRepository({
        "/data/2010-01.parquet": make_partition_rows(trajectories=3, observations=4, start="2010-01-01"),
        "/data/2010-02.parquet": make_partition_rows(trajectories=2, observations=3, start="2010-02-01"),
    })


@pytest.fixture
def fake_probe():
    return FakeProbe(missing=set())
