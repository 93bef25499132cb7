"""
Environment-driven configuration tests.
"""

import pytest
from pydantic import ValidationError

from config import (
    AnalyticsConfig,
    AppConfig,
    CatalogConfig,
    DuckDBConnectionType,
    ServiceConfig,
    get_config,
    parse_bool,
)
from config.defaults import CatalogDefaults, parse_int_list


class TestParseHelpers:

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", " True "])
    def test_truthy(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", "off"])
    def test_falsy(self, value):
        assert parse_bool(value) is False

    def test_int_list(self):
        assert parse_int_list("1, 8,15,,22") == [1, 8, 15, 22]

    def test_empty_int_list(self):
        assert parse_int_list("") == []


class TestCatalogConfig:

    def test_defaults_match_public_bucket(self, clean_env):
        cfg = CatalogConfig.from_environment()
        assert cfg.years == [2010]
        assert cfg.months == list(range(1, 13))
        assert cfg.days == [1, 8, 15, 22]
        assert cfg.location_template == CatalogDefaults.LOCATION_TEMPLATE
        assert cfg.default_partition is None

    def test_empty_days_means_monthly(self, clean_env):
        clean_env.setenv("PARTITION_DAYS", "")
        assert CatalogConfig.from_environment().days == []

    def test_lists_are_sorted_and_deduplicated(self, clean_env):
        clean_env.setenv("PARTITION_YEARS", "2011,2010,2011")
        clean_env.setenv("PARTITION_MONTHS", "3,1")
        cfg = CatalogConfig.from_environment()
        assert cfg.years == [2010, 2011]
        assert cfg.months == [1, 3]

    def test_rejects_month_13(self, clean_env):
        clean_env.setenv("PARTITION_MONTHS", "1,13")
        with pytest.raises(ValidationError):
            CatalogConfig.from_environment()

    def test_rejects_day_32(self):
        with pytest.raises(ValidationError):
            CatalogConfig(days=[32])

    def test_rejects_empty_years(self):
        with pytest.raises(ValidationError):
            CatalogConfig(years=[])


class TestAnalyticsConfig:

    def test_defaults(self, clean_env):
        cfg = AnalyticsConfig.from_environment()
        assert cfg.connection_type == DuckDBConnectionType.MEMORY
        assert cfg.enable_spatial is True
        assert cfg.enable_httpfs is True
        assert cfg.memory_limit == "4GB"
        assert cfg.threads == 4

    def test_persistent_requires_path(self, clean_env):
        clean_env.setenv("DUCKDB_CONNECTION_TYPE", "persistent")
        with pytest.raises(ValidationError):
            AnalyticsConfig.from_environment()

    def test_persistent_with_path(self, clean_env, tmp_path):
        clean_env.setenv("DUCKDB_CONNECTION_TYPE", "persistent")
        clean_env.setenv("DUCKDB_DATABASE_PATH", str(tmp_path / "db.duckdb"))
        cfg = AnalyticsConfig.from_environment()
        assert cfg.debug_dict()["database_path"].endswith("db.duckdb")

    def test_extensions_can_be_disabled(self, clean_env):
        clean_env.setenv("DUCKDB_ENABLE_SPATIAL", "false")
        clean_env.setenv("DUCKDB_ENABLE_HTTPFS", "0")
        cfg = AnalyticsConfig.from_environment()
        assert cfg.enable_spatial is False
        assert cfg.enable_httpfs is False


class TestServiceConfig:

    def test_defaults(self, clean_env):
        cfg = ServiceConfig.from_environment()
        assert cfg.default_limit == 100000
        assert cfg.max_concurrent_queries == 8
        assert cfg.query_timeout_seconds == 120
        assert cfg.origin_window_years == 5
        assert cfg.plastic_risk_threshold == pytest.approx(0.1)
        assert cfg.check_partitions is True
        assert cfg.allow_partial_results is False
        assert cfg.expose_error_details is False
        assert cfg.cache_enabled is False
        assert cfg.cache_dir == "/cache"
        assert cfg.port == 3002

    def test_overrides(self, clean_env):
        clean_env.setenv("MAX_CONCURRENT_QUERIES", "2")
        clean_env.setenv("ALLOW_PARTIAL_RESULTS", "true")
        clean_env.setenv("QUERY_TIMEOUT_SECONDS", "7.5")
        cfg = ServiceConfig.from_environment()
        assert cfg.max_concurrent_queries == 2
        assert cfg.allow_partial_results is True
        assert cfg.query_timeout_seconds == 7.5

    def test_rejects_zero_workers(self):
        with pytest.raises(ValidationError):
            ServiceConfig(max_concurrent_queries=0)


class TestAppConfig:

    def test_composes_domain_configs(self, clean_env):
        cfg = AppConfig.from_environment()
        assert isinstance(cfg.catalog, CatalogConfig)
        assert isinstance(cfg.analytics, AnalyticsConfig)
        assert isinstance(cfg.service, ServiceConfig)
        assert set(cfg.debug_dict()) == {"catalog", "analytics", "service"}

    def test_get_config_is_singleton(self, clean_env):
        assert get_config() is get_config()
