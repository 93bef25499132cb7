"""
Configuration Package - Domain-Specific Configuration Modules

This package provides application configuration using a composition-based approach.

Structure:
    config/
    ├── __init__.py              # This file - exports and singleton
    ├── app_config.py            # Main config (composes domain configs)
    ├── catalog_config.py        # Partition catalog (years, months, days, template)
    ├── analytics_config.py      # DuckDB engine
    ├── service_config.py        # Limits, concurrency, probing, cache
    └── defaults.py              # Default values and env parsing helpers

Usage:
    # Singleton pattern (preferred)
    from config import get_config
    config = get_config()
    workers = config.service.max_concurrent_queries

    # Debug output
    from config import debug_config
    info = debug_config()
"""

from typing import Optional

from .catalog_config import CatalogConfig
from .analytics_config import AnalyticsConfig, DuckDBConnectionType
from .service_config import ServiceConfig
from .app_config import AppConfig
from .defaults import parse_bool


# ============================================================================
# SINGLETON PATTERN
# ============================================================================

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get global configuration singleton.

    Returns:
        AppConfig instance loaded from environment
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig.from_environment()
    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config_instance
    _config_instance = None


def debug_config() -> dict:
    """
    Get configuration for debugging.

    Returns:
        Dictionary with configuration values
    """
    return get_config().debug_dict()


__all__ = [
    "AppConfig",
    "CatalogConfig",
    "AnalyticsConfig",
    "DuckDBConnectionType",
    "ServiceConfig",
    "parse_bool",
    "get_config",
    "reset_config",
    "debug_config",
]
