"""
Main Application Configuration.

Composes domain-specific configuration modules:
    - CatalogConfig (partition catalog)
    - AnalyticsConfig (DuckDB engine)
    - ServiceConfig (limits, concurrency, probing, cache)

Exports:
    AppConfig: Main configuration class

Dependencies:
    pydantic: BaseModel for configuration validation
    config.catalog_config: CatalogConfig
    config.analytics_config: AnalyticsConfig
    config.service_config: ServiceConfig

Pattern:
    Composition over inheritance - domain configs are composed, not inherited.
"""

from pydantic import BaseModel, Field

from .catalog_config import CatalogConfig
from .analytics_config import AnalyticsConfig
from .service_config import ServiceConfig


# ============================================================================
# APPLICATION CONFIGURATION
# ============================================================================

class AppConfig(BaseModel):
    """
    Application configuration - composition of domain configs.

    Usage:
        config = AppConfig.from_environment()
        config.catalog.years
        config.analytics.memory_limit
        config.service.max_concurrent_queries
    """

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)

    @classmethod
    def from_environment(cls) -> "AppConfig":
        """Load all domain configs from environment variables."""
        return cls(
            catalog=CatalogConfig.from_environment(),
            analytics=AnalyticsConfig.from_environment(),
            service=ServiceConfig.from_environment(),
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration dictionary."""
        return {
            "catalog": self.catalog.debug_dict(),
            "analytics": self.analytics.debug_dict(),
            "service": self.service.debug_dict(),
        }
