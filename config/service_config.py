"""
Service configuration - request handling and query orchestration.

Exports:
    ServiceConfig: Pydantic model for limits, concurrency, probing and cache settings
"""

import os
from pydantic import BaseModel, Field

from .defaults import ServiceDefaults, parse_bool


class ServiceConfig(BaseModel):
    """
    Query orchestration settings.

    Configuration Fields:
    ---------------------
    default_limit: Row limit applied to /tracks when the request has none
    max_concurrent_queries: Upper bound of partition queries in flight per request
    query_timeout_seconds: Per-request deadline for the whole fan-out
    origin_window_years: Walk-back window of the origin endpoint
    plastic_risk_threshold: RI value above which plasticCode is HIGH_RISK
    check_partitions: Probe partition existence before querying
    probe_timeout_seconds: Timeout of one remote HEAD probe
    allow_partial_results: Return successful partitions plus warnings on failure
    expose_error_details: Include engine messages in 500 responses
    cache_enabled: Serve responses from the flat-file cache
    cache_dir: Directory of the flat-file cache
    port: HTTP port when launched through `python api_service.py`
    """

    default_limit: int = Field(default=ServiceDefaults.DEFAULT_LIMIT, ge=1)
    max_concurrent_queries: int = Field(default=ServiceDefaults.MAX_CONCURRENT_QUERIES, ge=1, le=128)
    query_timeout_seconds: float = Field(default=ServiceDefaults.QUERY_TIMEOUT_SECONDS, gt=0)
    origin_window_years: int = Field(default=ServiceDefaults.ORIGIN_WINDOW_YEARS, ge=0)
    plastic_risk_threshold: float = Field(default=ServiceDefaults.PLASTIC_RISK_THRESHOLD)

    check_partitions: bool = Field(default=ServiceDefaults.CHECK_PARTITIONS)
    probe_timeout_seconds: float = Field(default=ServiceDefaults.PROBE_TIMEOUT_SECONDS, gt=0)
    allow_partial_results: bool = Field(default=ServiceDefaults.ALLOW_PARTIAL_RESULTS)
    expose_error_details: bool = Field(default=ServiceDefaults.EXPOSE_ERROR_DETAILS)

    cache_enabled: bool = Field(default=ServiceDefaults.CACHE_ENABLED)
    cache_dir: str = Field(default=ServiceDefaults.CACHE_DIR)

    port: int = Field(default=ServiceDefaults.PORT, ge=1, le=65535)

    @classmethod
    def from_environment(cls) -> "ServiceConfig":
        """Load service configuration from environment variables."""
        return cls(
            default_limit=int(os.environ.get("DEFAULT_LIMIT", str(ServiceDefaults.DEFAULT_LIMIT))),
            max_concurrent_queries=int(
                os.environ.get("MAX_CONCURRENT_QUERIES", str(ServiceDefaults.MAX_CONCURRENT_QUERIES))
            ),
            query_timeout_seconds=float(
                os.environ.get("QUERY_TIMEOUT_SECONDS", str(ServiceDefaults.QUERY_TIMEOUT_SECONDS))
            ),
            origin_window_years=int(
                os.environ.get("ORIGIN_WINDOW_YEARS", str(ServiceDefaults.ORIGIN_WINDOW_YEARS))
            ),
            plastic_risk_threshold=float(
                os.environ.get("PLASTIC_RISK_THRESHOLD", str(ServiceDefaults.PLASTIC_RISK_THRESHOLD))
            ),
            check_partitions=parse_bool(
                os.environ.get("CHECK_PARTITIONS", str(ServiceDefaults.CHECK_PARTITIONS).lower())
            ),
            probe_timeout_seconds=float(
                os.environ.get("PROBE_TIMEOUT_SECONDS", str(ServiceDefaults.PROBE_TIMEOUT_SECONDS))
            ),
            allow_partial_results=parse_bool(
                os.environ.get("ALLOW_PARTIAL_RESULTS", str(ServiceDefaults.ALLOW_PARTIAL_RESULTS).lower())
            ),
            expose_error_details=parse_bool(
                os.environ.get("EXPOSE_ERROR_DETAILS", str(ServiceDefaults.EXPOSE_ERROR_DETAILS).lower())
            ),
            cache_enabled=parse_bool(
                os.environ.get("CACHE_ENABLED", str(ServiceDefaults.CACHE_ENABLED).lower())
            ),
            cache_dir=os.environ.get("CACHE_DIR", ServiceDefaults.CACHE_DIR),
            port=int(os.environ.get("PORT", str(ServiceDefaults.PORT))),
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration dictionary."""
        return self.model_dump()


__all__ = ["ServiceConfig"]
