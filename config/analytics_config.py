"""
Analytics configuration - DuckDB query engine.

DuckDB reads the trajectory GeoParquet partitions directly (local paths or
https:// URLs through the HTTPFS extension) and evaluates the spatial
predicates through the Spatial extension.
"""

import os
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .defaults import AnalyticsDefaults, parse_bool


class DuckDBConnectionType(str, Enum):
    """DuckDB connection types."""
    MEMORY = "memory"
    PERSISTENT = "persistent"


class AnalyticsConfig(BaseModel):
    """
    Analytics configuration for DuckDB.

    Configuration Fields:
    ---------------------
    connection_type: Memory or persistent connection
    database_path: File path for persistent DuckDB databases
    enable_spatial: Load DuckDB Spatial extension (ST_* functions)
    enable_httpfs: Load HTTPFS extension (https:// partitions)
    memory_limit: Max memory for DuckDB operations (e.g., "4GB")
    threads: Number of DuckDB worker threads
    """

    connection_type: DuckDBConnectionType = Field(
        default=DuckDBConnectionType.MEMORY,
        description="DuckDB connection type: memory (fast, ephemeral) or persistent"
    )

    database_path: Optional[str] = Field(
        default=None,
        description="File path for persistent DuckDB database (only used if connection_type='persistent')"
    )

    enable_spatial: bool = Field(
        default=AnalyticsDefaults.ENABLE_SPATIAL,
        description="Enable DuckDB Spatial extension (ST_* functions)"
    )

    enable_httpfs: bool = Field(
        default=AnalyticsDefaults.ENABLE_HTTPFS,
        description="Enable HTTPFS extension (https:// partitions)"
    )

    memory_limit: str = Field(
        default=AnalyticsDefaults.MEMORY_LIMIT,
        description="Max memory for DuckDB operations (e.g., '4GB', '8GB')"
    )

    threads: int = Field(
        default=AnalyticsDefaults.THREADS,
        ge=1,
        le=64,
        description="Number of DuckDB worker threads"
    )

    def model_post_init(self, __context):
        """Validate configuration after initialization."""
        if self.connection_type == DuckDBConnectionType.PERSISTENT and not self.database_path:
            raise ValueError("database_path required when connection_type='persistent'")

    @classmethod
    def from_environment(cls) -> "AnalyticsConfig":
        """
        Load analytics configuration from environment variables.

        Environment Variables:
        ---------------------
        DUCKDB_CONNECTION_TYPE: "memory" or "persistent" (default: "memory")
        DUCKDB_DATABASE_PATH: Path to DuckDB file (default: None)
        DUCKDB_ENABLE_SPATIAL: "true" or "false" (default: "true")
        DUCKDB_ENABLE_HTTPFS: "true" or "false" (default: "true")
        DUCKDB_MEMORY_LIMIT: Memory limit string (default: "4GB")
        DUCKDB_THREADS: Number of threads (default: 4)
        """
        return cls(
            connection_type=DuckDBConnectionType(
                os.environ.get("DUCKDB_CONNECTION_TYPE", AnalyticsDefaults.CONNECTION_TYPE)
            ),
            database_path=os.environ.get("DUCKDB_DATABASE_PATH"),
            enable_spatial=parse_bool(
                os.environ.get("DUCKDB_ENABLE_SPATIAL", str(AnalyticsDefaults.ENABLE_SPATIAL).lower())
            ),
            enable_httpfs=parse_bool(
                os.environ.get("DUCKDB_ENABLE_HTTPFS", str(AnalyticsDefaults.ENABLE_HTTPFS).lower())
            ),
            memory_limit=os.environ.get("DUCKDB_MEMORY_LIMIT", AnalyticsDefaults.MEMORY_LIMIT),
            threads=int(os.environ.get("DUCKDB_THREADS", str(AnalyticsDefaults.THREADS)))
        )

    def debug_dict(self) -> dict:
        """Return debug-friendly configuration dictionary."""
        return {
            "connection_type": self.connection_type.value,
            "database_path": self.database_path if self.database_path else "<memory>",
            "enable_spatial": self.enable_spatial,
            "enable_httpfs": self.enable_httpfs,
            "memory_limit": self.memory_limit,
            "threads": self.threads
        }


# Export
__all__ = ["AnalyticsConfig", "DuckDBConnectionType"]
