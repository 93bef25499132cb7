"""
DuckDB Repository - Analytical Query Engine.

Centralized DuckDB repository for querying trajectory GeoParquet partitions
in place (local files or https:// URLs), without loading them into tables.

Key Features:
    - One shared connection per process, one cursor per concurrent query
    - Spatial extension for ST_* predicates and ST_AsGeoJSON
    - HTTPFS extension for remote partitions
    - In-memory or persistent database options
    - Queries only through QueryBuilder (parameterized SQL)

Extensions Enabled:
    spatial - ST_* functions for geometry operations
    httpfs - read_parquet over http(s)
    parquet - Native Parquet file support (built-in)

Exports:
    QueryResult: Column names, engine type names and rows of one query
    DuckDBRepository: Singleton analytical database repository
    IDuckDBRepository: Abstract interface for dependency injection
"""

# ============================================================================
# IMPORTS - Top of file for fail-fast behavior
# ============================================================================

import threading
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import duckdb

from config import AnalyticsConfig, DuckDBConnectionType
from exceptions import ContractViolationError, EngineQueryError
from util_logger import LoggerFactory, ComponentType

from .duckdb_query import QueryBuilder

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "DuckDBRepository")


@dataclass
class QueryResult:
    """Materialized result of one query."""
    columns: List[str]
    column_types: List[str]
    rows: List[Tuple[Any, ...]] = field(default_factory=list)


# ============================================================================
# DUCKDB REPOSITORY INTERFACE
# ============================================================================

class IDuckDBRepository(ABC):
    """
    Interface for DuckDB analytical operations.

    Enables dependency injection and testing/mocking of DuckDB operations.
    """

    @abstractmethod
    def cursor(self) -> Any:
        """Open a cursor for one query; it must support interrupt() and close()"""
        pass

    @abstractmethod
    def query_safe(self, query_builder: QueryBuilder, cursor: Any = None) -> QueryResult:
        """Execute a composed query and materialize its rows"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close DuckDB connection and cleanup resources"""
        pass

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Check DuckDB health and extension availability"""
        pass


# ============================================================================
# DUCKDB REPOSITORY IMPLEMENTATION
# ============================================================================

class DuckDBRepository(IDuckDBRepository):
    """
    Singleton DuckDB repository for partition queries.

    Connection Types:
    - memory: In-memory database (default, fast, ephemeral)
    - persistent: File-based database (survives restarts, slower)

    Thread Safety:
    - A DuckDB connection must not be shared across threads
    - cursor() returns a duplicate connection to the same database; each
      worker thread runs its query on its own cursor
    - Extensions loaded on the parent connection are visible to cursors
    """

    _instance: Optional['DuckDBRepository'] = None

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        """
        Initialize DuckDB repository.

        Args:
            config: DuckDB settings (defaults to AnalyticsConfig())
        """
        self.config = config or AnalyticsConfig()
        self._conn: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = threading.Lock()
        self._loaded_extensions: List[str] = []

        logger.info(
            f"DuckDBRepository initialized - type: {self.config.connection_type.value}, "
            f"spatial: {self.config.enable_spatial}, httpfs: {self.config.enable_httpfs}"
        )

    @classmethod
    def instance(cls, config: Optional[AnalyticsConfig] = None) -> 'DuckDBRepository':
        """
        Get or create singleton instance.

        Args:
            config: Passed to __init__ on first call only

        Returns:
            DuckDBRepository singleton
        """
        if cls._instance is None:
            cls._instance = cls(config)
            logger.info("DuckDBRepository singleton created")
        return cls._instance

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Get or create DuckDB connection with extensions loaded.

        STEP 1: Create connection (memory or persistent)
        STEP 2: Load required extensions (spatial, httpfs)

        Returns:
            DuckDB connection ready for queries
        """
        with self._lock:
            if self._conn is None:
                try:
                    logger.info("STEP 1: Creating DuckDB connection...")
                    settings = {
                        "memory_limit": self.config.memory_limit,
                        "threads": self.config.threads,
                    }

                    if self.config.connection_type == DuckDBConnectionType.MEMORY:
                        self._conn = duckdb.connect(":memory:", config=settings)
                        logger.info("STEP 1: In-memory DuckDB connection created")
                    else:
                        self._conn = duckdb.connect(self.config.database_path, config=settings)
                        logger.info(f"STEP 1: Persistent DuckDB connection created - {self.config.database_path}")

                    self._initialize_extensions()

                except Exception as e:
                    logger.error(f"STEP 1 FAILED: {e}\n{traceback.format_exc()}")
                    raise

        return self._conn

    def _initialize_extensions(self) -> None:
        """
        STEP 2: Install and load extensions.

        A missing extension is logged, not raised: queries that need it fail
        later with the engine's own message.
        """
        wanted = []
        if self.config.enable_spatial:
            wanted.append("spatial")
        if self.config.enable_httpfs:
            wanted.append("httpfs")

        for name in wanted:
            try:
                self._conn.execute(f"INSTALL {name}")
                self._conn.execute(f"LOAD {name}")
                self._loaded_extensions.append(name)
                logger.info(f"STEP 2: {name} extension loaded")
            except duckdb.Error as e:
                logger.warning(f"STEP 2: {name} extension failed (non-critical): {e}")

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """
        Open a cursor on the shared database.

        Returns:
            Duplicate connection usable from the calling thread
        """
        return self.get_connection().cursor()

    def query_safe(self, query_builder: QueryBuilder, cursor: Any = None) -> QueryResult:
        """
        Execute query using safe query builder.

        Args:
            query_builder: QueryBuilder instance with composed query
            cursor: Cursor to run on; a private one is opened and closed when omitted

        Returns:
            QueryResult with column names, engine type names and all rows

        Raises:
            ContractViolationError: If query_builder is not a QueryBuilder instance
            EngineQueryError: Engine failures, including interrupts
        """
        if not isinstance(query_builder, QueryBuilder):
            raise ContractViolationError(
                f"query_safe() requires QueryBuilder instance, "
                f"got {type(query_builder).__name__}. "
                f"Use QueryBuilder for safe SQL composition."
            )

        sql, params = query_builder.build()
        own_cursor = cursor is None
        if own_cursor:
            cursor = self.cursor()

        try:
            relation = cursor.sql(sql, params=params or None)
            if relation is None:
                return QueryResult(columns=[], column_types=[], rows=[])
            return QueryResult(
                columns=list(relation.columns),
                column_types=[str(t) for t in relation.types],
                rows=relation.fetchall(),
            )
        except duckdb.Error as e:
            logger.error(f"Query failed: {e}\nSQL: {sql}")
            raise EngineQueryError(f"{type(e).__name__}: {e}") from e
        finally:
            if own_cursor:
                cursor.close()

    def close(self) -> None:
        """
        Close DuckDB connection and cleanup resources.

        Note: Singleton instance will remain, but connection will be closed.
        Next get_connection() call will create a new connection.
        """
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                    logger.info("DuckDB connection closed")
                except duckdb.Error as e:
                    logger.warning(f"Error closing connection: {e}")
                finally:
                    self._conn = None
                    self._loaded_extensions = []

    def health_check(self) -> Dict[str, Any]:
        """
        Check DuckDB health and extension availability.

        Returns:
            Dict with health status, extensions, and connection info
        """
        try:
            cursor = self.cursor()
            try:
                version = cursor.execute("SELECT version()").fetchone()[0]
            finally:
                cursor.close()

            return {
                "status": "healthy",
                "connection_type": self.config.connection_type.value,
                "version": version,
                "extensions": list(self._loaded_extensions),
                "connection_active": self._conn is not None,
            }

        except duckdb.Error as e:
            logger.error(f"Health check failed: {e}\n{traceback.format_exc()}")
            return {
                "status": "unhealthy",
                "error": str(e),
            }

