"""
Infrastructure Package - Lazy Loading Implementation.

Provides the engine, probe and cache implementations with lazy loading so
that importing the package never opens a DuckDB connection or reads
configuration.

Usage:
    from infrastructure import DuckDBRepository, PartitionProbe
"""

from typing import TYPE_CHECKING

# For type checking only - doesn't actually import at runtime
if TYPE_CHECKING:
    from .duckdb import DuckDBRepository as _DuckDBRepository
    from .duckdb import IDuckDBRepository as _IDuckDBRepository
    from .duckdb import QueryResult as _QueryResult
    from .duckdb_query import QueryBuilder as _QueryBuilder
    from .partition_probe import PartitionProbe as _PartitionProbe
    from .result_cache import FileResultCache as _FileResultCache
    from .result_cache import NullResultCache as _NullResultCache


def __getattr__(name: str):
    """
    Lazy import mechanism - only imports when actually accessed.
    This prevents module-level code execution until needed.
    """
    if name in ("DuckDBRepository", "IDuckDBRepository", "QueryResult"):
        from . import duckdb as _duckdb_module
        return getattr(_duckdb_module, name)

    elif name in ("QueryBuilder", "QueryParam", "Identifier", "Keyword"):
        from . import duckdb_query
        return getattr(duckdb_query, name)

    elif name in ("PartitionProbe", "IPartitionProbe"):
        from . import partition_probe
        return getattr(partition_probe, name)

    elif name in ("ResultCache", "NullResultCache", "FileResultCache", "create_result_cache"):
        from . import result_cache
        return getattr(result_cache, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "DuckDBRepository",
    "IDuckDBRepository",
    "QueryResult",
    "QueryBuilder",
    "QueryParam",
    "Identifier",
    "Keyword",
    "PartitionProbe",
    "IPartitionProbe",
    "ResultCache",
    "NullResultCache",
    "FileResultCache",
    "create_result_cache",
]
