"""
DuckDB Safe SQL Query Composition

This module provides safe SQL composition for DuckDB queries, similar to
psycopg's sql.SQL() and sql.Identifier() pattern. It prevents SQL injection
by separating query structure from parameters and validating identifiers.

Architecture:
    PostgreSQL (psycopg):
        sql.SQL("SELECT * FROM {}").format(sql.Identifier('table'))

    DuckDB (this module):
        qb = QueryBuilder()
        qb.append("SELECT * FROM read_parquet(", QueryParam(location), ")")
        query, params = qb.build()

Key Classes:
    - QueryParam: Marks values for parameterization (? placeholders)
    - Identifier: Validates SQL identifiers (columns, table aliases)
    - Keyword: Whitelisted bare SQL keyword (ASC, DESC)
    - QueryBuilder: Core composition engine

Safety Guarantees:
    - Identifiers validated against regex (alphanumeric + underscore)
    - Keywords validated against whitelists
    - Values automatically parameterized, including file locations and WKT
    - Type checking prevents accidental string concatenation

Example Usage:
    ```python
    from infrastructure.duckdb_query import QueryBuilder, Identifier, QueryParam

    qb = QueryBuilder()
    qb.append(
        "SELECT", Identifier('obs', qualifier='p'),
        "FROM read_parquet(", QueryParam('/data/2010-01.parquet'), ") p",
        "WHERE", Identifier('trajectory', qualifier='p'), "=", QueryParam(42)
    )
    query, params = qb.build()
    # query = "SELECT p.obs FROM read_parquet( ? ) p WHERE p.trajectory = ?"
    # params = ['/data/2010-01.parquet', 42]
    ```
"""

import re
from typing import Any, Iterable, List, Optional, Set, Tuple
from dataclasses import dataclass


_IDENTIFIER_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


@dataclass
class QueryParam:
    """
    Represents a parameterized value in a DuckDB query.

    Values are replaced with ? placeholders and tracked separately
    for safe parameter binding.

    Example:
        QueryParam(123) → "?" with params=[123]
        QueryParam('POLYGON((...))') → "?" with params=['POLYGON((...))']
    """
    value: Any

    def __str__(self):
        return "?"


@dataclass
class Identifier:
    """
    Represents a safely validated SQL identifier (column, alias, etc.).

    Validates that the identifier (and its optional qualifier) follows SQL
    naming conventions:
    - Starts with letter or underscore
    - Contains only alphanumeric characters and underscores

    Example:
        Identifier('trajectory')            # trajectory
        Identifier('obs', qualifier='p')    # p.obs
        Identifier('obs; DROP TABLE x')     # INVALID

    Raises:
        ValueError: If identifier doesn't match SQL naming conventions
    """
    name: str
    qualifier: Optional[str] = None

    def __post_init__(self):
        for part in (self.name, self.qualifier):
            if part is not None and not _IDENTIFIER_PATTERN.match(part):
                raise ValueError(
                    f"Invalid identifier: '{part}'. "
                    f"Must start with letter/underscore and contain only "
                    f"alphanumeric characters and underscores."
                )

    def __str__(self):
        if self.qualifier:
            return f"{self.qualifier}.{self.name}"
        return self.name


@dataclass
class Keyword:
    """
    Represents a bare SQL keyword that must come from a whitelist.

    Example:
        Keyword('DESC', SORT_DIRECTIONS)    # DESC
        Keyword('DESC; --', SORT_DIRECTIONS)  # INVALID - raises ValueError

    Raises:
        ValueError: If value not in allowed_values
    """
    value: str
    allowed_values: Set[str]

    def __post_init__(self):
        if self.value not in self.allowed_values:
            raise ValueError(
                f"Keyword '{self.value}' not in allowed set: {sorted(self.allowed_values)}"
            )

    def __str__(self):
        return self.value


SORT_DIRECTIONS: Set[str] = {"ASC", "DESC"}


class QueryBuilder:
    """
    Safe query composition for DuckDB, inspired by psycopg.sql.

    Builds SQL queries by composing parts and tracking parameters separately.
    This prevents SQL injection by ensuring values are never concatenated
    directly into SQL strings.

    Usage Pattern:
        1. Create builder: qb = QueryBuilder()
        2. Append parts: qb.append("SELECT", Identifier('col'), "FROM", ...)
        3. Build query: query, params = qb.build()
        4. Execute: repository.query_safe(qb)

    Thread Safety:
        Not thread-safe. Create separate instances for concurrent queries.
    """

    def __init__(self):
        """Initialize empty query builder."""
        self.parts: List[str] = []
        self.params: List[Any] = []

    def append(self, *items) -> 'QueryBuilder':
        """
        Add parts to the query.

        Accepts:
        - QueryParam: Adds ? placeholder and tracks parameter
        - Identifier: Adds validated identifier name
        - Keyword: Adds validated keyword
        - str: Adds raw SQL (use only for static strings)

        Args:
            *items: Variable number of query parts

        Returns:
            Self for method chaining

        Raises:
            TypeError: If item type is not supported
        """
        for item in items:
            if isinstance(item, QueryParam):
                self.parts.append("?")
                self.params.append(item.value)
            elif isinstance(item, (Identifier, Keyword)):
                self.parts.append(str(item))
            elif isinstance(item, str):
                # Raw SQL - use with caution, only for static strings
                self.parts.append(item)
            else:
                raise TypeError(
                    f"Unsupported query part type: {type(item).__name__}. "
                    f"Use QueryParam, Identifier, Keyword, or str."
                )
        return self

    def append_joined(self, items: Iterable, separator: str = ",") -> 'QueryBuilder':
        """
        Add a separated list of parts, e.g. a projection or ORDER BY list.

        Each element is either a single part or a tuple of parts rendered
        together (e.g. (Identifier('obs', 'p'), Keyword('DESC', ...))).

        Args:
            items: Parts or tuples of parts
            separator: Static separator placed between elements

        Returns:
            Self for method chaining
        """
        for index, item in enumerate(items):
            if index:
                self.parts.append(separator)
            if isinstance(item, tuple):
                self.append(*item)
            else:
                self.append(item)
        return self

    def build(self) -> Tuple[str, List[Any]]:
        """
        Build the final query string and parameter list.

        Returns:
            Tuple of (query_string, parameters)
            - query_string: SQL with ? placeholders
            - parameters: List of parameter values in order
        """
        query = ' '.join(self.parts)
        return query, list(self.params)

    def __str__(self):
        """String representation (for debugging)."""
        return ' '.join(self.parts)
