"""
Query planner.

Builds one parameterized DuckDB query per relevant partition for each
endpoint. The partition location, the user polygon, the track id, the time
window and the limit are all bound parameters; orderBy columns are checked
against the active projection and emitted as validated identifiers.

Predicate shapes (p = the partition, cte = matching trajectories):
    Tracks       SELECT .. FROM p [ORDER BY ..] LIMIT ?
    TrackById    SELECT .. FROM p WHERE p.trajectory = ? ORDER BY .., p.obs
    Destination  cte: obs = 0 AND ST_Intersects(geometry, polygon)
                 every row of the matched trajectories
    Origin       cte: ST_Intersects_Extent(geometry, polygon) within the time window
                 the obs = 0 row of the matched trajectories (every row with traj=true)

Destination tests the exact geometry of the release point; Origin tests the
bounding extent of any observation in the window. The two are not symmetric.

Exports:
    QueryPlanner: Builds QueryPlan objects
    query_fingerprint: Canonical text of a plan (cache key input)
"""

import json
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from config import ServiceConfig
from exceptions import InvalidParameterError, MissingParameterError, NoDataForSelectorError
from infrastructure.duckdb_query import QueryBuilder, QueryParam, Identifier, Keyword, SORT_DIRECTIONS
from util_logger import LoggerFactory, ComponentType

from .catalog import PartitionCatalog
from .models import PartitionQuery, QueryIntent, QueryPlan, QuerySpec

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "QueryPlanner")

ALIAS = "p"
CTE_ALIAS = "c"


def parse_order_by(order_by: str, columns: Sequence[str]) -> List[Tuple[Identifier, Keyword]]:
    """
    Parse "+col,-col2" into validated ORDER BY terms.

    "+" or no prefix sorts ascending, "-" descending. Only projected,
    non-geometry columns are accepted.
    """
    allowed = {c for c in columns if c != "geometry"}
    terms = []
    for item in order_by.split(","):
        item = item.strip()
        direction = "ASC"
        if item[:1] in ("+", "-"):
            direction = "DESC" if item[0] == "-" else "ASC"
            item = item[1:].strip()
        if item not in allowed:
            raise InvalidParameterError(
                "orderBy", f"Invalid orderBy. Allowed columns: {', '.join(sorted(allowed))}"
            )
        terms.append((Identifier(item, qualifier=ALIAS), Keyword(direction, SORT_DIRECTIONS)))
    return terms


def selector_window(selector: str) -> Tuple[datetime, datetime]:
    """[start, end) of the month or day named by a YYYY-MM[-DD] selector."""
    year, month = int(selector[:4]), int(selector[5:7])
    if len(selector) >= 10:
        start = datetime(year, month, int(selector[8:10]))
        return start, datetime.fromordinal(start.toordinal() + 1)
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


class QueryPlanner:
    """
    Plans the partition queries of one request.

    Args:
        catalog: Immutable partition catalog
        config: Service settings (default limit, origin window)
    """

    def __init__(self, catalog: PartitionCatalog, config: ServiceConfig):
        self.catalog = catalog
        self.config = config

    def plan(self, intent: QueryIntent, spec: QuerySpec, track_id: Optional[int] = None) -> QueryPlan:
        """
        Build the plan for one request.

        Raises:
            MissingParameterError: Origin/Destination without polygon or time selector
            InvalidParameterError: orderBy names a column outside the projection
            NoDataForSelectorError: The selector names no catalog partition
        """
        columns = spec.columns
        order_terms = parse_order_by(spec.order_by, columns) if spec.order_by else []

        if intent in (QueryIntent.ORIGIN, QueryIntent.DESTINATION):
            if not spec.polygon:
                raise MissingParameterError("Mandatory bbox or intersects is missing")
            if not spec.time_selector:
                raise MissingParameterError("Mandatory datetime is missing")

        keys, explicit = self._select_partitions(intent, spec)
        if not keys:
            raise NoDataForSelectorError(spec.time_selector)

        limit = spec.limit
        if intent is QueryIntent.TRACKS and limit is None:
            limit = self.config.default_limit

        queries = []
        for key in keys:
            location = self.catalog.location(key)
            if intent is QueryIntent.TRACKS:
                builder = self._tracks(location, columns, order_terms, limit)
            elif intent is QueryIntent.TRACK_BY_ID:
                builder = self._track_by_id(location, columns, order_terms, track_id, limit)
            elif intent is QueryIntent.DESTINATION:
                builder = self._destination(location, columns, order_terms, spec.polygon, limit)
            else:
                builder = self._origin(
                    location, columns, order_terms, spec.polygon,
                    selector_window(spec.time_selector), spec.include_trajectory, limit
                )
            queries.append(PartitionQuery(key=key, location=location, builder=builder))

        logger.debug(f"Planned {intent.value}: {len(queries)} partition queries, explicit={explicit}")
        return QueryPlan(
            intent=intent,
            queries=queries,
            columns=columns,
            limit=limit,
            explicit=explicit,
            selector=spec.time_selector,
        )

    def _select_partitions(self, intent: QueryIntent, spec: QuerySpec) -> Tuple[List[str], bool]:
        if intent is QueryIntent.ORIGIN:
            keys = self.catalog.origin_window(spec.time_selector, self.config.origin_window_years)
            return keys, False

        if intent in (QueryIntent.TRACKS, QueryIntent.TRACK_BY_ID) and not spec.time_selector:
            return [self.catalog.default_key], True

        keys = self.catalog.resolve(spec.time_selector)
        return keys, len(spec.time_selector) >= self.catalog.granularity.key_length

    # ------------------------------------------------------------------------
    # SQL shapes
    # ------------------------------------------------------------------------

    @staticmethod
    def _projection(qb: QueryBuilder, columns: Sequence[str]) -> None:
        items = []
        for column in columns:
            if column == "geometry":
                items.append(("ST_AsGeoJSON(", Identifier("geometry", qualifier=ALIAS), ") AS geometry"))
            else:
                items.append(Identifier(column, qualifier=ALIAS))
        qb.append("SELECT").append_joined(items)

    @staticmethod
    def _order_by(qb: QueryBuilder, order_terms, tail: Sequence[str]) -> None:
        items = list(order_terms) + [Identifier(column, qualifier=ALIAS) for column in tail]
        if items:
            qb.append("ORDER BY").append_joined(items)

    @staticmethod
    def _limit(qb: QueryBuilder, limit: Optional[int]) -> None:
        if limit is not None:
            qb.append("LIMIT", QueryParam(limit))

    def _tracks(self, location, columns, order_terms, limit) -> QueryBuilder:
        qb = QueryBuilder()
        self._projection(qb, columns)
        qb.append("FROM read_parquet(", QueryParam(location), ")", ALIAS)
        self._order_by(qb, order_terms, ())
        self._limit(qb, limit)
        return qb

    def _track_by_id(self, location, columns, order_terms, track_id, limit) -> QueryBuilder:
        qb = QueryBuilder()
        self._projection(qb, columns)
        qb.append(
            "FROM read_parquet(", QueryParam(location), ")", ALIAS,
            "WHERE", Identifier("trajectory", qualifier=ALIAS), "=", QueryParam(track_id),
        )
        self._order_by(qb, order_terms, ("obs",))
        self._limit(qb, limit)
        return qb

    def _destination(self, location, columns, order_terms, polygon, limit) -> QueryBuilder:
        qb = QueryBuilder()
        qb.append(
            "WITH cte AS (",
            "SELECT trajectory FROM read_parquet(", QueryParam(location), ")",
            "WHERE obs = 0",
            "AND ST_Intersects(geometry, ST_GeomFromText(", QueryParam(polygon), "))",
            ")",
        )
        self._projection(qb, columns)
        qb.append(
            "FROM read_parquet(", QueryParam(location), ")", ALIAS,
            "JOIN cte", CTE_ALIAS, "ON", Identifier("trajectory", qualifier=CTE_ALIAS),
            "=", Identifier("trajectory", qualifier=ALIAS),
        )
        self._order_by(qb, order_terms, ("trajectory", "obs"))
        self._limit(qb, limit)
        return qb

    def _origin(self, location, columns, order_terms, polygon, window, all_observations, limit) -> QueryBuilder:
        start, end = window
        qb = QueryBuilder()
        qb.append(
            "WITH cte AS (",
            "SELECT DISTINCT trajectory FROM read_parquet(", QueryParam(location), ")",
            "WHERE ST_Intersects_Extent(geometry, ST_GeomFromText(", QueryParam(polygon), "))",
            "AND time >=", QueryParam(start), "AND time <", QueryParam(end),
            ")",
        )
        self._projection(qb, columns)
        qb.append(
            "FROM read_parquet(", QueryParam(location), ")", ALIAS,
            "JOIN cte", CTE_ALIAS, "ON", Identifier("trajectory", qualifier=CTE_ALIAS),
            "=", Identifier("trajectory", qualifier=ALIAS),
        )
        if not all_observations:
            qb.append("WHERE", Identifier("obs", qualifier=ALIAS), "= 0")
        self._order_by(qb, order_terms, ("trajectory", "obs"))
        self._limit(qb, limit)
        return qb


def query_fingerprint(plan: QueryPlan) -> str:
    """Canonical text of every partition query (SQL and bound values)."""
    return json.dumps(
        {
            "intent": plan.intent.value,
            "queries": [[q.key, q.sql, q.params] for q in plan.queries],
        },
        default=str,
        sort_keys=True,
    )
