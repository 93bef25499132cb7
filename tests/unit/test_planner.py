"""
Query planner tests - partition selection and SQL shapes.
"""

from datetime import datetime

import pytest

from config import ServiceConfig
from exceptions import InvalidParameterError, MissingParameterError, NoDataForSelectorError
from trajectories.models import QueryIntent, QuerySpec
from trajectories.planner import QueryPlanner, parse_order_by, query_fingerprint, selector_window

POLYGON = "POLYGON((0 40,0 50,10 50,10 40,0 40))"


@pytest.fixture
def planner(monthly_catalog):
    return QueryPlanner(monthly_catalog, ServiceConfig(default_limit=500))


@pytest.fixture
def daily_planner(daily_catalog):
    return QueryPlanner(daily_catalog, ServiceConfig())


class TestParseOrderBy:

    def test_directions(self):
        terms = parse_order_by("+RI,-obs,age", ("RI", "obs", "age", "geometry"))
        assert [(str(i), str(k)) for i, k in terms] == [
            ("p.RI", "ASC"), ("p.obs", "DESC"), ("p.age", "ASC"),
        ]

    def test_geometry_is_not_sortable(self):
        with pytest.raises(InvalidParameterError):
            parse_order_by("geometry", ("obs", "geometry"))

    def test_column_outside_projection(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            parse_order_by("CI", ("trajectory", "obs"))
        assert exc_info.value.details["parameter"] == "orderBy"

    def test_injection(self):
        with pytest.raises(InvalidParameterError):
            parse_order_by("obs;DROP TABLE x", ("obs",))


class TestSelectorWindow:

    def test_month(self):
        assert selector_window("2010-02") == (datetime(2010, 2, 1), datetime(2010, 3, 1))

    def test_december(self):
        assert selector_window("2010-12") == (datetime(2010, 12, 1), datetime(2011, 1, 1))

    def test_day(self):
        assert selector_window("2010-02-28") == (datetime(2010, 2, 28), datetime(2010, 3, 1))


class TestTracksPlan:

    def test_default_partition_and_limit(self, planner):
        plan = planner.plan(QueryIntent.TRACKS, QuerySpec())
        assert [q.key for q in plan.queries] == ["2009-01"]
        assert plan.explicit is True
        assert plan.limit == 500
        query = plan.queries[0]
        assert query.sql.startswith("SELECT p.trajectory , p.obs ,")
        assert "ST_AsGeoJSON( p.geometry ) AS geometry" in query.sql
        assert query.sql.endswith("FROM read_parquet( ? ) p LIMIT ?")
        assert query.params == ["/data/2009-01.parquet", 500]

    def test_selector_picks_partition(self, planner):
        plan = planner.plan(QueryIntent.TRACKS, QuerySpec(time_selector="2010-03", limit=5))
        assert [q.key for q in plan.queries] == ["2010-03"]
        assert plan.queries[0].params == ["/data/2010-03.parquet", 5]

    def test_order_by(self, planner):
        plan = planner.plan(QueryIntent.TRACKS, QuerySpec(order_by="-RI"))
        assert "ORDER BY p.RI DESC LIMIT ?" in plan.queries[0].sql

    def test_minimalist_projection(self, planner):
        plan = planner.plan(QueryIntent.TRACKS, QuerySpec(minimalist=True))
        sql = plan.queries[0].sql
        assert "p.CI" not in sql
        assert "p.RI" in sql
        assert plan.columns == ("trajectory", "obs", "time", "RI", "geometry")

    def test_unknown_selector(self, planner):
        with pytest.raises(NoDataForSelectorError):
            planner.plan(QueryIntent.TRACKS, QuerySpec(time_selector="2014-01"))


class TestTrackByIdPlan:

    def test_binds_id_and_orders_by_obs(self, planner):
        plan = planner.plan(QueryIntent.TRACK_BY_ID, QuerySpec(), track_id=7)
        query = plan.queries[0]
        assert "WHERE p.trajectory = ? ORDER BY p.obs" in query.sql
        assert query.params == ["/data/2009-01.parquet", 7]
        assert plan.limit is None

    def test_user_order_precedes_obs(self, planner):
        plan = planner.plan(QueryIntent.TRACK_BY_ID, QuerySpec(order_by="-age"), track_id=7)
        assert "ORDER BY p.age DESC , p.obs" in plan.queries[0].sql


class TestDestinationPlan:

    def test_requires_polygon(self, planner):
        with pytest.raises(MissingParameterError) as exc_info:
            planner.plan(QueryIntent.DESTINATION, QuerySpec(time_selector="2010-01"))
        assert exc_info.value.message == "Mandatory bbox or intersects is missing"

    def test_requires_time_selector(self, planner):
        with pytest.raises(MissingParameterError) as exc_info:
            planner.plan(QueryIntent.DESTINATION, QuerySpec(polygon=POLYGON))
        assert exc_info.value.message == "Mandatory datetime is missing"

    def test_release_point_predicate(self, planner):
        plan = planner.plan(QueryIntent.DESTINATION, QuerySpec(polygon=POLYGON, time_selector="2010-01", limit=3))
        query = plan.queries[0]
        assert "WHERE obs = 0 AND ST_Intersects(geometry, ST_GeomFromText( ? ))" in query.sql
        assert "JOIN cte c ON c.trajectory = p.trajectory" in query.sql
        assert "ORDER BY p.trajectory , p.obs LIMIT ?" in query.sql
        assert query.params == ["/data/2010-01.parquet", POLYGON, "/data/2010-01.parquet", 3]
        assert plan.explicit is True

    def test_month_on_daily_catalog_fans_out(self, daily_planner):
        plan = daily_planner.plan(QueryIntent.DESTINATION, QuerySpec(polygon=POLYGON, time_selector="2010-01"))
        assert [q.key for q in plan.queries] == ["2010-01-01", "2010-01-08", "2010-01-15", "2010-01-22"]
        assert plan.explicit is False

    def test_polygon_never_reaches_sql_text(self, planner):
        hostile = "POLYGON((0 0,1 1,0 0))'); DROP TABLE x; --"
        plan = planner.plan(QueryIntent.DESTINATION, QuerySpec(polygon=hostile, time_selector="2010-01"))
        assert "DROP" not in plan.queries[0].sql
        assert hostile in plan.queries[0].params


class TestOriginPlan:

    def test_walks_back_and_binds_window(self, planner):
        plan = planner.plan(QueryIntent.ORIGIN, QuerySpec(polygon=POLYGON, time_selector="2010-02"))
        assert [q.key for q in plan.queries][0] == "2009-01"
        assert [q.key for q in plan.queries][-1] == "2010-02"
        assert plan.explicit is False
        query = plan.queries[-1]
        assert "ST_Intersects_Extent(geometry, ST_GeomFromText( ? ))" in query.sql
        assert "AND time >= ? AND time < ?" in query.sql
        assert "WHERE p.obs = 0" in query.sql
        assert query.params == [
            "/data/2010-02.parquet", POLYGON, datetime(2010, 2, 1), datetime(2010, 3, 1),
            "/data/2010-02.parquet",
        ]

    def test_traj_returns_every_observation(self, planner):
        plan = planner.plan(
            QueryIntent.ORIGIN, QuerySpec(polygon=POLYGON, time_selector="2010-02", include_trajectory=True)
        )
        assert "p.obs = 0" not in plan.queries[0].sql

    def test_window_respects_config(self, monthly_catalog):
        planner = QueryPlanner(monthly_catalog, ServiceConfig(origin_window_years=0))
        plan = planner.plan(QueryIntent.ORIGIN, QuerySpec(polygon=POLYGON, time_selector="2010-02"))
        assert [q.key for q in plan.queries] == ["2010-02"]

    def test_window_before_catalog(self, planner):
        with pytest.raises(NoDataForSelectorError):
            planner.plan(QueryIntent.ORIGIN, QuerySpec(polygon=POLYGON, time_selector="2001-02"))


class TestFingerprint:

    def test_stable_and_sensitive(self, planner):
        a = planner.plan(QueryIntent.TRACKS, QuerySpec(limit=5))
        b = planner.plan(QueryIntent.TRACKS, QuerySpec(limit=5))
        c = planner.plan(QueryIntent.TRACKS, QuerySpec(limit=6))
        assert query_fingerprint(a) == query_fingerprint(b)
        assert query_fingerprint(a) != query_fingerprint(c)
