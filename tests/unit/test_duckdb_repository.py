"""
DuckDB repository tests against a real in-memory engine and a local parquet file.

Extensions stay off, so these queries avoid spatial functions.
"""

from datetime import datetime

import pytest

from config import AnalyticsConfig
from exceptions import ContractViolationError, EngineQueryError
from infrastructure.duckdb import DuckDBRepository
from infrastructure.duckdb_query import Identifier, QueryBuilder, QueryParam


@pytest.fixture
def repository():
    repo = DuckDBRepository(AnalyticsConfig(enable_spatial=False, enable_httpfs=False, threads=1))
    yield repo
    repo.close()


@pytest.fixture
def partition_file(tmp_path, repository):
    path = tmp_path / "2010-01.parquet"
    cursor = repository.cursor()
    try:
        cursor.execute(
            f"""
            COPY (
                SELECT CAST(t AS BIGINT) AS trajectory,
                       CAST(o AS BIGINT) AS obs,
                       TIMESTAMP '2010-01-01' + to_days(CAST(o AS INTEGER)) AS time,
                       0.05 * o AS RI
                FROM range(3) r1(t), range(4) r2(o)
                ORDER BY trajectory, obs
            ) TO '{path.as_posix()}' (FORMAT PARQUET)
            """
        )
    finally:
        cursor.close()
    return str(path)


class TestQuerySafe:

    def test_binds_location_and_values(self, repository, partition_file):
        qb = QueryBuilder().append(
            "SELECT", Identifier("trajectory", qualifier="p"), ",", Identifier("obs", qualifier="p"),
            "FROM read_parquet(", QueryParam(partition_file), ") p",
            "WHERE", Identifier("trajectory", qualifier="p"), "=", QueryParam(1),
            "ORDER BY", Identifier("obs", qualifier="p"),
        )
        result = repository.query_safe(qb)
        assert result.columns == ["trajectory", "obs"]
        assert result.column_types == ["BIGINT", "BIGINT"]
        assert result.rows == [(1, 0), (1, 1), (1, 2), (1, 3)]

    def test_limit_parameter(self, repository, partition_file):
        qb = QueryBuilder().append(
            "SELECT * FROM read_parquet(", QueryParam(partition_file), ") LIMIT", QueryParam(5),
        )
        result = repository.query_safe(qb)
        assert len(result.rows) == 5
        assert "time" in result.columns

    def test_timestamp_window(self, repository, partition_file):
        qb = QueryBuilder().append(
            "SELECT DISTINCT obs FROM read_parquet(", QueryParam(partition_file), ")",
            "WHERE time >=", QueryParam(datetime(2010, 1, 2)),
            "AND time <", QueryParam(datetime(2010, 1, 4)),
            "ORDER BY obs",
        )
        assert repository.query_safe(qb).rows == [(1,), (2,)]

    def test_caller_cursor_stays_open(self, repository, partition_file):
        cursor = repository.cursor()
        try:
            qb = QueryBuilder().append("SELECT count(*) AS n FROM read_parquet(", QueryParam(partition_file), ")")
            assert repository.query_safe(qb, cursor=cursor).rows == [(12,)]
            assert cursor.execute("SELECT 1").fetchone() == (1,)
        finally:
            cursor.close()

    def test_missing_file_is_engine_error(self, repository, tmp_path):
        qb = QueryBuilder().append("SELECT * FROM read_parquet(", QueryParam(str(tmp_path / "nope.parquet")), ")")
        with pytest.raises(EngineQueryError) as exc_info:
            repository.query_safe(qb)
        assert exc_info.value.http_status == 500

    def test_rejects_raw_sql(self, repository):
        with pytest.raises(ContractViolationError):
            repository.query_safe("SELECT 1")


class TestLifecycle:

    def test_health_check(self, repository):
        health = repository.health_check()
        assert health["status"] == "healthy"
        assert health["connection_type"] == "memory"
        assert health["extensions"] == []
        assert health["version"]

    def test_reconnects_after_close(self, repository):
        repository.close()
        assert repository.health_check()["status"] == "healthy"
